"""
Entry point for the Pharmacopedia search backend.
Run with: python wsgi.py
"""

import logging

from pharmasearch.config import Config
from pharmasearch.main import create_app

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5000, debug=app.config.get("DEBUG", False))
