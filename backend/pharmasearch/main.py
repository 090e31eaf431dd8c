"""
Pharmacopedia Search – Flask Application Factory
Wires the partition set, the shared executor and the search API.
"""

import atexit
import logging
from typing import Optional, Sequence

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from pharmasearch.config import Config
from pharmasearch.database import db
from pharmasearch.middleware.request_logger import log_after_request, start_request_timer
from pharmasearch.routes.search import search_bp
from pharmasearch.services.drug_search_service import DrugSearchService
from pharmasearch.services.partition_executor import PartitionExecutor
from pharmasearch.services.partitions.base_partition import Partition
from pharmasearch.services.partitions.sql_partition import SqlPartition

logger = logging.getLogger("pharmasearch.app")

limiter = Limiter(key_func=get_remote_address, default_limits=[Config.RATE_LIMIT_DEFAULT])


def create_app(partitions: Optional[Sequence[Partition]] = None) -> Flask:
    """
    Build the application. *partitions* overrides the configured SQL
    partitions (tests inject in-memory ones); order matters, the first
    partition is canonical.
    """
    Config.validate()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = Config.FLASK_SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = Config.DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["DEBUG"] = Config.APP_ENV == "development"
    app.config["RATELIMIT_ENABLED"] = Config.APP_ENV != "testing"

    # Extensions
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    limiter.init_app(app)
    db.init_app(app)

    # Partitions share the one pooled engine; tables are created if missing
    with app.app_context():
        if partitions is None:
            partitions = [SqlPartition(name, db.engine, timeout=Config.SEARCH_PARTITION_TIMEOUT)
                          for name in Config.DRUG_PARTITIONS]
        db.create_all()

    executor = PartitionExecutor(
        partitions,
        max_workers=Config.SEARCH_MAX_WORKERS,
        timeout=Config.SEARCH_PARTITION_TIMEOUT,
        retries=Config.SEARCH_PARTITION_RETRIES,
        backoff=Config.SEARCH_RETRY_BACKOFF,
        max_in_flight=Config.SEARCH_MAX_IN_FLIGHT,
    )
    atexit.register(executor.close)
    app.extensions["drug_search"] = DrugSearchService(
        executor,
        min_query_length=Config.SEARCH_MIN_QUERY_LENGTH,
        max_query_length=Config.SEARCH_MAX_QUERY_LENGTH,
        default_limit=Config.SEARCH_DEFAULT_LIMIT,
        max_limit=Config.SEARCH_MAX_LIMIT,
        autocomplete_limit=Config.AUTOCOMPLETE_LIMIT,
    )
    logger.info("Drug search ready over partitions: %s", ", ".join(p.name for p in partitions))

    # Middleware
    app.before_request(start_request_timer)
    app.after_request(log_after_request)

    # Blueprints
    app.register_blueprint(search_bp, url_prefix="/api")

    @app.errorhandler(429)
    def rate_limited(exc):
        return jsonify({"success": False, "message": "Too many requests"}), 429

    # Health check
    @app.route("/api/health")
    def health():
        return {
            "status": "ok",
            "service": "pharmasearch",
            "partitions": [p.name for p in executor.partitions],
        }

    return app
