"""
Request logger – before/after-request hooks that log every API call with
its status and latency. Health checks are skipped to keep logs readable.
"""

import logging
import time

from flask import g, request

logger = logging.getLogger("pharmasearch.requests")


def start_request_timer():
    g.request_started = time.perf_counter()


def log_after_request(response):
    """Log method, path, query and timing for /api/* requests."""
    if not request.path.startswith("/api/"):
        return response

    if request.path == "/api/health":
        return response

    started = getattr(g, "request_started", None)
    elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else -1.0

    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "%s %s q=%r -> %s (%.1fms)",
        request.method,
        request.path,
        request.args.get("q", "")[:100],
        response.status_code,
        elapsed_ms,
    )
    return response
