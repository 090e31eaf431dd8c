"""
Drug search routes – paginated search and typeahead autocomplete.
Both endpoints are read-only and answer with a success flag; internal
causes are logged, never returned.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

logger = logging.getLogger("pharmasearch.routes.search")

search_bp = Blueprint("search", __name__)


def _service():
    return current_app.extensions["drug_search"]


@search_bp.route("/search", methods=["GET"])
def search_drugs():
    """Search drug names across all partitions. ?q=&page=&limit="""
    q = request.args.get("q", "")
    try:
        result = _service().search(
            q,
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
    except Exception:
        logger.exception("Search error for q=%r", q)
        return jsonify({"success": False, "message": "Search failed"}), 500
    return jsonify(result.to_dict()), 200


@search_bp.route("/autocomplete", methods=["GET"])
def autocomplete_drugs():
    """Return up to 10 drug names for typeahead, canonical partition only."""
    q = request.args.get("q", "")
    try:
        result = _service().autocomplete(q)
    except Exception:
        logger.exception("Autocomplete error for q=%r", q)
        return jsonify({"success": False, "message": "Autocomplete failed"}), 500
    return jsonify(result.to_dict()), 200
