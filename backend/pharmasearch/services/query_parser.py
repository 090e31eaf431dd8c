"""
Query normalization and regex escaping for drug-name search.

Short queries are not an error: normalize_query() returns None and the
caller answers with an empty, successful result instead of scanning
every partition.
"""

import logging
import re
from typing import Any, Optional

logger = logging.getLogger("pharmasearch.query")

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200

# Characters with special meaning in Python re, PostgreSQL ARE and MySQL ICU
_REGEX_SPECIAL = re.compile(r"[.*+?^${}()|\[\]\\]")


def normalize_query(raw: Any,
                    min_length: int = MIN_QUERY_LENGTH,
                    max_length: int = MAX_QUERY_LENGTH) -> Optional[str]:
    """
    Trim *raw* and return the search token, or None if it is unusable.

    A token shorter than *min_length* or longer than *max_length* yields
    None, so over-long input gets the same empty result as a too-short one
    instead of silently searching for a shortened term.
    """
    if not isinstance(raw, str):
        return None
    token = raw.strip()
    if len(token) > max_length:
        logger.info("Rejected %d-character query (max %d)", len(token), max_length)
        return None
    if len(token) < min_length:
        return None
    return token


def escape_pattern(token: str) -> str:
    """Backslash-escape regex metacharacters so *token* matches literally."""
    return _REGEX_SPECIAL.sub(lambda m: "\\" + m.group(0), token)
