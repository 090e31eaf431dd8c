"""
Drug search service – the single entry point for name search and autocomplete.

Search flow:
  normalize → escape → fan out to all partitions (score, sort, window in
  each) → merge + dedupe → paginate against the canonical count

Autocomplete skips the fan-out: it asks the canonical partition alone,
scores synonyms by exact match only, and returns a short flat list.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pharmasearch.services.paginator import (
    DEFAULT_LIMIT, MAX_LIMIT, Pagination, paginate, parse_page_request,
)
from pharmasearch.services.partition_executor import PartitionExecutor
from pharmasearch.services.partitions.base_partition import PartitionError
from pharmasearch.services.query_parser import (
    MAX_QUERY_LENGTH, MIN_QUERY_LENGTH, escape_pattern, normalize_query,
)
from pharmasearch.services.relevance import SYNONYM_CONTAINS, SYNONYM_EXACT
from pharmasearch.services.result_merger import merge_results

logger = logging.getLogger("pharmasearch.search")

AUTOCOMPLETE_LIMIT = 10


class SearchError(Exception):
    """Base class for search failures surfaced to the HTTP boundary."""


class SearchUnavailableError(SearchError):
    """No partition could answer the query."""


@dataclass
class SearchPage:
    items: list[dict]
    pagination: Optional[Pagination] = None
    query: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"success": True, "data": self.items}
        if self.pagination is not None:
            data["pagination"] = self.pagination.to_dict()
            data["searchQuery"] = self.query
        return data


class DrugSearchService:
    def __init__(self, executor: PartitionExecutor,
                 min_query_length: int = MIN_QUERY_LENGTH,
                 max_query_length: int = MAX_QUERY_LENGTH,
                 default_limit: int = DEFAULT_LIMIT,
                 max_limit: int = MAX_LIMIT,
                 autocomplete_limit: int = AUTOCOMPLETE_LIMIT):
        self.executor = executor
        self.min_query_length = min_query_length
        self.max_query_length = max_query_length
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.autocomplete_limit = autocomplete_limit

    def _normalize(self, raw: Any) -> Optional[str]:
        return normalize_query(raw, self.min_query_length, self.max_query_length)

    def search(self, raw_query: Any, page: Any = None, limit: Any = None) -> SearchPage:
        """
        Paginated, deduplicated name search across every partition.

        Raises SearchUnavailableError only when all partitions failed.
        """
        token = self._normalize(raw_query)
        if token is None:
            return SearchPage(items=[])

        request = parse_page_request(page, limit, self.default_limit, self.max_limit)
        pattern = escape_pattern(token)

        fan_out = self.executor.search_all(
            pattern, request.skip, request.limit, synonym_rule=SYNONYM_CONTAINS, with_count=True
        )
        if not fan_out.any_ok:
            raise SearchUnavailableError(
                f"All partitions failed for query {token!r}: {', '.join(fan_out.failed)}"
            )
        if fan_out.failed:
            logger.info("Search %r degraded, missing partitions: %s", token, fan_out.failed)

        merged = merge_results(o.results for o in fan_out.outcomes)

        total = fan_out.total
        if total is None:
            # Lower bound: what this page proves exists
            total = request.skip + min(len(merged), request.limit)

        page_items, pagination = paginate(merged, request, total)
        return SearchPage(
            items=[ranked.record.to_search_item() for ranked in page_items],
            pagination=pagination,
            query=token,
        )

    def autocomplete(self, raw_query: Any) -> SearchPage:
        """Top matches from the canonical partition for typeahead."""
        token = self._normalize(raw_query)
        if token is None:
            return SearchPage(items=[])

        pattern = escape_pattern(token)
        try:
            ranked = self.executor.search_canonical(
                pattern, self.autocomplete_limit, synonym_rule=SYNONYM_EXACT
            )
        except PartitionError as exc:
            raise SearchUnavailableError(str(exc)) from exc
        return SearchPage(items=[r.record.to_autocomplete_item() for r in ranked])
