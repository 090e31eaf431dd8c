"""
Cross-partition merge and deduplication.

Partitions hold overlapping copies of the same drugs, so results are
collapsed on the primary DrugBank id (falling back to the name when a
record carries no id). The first copy seen wins, which makes partition
order significant. After deduplication the merged list is re-sorted by
score so a page has one global order rather than partition blocks.
"""

from typing import Iterable

from pharmasearch.models.records import DrugRecord, RankedDrug
from pharmasearch.services.relevance import sort_key


def dedup_key(record: DrugRecord) -> str:
    primary = record.primary_drugbank_id
    if primary:
        return f"id:{primary.strip().upper()}"
    return f"name:{(record.name or '').strip().casefold()}"


def merge_results(per_partition: Iterable[list[RankedDrug]], resort: bool = True) -> list[RankedDrug]:
    seen: set[str] = set()
    merged: list[RankedDrug] = []
    for results in per_partition:
        for ranked in results:
            key = dedup_key(ranked.record)
            if key in seen:
                continue
            seen.add(key)
            merged.append(ranked)

    if resort:
        # sort() is stable: equal keys keep partition order
        merged.sort(key=sort_key)
    return merged
