"""
In-process partition over a list of DrugRecord objects.
Used for small static datasets and for injecting fake partition sets.
"""

import json
from pathlib import Path
from typing import Iterable

from pharmasearch.models.records import DrugRecord, RankedDrug
from pharmasearch.services.partitions.base_partition import Partition
from pharmasearch.services.relevance import SynonymRule, matches_record, score_record, sort_key


class MemoryPartition(Partition):
    def __init__(self, name: str, records: Iterable[DrugRecord]):
        self._name = name
        self._records = tuple(records)

    @classmethod
    def from_documents(cls, name: str, documents: Iterable[dict]) -> "MemoryPartition":
        return cls(name, [DrugRecord.from_document(doc) for doc in documents])

    @classmethod
    def from_json_file(cls, name: str, path: str | Path) -> "MemoryPartition":
        """Load a JSON array of drug documents."""
        with open(path, encoding="utf-8") as fh:
            documents = json.load(fh)
        return cls.from_documents(name, documents)

    @property
    def name(self) -> str:
        return self._name

    def search(self, pattern, skip, limit, synonym_rule: SynonymRule):
        ranked = [
            RankedDrug(record=r, score=score_record(r, pattern, synonym_rule), partition=self._name)
            for r in self._records
            if matches_record(r, pattern)
        ]
        ranked.sort(key=sort_key)
        return ranked[skip:skip + limit]

    def count(self, pattern):
        return sum(1 for r in self._records if matches_record(r, pattern))
