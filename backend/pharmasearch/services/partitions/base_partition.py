"""
Base class for all drug partitions.
Every partition must implement the same filter + score + window query so
the executor can fan a search out to any mix of backends.
"""

from abc import ABC, abstractmethod

from pharmasearch.models.records import RankedDrug
from pharmasearch.services.relevance import SynonymRule


class PartitionError(Exception):
    """A partition could not answer a query."""

    def __init__(self, partition: str, message: str):
        super().__init__(f"[{partition}] {message}")
        self.partition = partition


class Partition(ABC):
    """Abstract base class for an independently queryable drug store."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable partition name used in logs and outcomes."""
        ...

    @abstractmethod
    def search(self, pattern: str, skip: int, limit: int,
               synonym_rule: SynonymRule) -> list[RankedDrug]:
        """
        Return records whose name or a synonym contains *pattern*,
        scored, sorted by score descending then name ascending, and
        windowed by skip/limit.
        """
        ...

    @abstractmethod
    def count(self, pattern: str) -> int:
        """Number of records passing the same filter as search()."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
