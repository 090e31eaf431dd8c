"""
Tiered relevance scoring for drug-name matches.

Tiers are evaluated in order and the first match wins:
  100  name equals the query
   80  name starts with the query
   60  name contains the query
   50/40  synonym rule (exact for autocomplete, contains for full search)
   10  anything else that passed the partition filter

All patterns passed in here are already escaped by query_parser, so the
templates below only anchor them. The same tier table drives the Python
scorer and the SQL CASE expression built by SqlPartition.
"""

import re
from dataclasses import dataclass

from pharmasearch.models.records import DrugRecord

EXACT_NAME_SCORE = 100
PREFIX_NAME_SCORE = 80
CONTAINS_NAME_SCORE = 60
DEFAULT_SCORE = 10


@dataclass(frozen=True)
class SynonymRule:
    """How a synonym match is scored; the two search paths differ on purpose."""
    score: int
    template: str

    def regex(self, pattern: str) -> str:
        return self.template.format(pattern)


SYNONYM_EXACT = SynonymRule(score=50, template="^{}$")
SYNONYM_CONTAINS = SynonymRule(score=40, template="{}")


def name_tiers(pattern: str) -> list[tuple[int, str]]:
    """(score, regex) pairs for the primary-name tiers, highest first."""
    return [
        (EXACT_NAME_SCORE, f"^{pattern}$"),
        (PREFIX_NAME_SCORE, f"^{pattern}"),
        (CONTAINS_NAME_SCORE, pattern),
    ]


def _search(regex: str, value) -> bool:
    return bool(value) and re.search(regex, value, re.IGNORECASE) is not None


def matches_record(record: DrugRecord, pattern: str) -> bool:
    """Partition filter: name or any synonym contains the pattern."""
    if _search(pattern, record.name):
        return True
    return any(_search(pattern, s.name) for s in record.synonyms)


def score_record(record: DrugRecord, pattern: str,
                 synonym_rule: SynonymRule = SYNONYM_CONTAINS) -> int:
    for score, regex in name_tiers(pattern):
        if _search(regex, record.name):
            return score
    synonym_regex = synonym_rule.regex(pattern)
    if any(_search(synonym_regex, s.name) for s in record.synonyms):
        return synonym_rule.score
    return DEFAULT_SCORE


def sort_key(ranked) -> tuple:
    """Score descending, then name ascending ignoring case (raw name breaks ties)."""
    name = ranked.record.name
    return (-ranked.score, name.lower(), name)
