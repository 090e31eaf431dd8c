"""
SQL partition backed by SQLAlchemy Core.

Filtering and scoring run inside the database so each partition only
returns its own scored, sorted window. Regex matching goes through
ColumnOperators.regexp_match on lower-cased values: PostgreSQL and MySQL
use their native operators, SQLite uses the Python re function that
SQLAlchemy registers on pysqlite connections.

Every connection is bounded by the partition timeout on the database side
(statement_timeout on PostgreSQL, max_execution_time on MySQL, a progress
handler on SQLite) so an abandoned call frees its worker thread. SQLite
also gets a Unicode lower() so case folding matches the Python scorer.
"""

import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import String, case, func, or_, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from pharmasearch.models.models import PartitionTables, partition_tables
from pharmasearch.models.records import DrugbankId, DrugRecord, RankedDrug, Synonym
from pharmasearch.services.partitions.base_partition import Partition, PartitionError
from pharmasearch.services.relevance import DEFAULT_SCORE, SynonymRule, name_tiers

logger = logging.getLogger("pharmasearch.partitions.sql")


def _lower_match(column, regex: str):
    # Escapes only precede punctuation, so lower-casing the pattern is safe
    return func.lower(column, type_=String).regexp_match(regex.lower())


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def statement_timeout_sql(dialect: str, timeout: Optional[float]) -> Optional[str]:
    """Session statement bounding query time on *dialect*, if it has one."""
    if not timeout:
        return None
    millis = max(1, int(timeout * 1000))
    if dialect == "postgresql":
        return f"SET LOCAL statement_timeout = {millis}"
    if dialect == "mysql":
        return f"SET SESSION max_execution_time = {millis}"
    if dialect == "mariadb":
        return f"SET SESSION max_statement_time = {millis / 1000:.3f}"
    return None


class SqlPartition(Partition):
    def __init__(self, name: str, engine: Engine, tables: PartitionTables | None = None,
                 timeout: Optional[float] = None):
        self._name = name
        self._engine = engine
        self._tables = tables or partition_tables(name)
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    # ── Expression builders ──

    def _synonym_exists(self, regex: str):
        syn = self._tables.synonyms
        return (
            select(syn.c.id)
            .where(syn.c.drug_id == self._tables.drugs.c.id, _lower_match(syn.c.name, regex))
            .exists()
        )

    def _filter(self, pattern: str):
        return or_(
            _lower_match(self._tables.drugs.c.name, pattern),
            self._synonym_exists(pattern),
        )

    def _score(self, pattern: str, synonym_rule: SynonymRule):
        name_col = self._tables.drugs.c.name
        whens = [(_lower_match(name_col, regex), score) for score, regex in name_tiers(pattern)]
        whens.append((self._synonym_exists(synonym_rule.regex(pattern)), synonym_rule.score))
        return case(*whens, else_=DEFAULT_SCORE)

    # ── Connections ──

    @contextmanager
    def _connect(self):
        with self._engine.connect() as conn:
            raw = None
            if conn.dialect.name == "sqlite":
                raw = conn.connection.driver_connection
                raw.create_function("lower", 1, _unicode_lower, deterministic=True)
                if self._timeout:
                    deadline = time.monotonic() + self._timeout
                    raw.set_progress_handler(lambda: time.monotonic() > deadline, 1000)
            else:
                bound = statement_timeout_sql(conn.dialect.name, self._timeout)
                if bound:
                    conn.execute(text(bound))
            try:
                yield conn
            finally:
                if raw is not None:
                    raw.set_progress_handler(None, 0)

    # ── Queries ──

    def search(self, pattern, skip, limit, synonym_rule):
        drugs = self._tables.drugs
        relevance = self._score(pattern, synonym_rule).label("relevance")
        stmt = (
            select(drugs, relevance)
            .where(self._filter(pattern))
            .order_by(
                relevance.desc(),
                func.lower(drugs.c.name, type_=String).asc(),
                drugs.c.name.asc(),
                drugs.c.id.asc(),
            )
            .offset(skip)
            .limit(limit)
        )
        try:
            with self._connect() as conn:
                rows = conn.execute(stmt).mappings().all()
                synonyms, drugbank_ids = self._load_children(conn, [row["id"] for row in rows])
        except SQLAlchemyError as exc:
            raise PartitionError(self._name, str(exc)) from exc

        logger.debug("Partition %s returned %d rows for %r", self._name, len(rows), pattern)
        return [
            RankedDrug(
                record=DrugRecord(
                    name=row["name"] or "",
                    drugbank_ids=drugbank_ids.get(row["id"], []),
                    synonyms=synonyms.get(row["id"], []),
                    drug_type=row["drug_type"],
                    unii=row["unii"],
                    description=row["description"],
                    cas_number=row["cas_number"],
                ),
                score=int(row["relevance"]),
                partition=self._name,
            )
            for row in rows
        ]

    def count(self, pattern):
        stmt = select(func.count()).select_from(self._tables.drugs).where(self._filter(pattern))
        try:
            with self._connect() as conn:
                return int(conn.execute(stmt).scalar_one())
        except SQLAlchemyError as exc:
            raise PartitionError(self._name, str(exc)) from exc

    def _load_children(self, conn, drug_ids: list[int]):
        """Fetch synonyms and drugbank ids for one page of drugs."""
        synonyms: dict[int, list[Synonym]] = defaultdict(list)
        drugbank_ids: dict[int, list[DrugbankId]] = defaultdict(list)
        if not drug_ids:
            return synonyms, drugbank_ids

        syn = self._tables.synonyms
        for row in conn.execute(
            select(syn).where(syn.c.drug_id.in_(drug_ids)).order_by(syn.c.id)
        ).mappings():
            synonyms[row["drug_id"]].append(
                Synonym(name=row["name"], language=row["language"], coder=row["coder"])
            )

        ids = self._tables.drugbank_ids
        for row in conn.execute(
            select(ids).where(ids.c.drug_id.in_(drug_ids)).order_by(ids.c.id)
        ).mappings():
            drugbank_ids[row["drug_id"]].append(
                DrugbankId(id=row["drugbank_id"], primary=bool(row["is_primary"]))
            )
        return synonyms, drugbank_ids
