"""
SQLAlchemy table definitions for drug partitions.

Each partition is a named set of three tables in the same database:
  <name>               – one row per drug
  <name>_synonyms      – alternative names, optional language/coder
  <name>_drugbank_ids  – external ids, one flagged primary
Partitions are declared on demand because their names come from config.
"""

from typing import NamedTuple

from sqlalchemy import Table

from pharmasearch.database import db


class PartitionTables(NamedTuple):
    drugs: Table
    synonyms: Table
    drugbank_ids: Table


def partition_tables(name: str) -> PartitionTables:
    """Return the tables for partition *name*, declaring them on first use."""
    metadata = db.metadata
    synonyms_name = f"{name}_synonyms"
    ids_name = f"{name}_drugbank_ids"

    if name in metadata.tables:
        return PartitionTables(
            metadata.tables[name],
            metadata.tables[synonyms_name],
            metadata.tables[ids_name],
        )

    drugs = db.Table(
        name,
        db.Column("id", db.Integer, primary_key=True, autoincrement=True),
        db.Column("name", db.String(512), nullable=False, index=True),
        db.Column("unii", db.String(64)),
        db.Column("drug_type", db.String(64)),
        db.Column("description", db.Text),
        db.Column("cas_number", db.String(64)),
    )
    synonyms = db.Table(
        synonyms_name,
        db.Column("id", db.Integer, primary_key=True, autoincrement=True),
        db.Column("drug_id", db.Integer, db.ForeignKey(f"{name}.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        db.Column("name", db.String(1024), nullable=False),
        db.Column("language", db.String(64)),
        db.Column("coder", db.String(255)),
    )
    drugbank_ids = db.Table(
        ids_name,
        db.Column("id", db.Integer, primary_key=True, autoincrement=True),
        db.Column("drug_id", db.Integer, db.ForeignKey(f"{name}.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        db.Column("drugbank_id", db.String(32), nullable=False, index=True),
        db.Column("is_primary", db.Boolean, nullable=False, default=False),
    )
    return PartitionTables(drugs, synonyms, drugbank_ids)
