"""
Drug record value types shared by every partition backend.

Records come from an externally loaded dataset whose documents are only
loosely typed, so every field except the name may be missing. Missing
lists become empty lists and missing scalars become None; nothing here
raises on a sparse document.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Synonym:
    name: str
    language: Optional[str] = None
    coder: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "language": self.language, "coder": self.coder}


@dataclass(frozen=True)
class DrugbankId:
    id: str
    primary: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "primary": self.primary}


@dataclass
class DrugRecord:
    """A searchable drug as stored in one partition."""
    name: str
    drugbank_ids: list[DrugbankId] = field(default_factory=list)
    synonyms: list[Synonym] = field(default_factory=list)
    drug_type: Optional[str] = None
    unii: Optional[str] = None
    description: Optional[str] = None
    cas_number: Optional[str] = None

    @property
    def primary_drugbank_id(self) -> Optional[str]:
        """The id flagged primary, else the first listed id."""
        for ident in self.drugbank_ids:
            if ident.primary and ident.id:
                return ident.id
        for ident in self.drugbank_ids:
            if ident.id:
                return ident.id
        return None

    @classmethod
    def from_document(cls, doc: dict) -> "DrugRecord":
        """Build a record from a raw dataset document, tolerating sparse shapes."""
        doc = doc if isinstance(doc, dict) else {}

        drugbank_ids = []
        for raw in doc.get("drugbank_ids") or []:
            if isinstance(raw, dict):
                ident = _str_or_none(raw.get("id"))
                if ident:
                    drugbank_ids.append(DrugbankId(id=ident, primary=bool(raw.get("primary"))))
            elif isinstance(raw, str) and raw.strip():
                drugbank_ids.append(DrugbankId(id=raw.strip()))
        # A single top-level id is how autocomplete projections carry it
        single_id = _str_or_none(doc.get("drugbank_id"))
        if single_id and not drugbank_ids:
            drugbank_ids.append(DrugbankId(id=single_id, primary=True))

        synonyms = []
        for raw in doc.get("synonyms") or []:
            if isinstance(raw, dict):
                syn_name = _str_or_none(raw.get("name"))
                if syn_name:
                    synonyms.append(Synonym(
                        name=syn_name,
                        language=_str_or_none(raw.get("language")),
                        coder=_str_or_none(raw.get("coder")),
                    ))
            elif isinstance(raw, str) and raw.strip():
                synonyms.append(Synonym(name=raw.strip()))

        return cls(
            name=_str_or_none(doc.get("name")) or "",
            drugbank_ids=drugbank_ids,
            synonyms=synonyms,
            drug_type=_str_or_none(doc.get("drug_type")),
            unii=_str_or_none(doc.get("unii")),
            description=_str_or_none(doc.get("description")),
            cas_number=_str_or_none(doc.get("cas_number")),
        )

    # ── Presentation projections (never carry a relevance score) ──

    def to_search_item(self) -> dict:
        return {
            "name": self.name,
            "drugbank_id": self.primary_drugbank_id,
            "drugbank_ids": [d.to_dict() for d in self.drugbank_ids],
            "drug_type": self.drug_type,
            "unii": self.unii,
            "cas_number": self.cas_number,
            "description": self.description,
            "synonyms": [s.to_dict() for s in self.synonyms],
        }

    def to_autocomplete_item(self) -> dict:
        return {
            "name": self.name,
            "unii": self.unii,
            "drug_type": self.drug_type,
            "drugbank_id": self.primary_drugbank_id,
        }


@dataclass(frozen=True)
class RankedDrug:
    """A record plus the transient score it was ordered by."""
    record: DrugRecord
    score: int
    partition: str = ""
