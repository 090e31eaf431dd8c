"""
Drug record parsing & projection tests.
Sparse documents must never raise, and projections never carry a score.
"""

import json

from pharmasearch.models.records import DrugbankId, DrugRecord, RankedDrug, Synonym


class TestFromDocument:
    def test_full_document(self):
        record = DrugRecord.from_document({
            "name": "Aspirin",
            "drugbank_ids": [{"id": "DB00945", "primary": True}, {"id": "APRD00264", "primary": False}],
            "synonyms": [{"name": "Acetylsalicylic acid", "language": "english", "coder": "inn"}],
            "drug_type": "small molecule",
            "unii": "R16CO5Y76E",
            "cas_number": "50-78-2",
            "description": "An NSAID.",
        })
        assert record.name == "Aspirin"
        assert record.primary_drugbank_id == "DB00945"
        assert record.synonyms == [Synonym("Acetylsalicylic acid", "english", "inn")]
        assert record.cas_number == "50-78-2"

    def test_empty_and_garbage_documents(self):
        for doc in ({}, None, "not a dict", {"name": None, "synonyms": None, "drugbank_ids": None}):
            record = DrugRecord.from_document(doc)
            assert record.name == ""
            assert record.synonyms == []
            assert record.drugbank_ids == []
            assert record.primary_drugbank_id is None

    def test_malformed_nested_entries_skipped(self):
        record = DrugRecord.from_document({
            "name": "X",
            "synonyms": [{"language": "english"}, None, 7, "Plain Synonym", {"name": "  "}],
            "drugbank_ids": [{"primary": True}, None, "DB00001"],
        })
        assert [s.name for s in record.synonyms] == ["Plain Synonym"]
        assert record.primary_drugbank_id == "DB00001"

    def test_single_top_level_id(self):
        record = DrugRecord.from_document({"name": "X", "drugbank_id": "DB00002"})
        assert record.drugbank_ids == [DrugbankId("DB00002", primary=True)]


class TestPrimaryId:
    def test_primary_flag_beats_position(self):
        record = DrugRecord(name="X", drugbank_ids=[DrugbankId("DB1"), DrugbankId("DB2", primary=True)])
        assert record.primary_drugbank_id == "DB2"

    def test_first_id_when_none_flagged(self):
        record = DrugRecord(name="X", drugbank_ids=[DrugbankId("DB1"), DrugbankId("DB2")])
        assert record.primary_drugbank_id == "DB1"


class TestProjections:
    def _ranked(self):
        record = DrugRecord.from_document({
            "name": "Aspirin",
            "drugbank_ids": [{"id": "DB00945", "primary": True}],
            "drug_type": "small molecule",
            "unii": "R16CO5Y76E",
        })
        return RankedDrug(record=record, score=100, partition="drugsdata")

    def test_search_item_has_no_score(self):
        item = self._ranked().record.to_search_item()
        assert "relevance" not in item and "score" not in item
        assert item["drugbank_id"] == "DB00945"
        assert item["drugbank_ids"] == [{"id": "DB00945", "primary": True}]
        json.dumps(item)

    def test_autocomplete_item_shape(self):
        item = self._ranked().record.to_autocomplete_item()
        assert item == {
            "name": "Aspirin",
            "unii": "R16CO5Y76E",
            "drug_type": "small molecule",
            "drugbank_id": "DB00945",
        }
