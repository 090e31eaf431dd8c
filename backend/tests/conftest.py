"""
Pytest configuration & fixtures for the drug search backend tests.

Key design decisions:
  - Environment is set BEFORE the application is imported, because
    Config reads it at import time.
  - The app under test gets an injected set of in-memory partitions so
    API tests never touch a real database.
  - Fake partitions (failing, slow, flaky, hanging) exercise failure
    isolation.
"""

import os
import sys
import threading
import time

import pytest

# ── 1. Ensure backend package is importable ──
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# ── 2. Set test environment BEFORE anything else ──
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FLASK_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "testing"
os.environ["SEARCH_PARTITION_TIMEOUT"] = "2.0"

# ── 3. NOW safe to import application modules ──
from pharmasearch.main import create_app
from pharmasearch.services.partitions.base_partition import Partition, PartitionError
from pharmasearch.services.partitions.memory_partition import MemoryPartition


# ═══════════════════════════════════════════
# SEED DATA  (mirrors the dataset's document shape)
# ═══════════════════════════════════════════

def _doc(name, drugbank_id=None, synonyms=(), drug_type="small molecule", unii=None):
    doc = {"name": name, "drug_type": drug_type, "unii": unii or f"UNII-{name.upper()[:6]}"}
    if drugbank_id:
        doc["drugbank_ids"] = [{"id": drugbank_id, "primary": True}]
    if synonyms:
        doc["synonyms"] = [{"name": s, "language": "english"} for s in synonyms]
    return doc


CANONICAL_DOCS = [
    _doc("Aspirin", "DB00945", synonyms=["Acetylsalicylic acid"], unii="R16CO5Y76E"),
    _doc("Aspirin Complex", "DB90001"),
    _doc("Baby Aspirin", "DB90002"),
    _doc("X", "DB90003", synonyms=["Aspirin"]),
    _doc("Ibuprofen", "DB01050", synonyms=["Advil", "Ibuprofène"]),
    _doc("Metformin", "DB00331", synonyms=["Glucophage"]),
]

REPLICA_0_DOCS = [
    # Same drug as canonical Aspirin, different casing everywhere
    _doc("ASPIRIN", "db00945"),
    _doc("Aspirin Plus", "DB90004"),
    _doc("Metformin", "DB00331"),
]

REPLICA_1_DOCS = [
    _doc("Aspirin Complex", "DB90001"),
    _doc("Aspirinum", "DB90005"),
    _doc("Lisinopril", "DB00722", synonyms=["Zestril"]),
]


# ═══════════════════════════════════════════
# FAKE PARTITIONS
# ═══════════════════════════════════════════

class FailingPartition(Partition):
    """Raises on every call, like an unreachable shard."""

    def __init__(self, name="broken"):
        self._name = name
        self.calls = 0

    @property
    def name(self):
        return self._name

    def search(self, pattern, skip, limit, synonym_rule):
        self.calls += 1
        raise PartitionError(self._name, "connection refused")

    def count(self, pattern):
        self.calls += 1
        raise PartitionError(self._name, "connection refused")


class SlowPartition(Partition):
    """Delegates to *inner* after sleeping *delay* seconds."""

    def __init__(self, inner, delay):
        self._inner = inner
        self.delay = delay

    @property
    def name(self):
        return self._inner.name

    def search(self, pattern, skip, limit, synonym_rule):
        time.sleep(self.delay)
        return self._inner.search(pattern, skip, limit, synonym_rule)

    def count(self, pattern):
        time.sleep(self.delay)
        return self._inner.count(pattern)


class FlakyPartition(Partition):
    """Fails the first *failures* calls, then delegates to *inner*."""

    def __init__(self, inner, failures=1):
        self._inner = inner
        self.failures = failures
        self.calls = 0

    @property
    def name(self):
        return self._inner.name

    def _maybe_fail(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise PartitionError(self.name, "transient error")

    def search(self, pattern, skip, limit, synonym_rule):
        self._maybe_fail()
        return self._inner.search(pattern, skip, limit, synonym_rule)

    def count(self, pattern):
        self._maybe_fail()
        return self._inner.count(pattern)


class HangingPartition(Partition):
    """Blocks every call until *release* is set, like a shard whose queries never return."""

    def __init__(self, name="hung"):
        self._name = name
        self.release = threading.Event()
        self._lock = threading.Lock()
        self.calls = 0

    @property
    def name(self):
        return self._name

    def _block(self):
        with self._lock:
            self.calls += 1
        self.release.wait()

    def search(self, pattern, skip, limit, synonym_rule):
        self._block()
        return []

    def count(self, pattern):
        self._block()
        return 0


# ═══════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════

@pytest.fixture
def canonical_partition():
    return MemoryPartition.from_documents("drugsdata", CANONICAL_DOCS)


@pytest.fixture
def partitions(canonical_partition):
    """The three overlapping partitions, canonical first."""
    return [
        canonical_partition,
        MemoryPartition.from_documents("drugsdata_0", REPLICA_0_DOCS),
        MemoryPartition.from_documents("drugsdata_1", REPLICA_1_DOCS),
    ]


@pytest.fixture
def fakes():
    """Fake partition classes for failure-isolation tests."""
    return {
        "failing": FailingPartition,
        "slow": SlowPartition,
        "flaky": FlakyPartition,
        "hanging": HangingPartition,
    }


@pytest.fixture(scope="session")
def app():
    """Create application for testing over the seeded in-memory partitions."""
    application = create_app(partitions=[
        MemoryPartition.from_documents("drugsdata", CANONICAL_DOCS),
        MemoryPartition.from_documents("drugsdata_0", REPLICA_0_DOCS),
        MemoryPartition.from_documents("drugsdata_1", REPLICA_1_DOCS),
    ])
    application.config["TESTING"] = True
    yield application
    application.extensions["drug_search"].executor.close()


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_client():
    """Build a test client for an app over a custom partition list."""
    apps = []

    def _make(partition_list):
        application = create_app(partitions=partition_list)
        application.config["TESTING"] = True
        apps.append(application)
        return application.test_client()

    yield _make
    for application in apps:
        application.extensions["drug_search"].executor.close()
