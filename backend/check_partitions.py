"""Quick check of how each partition answers a query.
Run from backend/ directory:
    python check_partitions.py aspirin
"""
import sys, os
sys.path.insert(0, os.path.dirname(__file__))
from pharmasearch.main import create_app
from pharmasearch.services.query_parser import escape_pattern, normalize_query
from pharmasearch.services.relevance import SYNONYM_CONTAINS

query = normalize_query(sys.argv[1] if len(sys.argv) > 1 else "aspirin")
if query is None:
    print("Query too short.")
    sys.exit(1)

app = create_app()
executor = app.extensions["drug_search"].executor
pattern = escape_pattern(query)

for partition in executor.partitions:
    print(f"\n=== {partition.name} ===")
    try:
        print(f"  matches: {partition.count(pattern)}")
        for ranked in partition.search(pattern, 0, 5, SYNONYM_CONTAINS):
            r = ranked.record
            print(f"  score={ranked.score:>3} id={r.primary_drugbank_id or '-':10} name={r.name}")
    except Exception as exc:
        print(f"  FAILED: {exc}")

executor.close()
