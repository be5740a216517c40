"""Prometheus metrics for the text store."""
from prometheus_client import Counter

documents_imported = Counter(
    "textstore_documents_imported_total",
    "Documents whose structure, chunks and annotations were fully indexed",
)

import_failures = Counter(
    "textstore_import_failures_total",
    "Imports aborted by a failed write",
    ["collection"],
)

records_indexed = Counter(
    "textstore_records_indexed_total",
    "Records written by the index pipeline",
    ["collection"],
)

range_fetches = Counter(
    "textstore_range_fetches_total",
    "Text range fetches executed",
)

unknown_record_kinds = Counter(
    "textstore_unknown_record_kinds_total",
    "Search hits with a record type outside the known collections",
)
