"""Prometheus metrics for the note store.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Gauge, Histogram

NOTE_OPERATIONS = Counter(
    "notes_operations_total",
    "Total number of note store operations",
    ["operation", "status"],  # ok, not_found, rejected, error
)

NOTE_OPERATION_DURATION = Histogram(
    "notes_operation_duration_seconds",
    "Duration of note store operations in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

NOTES_STORED = Gauge(
    "notes_stored",
    "Number of notes in the persisted collection",
)
