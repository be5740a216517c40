"""Backend-neutral queries over stored records."""
from dataclasses import dataclass
from typing import Any, Dict

# Hard cap on hits returned by a single query; larger result sets are truncated
MAX_RESULTS = 10000


@dataclass(frozen=True)
class RangeQuery:
    """Selects records of one document whose [start, end] interval overlaps a range."""

    document_id: str
    start: int
    end: int
    size: int = MAX_RESULTS

    def matches(self, record: Dict[str, Any]) -> bool:
        """Evaluate the overlap predicate against a stored record."""
        if record.get("document_id") != self.document_id:
            return False
        if "start" not in record or "end" not in record:
            return False
        return record["start"] < self.end and record["end"] >= self.start


@dataclass(frozen=True)
class TypeQuery:
    """Selects every record of one type."""

    record_type: str
    size: int = MAX_RESULTS


def build_range_query(document_id: str, start: int, end: int) -> RangeQuery:
    """
    Build a query for all records of a document overlapping ``[start, end)``.

    A record is selected when ``record.start < end`` and ``record.end >= start``,
    so a record ending exactly at ``start`` is included and one starting exactly
    at ``end`` is not.
    """
    return RangeQuery(document_id=document_id, start=start, end=end)


def build_type_query(record_type: str) -> TypeQuery:
    """Build a match-all query filtered to one record type."""
    return TypeQuery(record_type=record_type)
