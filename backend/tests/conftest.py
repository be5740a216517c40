"""Pytest configuration and fixtures."""
from typing import Any, Dict, List, Optional, Tuple

import pytest
from qdrant_client import AsyncQdrantClient

from textstore.exceptions import RecordConflictError
from textstore.models.document import ImportPayload, StructureEntry, TextPart
from textstore.services.backend import Hit, IndexOptions, SearchBackend, SearchResult
from textstore.services.qdrant_backend import QdrantBackend
from textstore.services.range_query import RangeQuery, TypeQuery
from textstore.services.text_store import TextStore


class FakeBackend(SearchBackend):
    """In-process backend recording every write, with failure injection."""

    def __init__(self):
        self.records: Dict[str, Dict[str, Tuple[str, Dict[str, Any]]]] = {}
        self.writes: List[Tuple[str, str, Dict[str, Any]]] = []
        # Writes of fail_type raise once fail_at writes of that type have succeeded
        self.fail_type: Optional[str] = None
        self.fail_at = 0
        self.search_error: Optional[Exception] = None
        self.extra_hits: List[Hit] = []
        self._counter = 0

    def writes_of(self, record_type: str) -> List[Dict[str, Any]]:
        return [record for _, rtype, record in self.writes if rtype == record_type]

    async def index(self, collection, record_type, record, options=None):
        options = options or IndexOptions()
        if record_type == self.fail_type and len(self.writes_of(record_type)) >= self.fail_at:
            raise RuntimeError("backend unavailable")

        store = self.records.setdefault(collection, {})
        if options.create and options.id in store:
            raise RecordConflictError(f"Record {options.id} already exists", collection=record_type)

        self._counter += 1
        record_id = options.id or f"id-{self._counter}"
        store[record_id] = (record_type, dict(record))
        self.writes.append((collection, record_type, dict(record)))
        return record_id

    async def get(self, collection, record_id):
        entry = self.records.get(collection, {}).get(record_id)
        return dict(entry[1]) if entry else None

    async def delete(self, collection, record_type, record_id):
        self.records.get(collection, {}).pop(record_id, None)
        return True

    async def search(self, collection, query):
        if self.search_error is not None:
            raise self.search_error

        hits = []
        for record_id, (record_type, record) in self.records.get(collection, {}).items():
            if isinstance(query, RangeQuery) and query.matches(record):
                hits.append(Hit(id=record_id, type=record_type, source=dict(record)))
            elif isinstance(query, TypeQuery) and record_type == query.record_type:
                hits.append(Hit(id=record_id, type=record_type, source=dict(record)))
        hits.extend(self.extra_hits)
        return SearchResult(hits=hits[:query.size])


@pytest.fixture
def fake_backend():
    """In-memory backend with failure injection."""
    return FakeBackend()


@pytest.fixture
def text_store(fake_backend):
    """Text store over the fake backend, with a small chunk size."""
    return TextStore(fake_backend, text_chunk_size=5)


@pytest.fixture
def qdrant_backend():
    """Backend over an in-memory Qdrant instance."""
    return QdrantBackend(client=AsyncQdrantClient(location=":memory:"))


@pytest.fixture
def qdrant_text_store(qdrant_backend):
    """Text store over in-memory Qdrant."""
    return TextStore(qdrant_backend, text_chunk_size=5)


@pytest.fixture
def sample_payload():
    """Short document with one annotation of each kind."""
    return ImportPayload(
        text=[TextPart(text="a bb ccc dddd", sequence=0)],
        semantics=[{"start": 5, "end": 8, "type": "textus:comment", "value": "three c"}],
        typography=[{"start": 0, "end": 1, "css": "font-weight: bold"}],
        structure=[StructureEntry(type="doc", name="t", description="d", depth=0, start=0)],
    )


@pytest.fixture
def long_text():
    """Multi-sentence text with words of varied length."""
    words = []
    for i in range(200):
        words.append("w" * (1 + (i * 7) % 11) + str(i))
    return " ".join(words)
