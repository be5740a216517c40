"""Tests for the text store service."""
import pytest

from textstore.exceptions import (
    DocumentEmptyError,
    ParseError,
    QueryError,
    ReadError,
    RecordConflictError,
    RecordNotFoundError,
    StorageError,
    UnknownRecordKindError,
)
from textstore.models.document import ImportPayload, StructureEntry, TextPart
from textstore.services.backend import Hit
from textstore.services.text_store import TextStore


class TestImportData:
    """Tests for TextStore.import_data."""

    @pytest.mark.asyncio
    async def test_structure_written_first_then_chunks(self, text_store, fake_backend, sample_payload):
        """Test structure, text, semantics and typography are written in that order."""
        document_id = await text_store.import_data(sample_payload)

        types = [rtype for _, rtype, _ in fake_backend.writes]
        assert types == ["structure", "text", "text", "text", "semantics", "typography"]

        structure = fake_backend.writes[0][2]
        assert structure["structure"] == [
            {"type": "doc", "name": "t", "description": "d", "depth": 0, "start": 0}
        ]
        assert isinstance(structure["time"], int)

        assert fake_backend.writes_of("text") == [
            {"document_id": document_id, "text": "a bb", "start": 0, "end": 4, "sequence": 0},
            {"document_id": document_id, "text": " ccc", "start": 4, "end": 8, "sequence": 1},
            {"document_id": document_id, "text": " dddd", "start": 8, "end": 13, "sequence": 2},
        ]

    @pytest.mark.asyncio
    async def test_annotations_tagged_without_mutating_input(self, text_store, fake_backend, sample_payload):
        """Test annotations carry the document id and the payload is left untouched."""
        document_id = await text_store.import_data(sample_payload)

        assert fake_backend.writes_of("semantics") == [
            {"start": 5, "end": 8, "type": "textus:comment", "value": "three c", "document_id": document_id}
        ]
        assert fake_backend.writes_of("typography")[0]["document_id"] == document_id
        assert "document_id" not in sample_payload.semantics[0]

    @pytest.mark.asyncio
    async def test_text_parts_joined_by_sequence(self, text_store, fake_backend):
        """Test text parts are reassembled in declared sequence order."""
        payload = ImportPayload(
            text=[TextPart(text="ccc", sequence=1), TextPart(text="a bb ", sequence=0)],
            structure=[StructureEntry(type="doc", name="t")],
        )
        document_id = await text_store.import_data(payload)

        bundle = await text_store.fetch_text(document_id, 0, 8)
        assert bundle.text == "a bb ccc"

    @pytest.mark.asyncio
    async def test_structure_failure_writes_nothing_else(self, text_store, fake_backend, sample_payload):
        """Test a failed structure write aborts before any dependent write."""
        fake_backend.fail_type = "structure"

        with pytest.raises(StorageError) as exc_info:
            await text_store.import_data(sample_payload)

        assert exc_info.value.collection == "structure"
        assert fake_backend.writes == []

    @pytest.mark.asyncio
    async def test_pipeline_failure_leaves_orphaned_structure(self, text_store, fake_backend, sample_payload):
        """Test a failed chunk write leaves the structure record without chunks."""
        fake_backend.fail_type = "text"

        with pytest.raises(StorageError) as exc_info:
            await text_store.import_data(sample_payload)

        assert exc_info.value.collection == "text"
        structures = await text_store.get_text_structures()
        assert len(structures) == 1
        orphan_id = structures[0].document_id
        assert fake_backend.writes_of("text") == []
        assert fake_backend.writes_of("semantics") == []

        bundle = await text_store.fetch_text(orphan_id, 0, 13)
        assert bundle.text == ""

    @pytest.mark.asyncio
    async def test_annotation_failure_keeps_chunks(self, text_store, fake_backend, sample_payload):
        """Test failure in a later collection leaves earlier collections written."""
        fake_backend.fail_type = "semantics"

        with pytest.raises(StorageError) as exc_info:
            await text_store.import_data(sample_payload)

        assert exc_info.value.collection == "semantics"
        assert len(fake_backend.writes_of("text")) == 3
        assert fake_backend.writes_of("typography") == []

    @pytest.mark.parametrize("chunk_size", [0, -5])
    def test_non_positive_chunk_size_rejected(self, fake_backend, chunk_size):
        """Test an unusable chunk size fails at construction, before any write."""
        with pytest.raises(ValueError):
            TextStore(fake_backend, text_chunk_size=chunk_size)
        assert fake_backend.writes == []


class TestFetchText:
    """Tests for TextStore.fetch_text."""

    @pytest.mark.asyncio
    async def test_fetch_substring(self, text_store, sample_payload):
        """Test a range spanning two chunks is reconstructed exactly."""
        document_id = await text_store.import_data(sample_payload)

        bundle = await text_store.fetch_text(document_id, 2, 7)

        assert bundle.text == "bb cc"
        assert (bundle.document_id, bundle.start, bundle.end) == (document_id, 2, 7)
        assert bundle.error is None

    @pytest.mark.asyncio
    async def test_fetch_whole_text(self, text_store, sample_payload):
        """Test the full range returns the original text."""
        document_id = await text_store.import_data(sample_payload)
        bundle = await text_store.fetch_text(document_id, 0, 13)
        assert bundle.text == "a bb ccc dddd"

    @pytest.mark.asyncio
    async def test_overlapping_annotations_returned_with_ids(self, text_store, sample_payload):
        """Test annotations overlapping the range come back with their backend ids."""
        document_id = await text_store.import_data(sample_payload)

        bundle = await text_store.fetch_text(document_id, 6, 10)
        assert [s["value"] for s in bundle.semantics] == ["three c"]
        assert bundle.semantics[0]["id"]
        assert bundle.typography == []

        bundle = await text_store.fetch_text(document_id, 0, 2)
        assert [t["css"] for t in bundle.typography] == ["font-weight: bold"]
        assert bundle.semantics == []

    @pytest.mark.asyncio
    async def test_unknown_document(self, text_store):
        """Test an unknown id reconstructs to the empty default without error."""
        bundle = await text_store.fetch_text("missing", 3, 9)
        assert bundle.text == ""
        assert bundle.error is None
        assert bundle.typography == [] and bundle.semantics == []

    @pytest.mark.asyncio
    async def test_unknown_kinds_last_one_wins(self, text_store, fake_backend, sample_payload):
        """Test unknown hit types are reported without stopping classification."""
        document_id = await text_store.import_data(sample_payload)
        fake_backend.extra_hits = [
            Hit(id="x1", type="comment", source={}),
            Hit(id="x2", type="bookmark", source={}),
        ]

        bundle = await text_store.fetch_text(document_id, 0, 13)

        assert isinstance(bundle.error, UnknownRecordKindError)
        assert bundle.error.kind == "bookmark"
        assert bundle.text == "a bb ccc dddd"
        assert len(bundle.semantics) == 1
        assert len(bundle.typography) == 1

    @pytest.mark.asyncio
    async def test_query_failure(self, text_store, fake_backend):
        """Test backend search errors surface as QueryError."""
        fake_backend.search_error = RuntimeError("timed out")
        with pytest.raises(QueryError):
            await text_store.fetch_text("doc", 0, 5)


class TestWikitextImport:
    """Tests for TextStore.load_from_wikitext_file."""

    @pytest.mark.asyncio
    async def test_import_file(self, text_store, fake_backend, tmp_path):
        """Test a wikitext file is imported with its typography."""
        path = tmp_path / "sample.wiki"
        path.write_text("Some '''bold''' words", encoding="utf-8")

        document_id = await text_store.load_from_wikitext_file(path, "Sample", "A sample text")

        bundle = await text_store.fetch_text(document_id, 0, 15)
        assert bundle.text == "Some bold words"
        assert bundle.typography[0]["start"] == 5
        assert bundle.typography[0]["end"] == 9

        structures = await text_store.get_text_structures()
        assert structures[0].structure == [
            {"type": "textus:document", "name": "Sample", "description": "A sample text", "depth": 0, "start": 0}
        ]

    @pytest.mark.asyncio
    async def test_missing_file(self, text_store, fake_backend, tmp_path):
        """Test an unreadable file fails before any backend call."""
        with pytest.raises(ReadError):
            await text_store.load_from_wikitext_file(tmp_path / "missing.wiki", "t", "d")
        assert fake_backend.writes == []

    @pytest.mark.asyncio
    async def test_empty_file(self, text_store, fake_backend, tmp_path):
        """Test an empty file is reported distinctly."""
        path = tmp_path / "empty.wiki"
        path.write_text("", encoding="utf-8")

        with pytest.raises(DocumentEmptyError):
            await text_store.load_from_wikitext_file(path, "t", "d")
        assert fake_backend.writes == []

    @pytest.mark.asyncio
    async def test_reader_failure(self, fake_backend, tmp_path):
        """Test reader exceptions are wrapped as ParseError."""
        path = tmp_path / "bad.wiki"
        path.write_text("text", encoding="utf-8")

        def broken_reader(raw):
            raise KeyError("markup")

        store = TextStore(fake_backend, wikitext_reader=broken_reader)
        with pytest.raises(ParseError):
            await store.load_from_wikitext_file(path, "t", "d")
        assert fake_backend.writes == []


class TestStructuresAndAnnotations:
    """Tests for structure listing and standalone annotations."""

    @pytest.mark.asyncio
    async def test_lists_every_structure(self, text_store, sample_payload):
        """Test each import contributes one structure record."""
        first = await text_store.import_data(sample_payload)
        second = await text_store.import_data(sample_payload)

        structures = await text_store.get_text_structures()
        assert sorted(s.document_id for s in structures) == sorted([first, second])

    @pytest.mark.asyncio
    async def test_create_semantic_annotation(self, text_store, fake_backend, sample_payload):
        """Test a standalone annotation is stored and found by range."""
        document_id = await text_store.import_data(sample_payload)

        annotation_id = await text_store.create_semantic_annotation(
            {"document_id": document_id, "start": 0, "end": 4, "type": "textus:tag"}
        )

        bundle = await text_store.fetch_text(document_id, 0, 4)
        assert annotation_id in [s["id"] for s in bundle.semantics]

    @pytest.mark.asyncio
    async def test_semantic_annotation_requires_document(self, text_store):
        """Test an annotation without an owner is rejected."""
        with pytest.raises(ValueError):
            await text_store.create_semantic_annotation({"start": 0, "end": 4})


class TestUsers:
    """Tests for user records."""

    @pytest.mark.asyncio
    async def test_user_lifecycle(self, text_store, fake_backend):
        """Test create, read, conflict, upsert and delete."""
        user = {"id": "reader@example.org", "name": "Reader"}

        assert await text_store.create_user(user) == user
        assert await text_store.get_user("reader@example.org") == user
        assert fake_backend.writes[0][0] == "textus-users"

        with pytest.raises(RecordConflictError):
            await text_store.create_user(user)

        updated = {"id": "reader@example.org", "name": "Renamed"}
        await text_store.create_or_update_user(updated)
        assert (await text_store.get_user("reader@example.org"))["name"] == "Renamed"

        assert await text_store.delete_user("reader@example.org") is True
        with pytest.raises(RecordNotFoundError):
            await text_store.get_user("reader@example.org")

    @pytest.mark.asyncio
    async def test_user_fields_named_like_backend_fields_survive(self, qdrant_text_store):
        """Test user fields sharing names with backend bookkeeping keys round-trip intact."""
        user = {"id": "a", "record_id": "zzz", "record_type": "admin", "record": {"nested": 1}}

        await qdrant_text_store.create_user(user)

        assert await qdrant_text_store.get_user("a") == user
