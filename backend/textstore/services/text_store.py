"""Text store service: chunked document import and range retrieval."""
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

from textstore.exceptions import (
    ParseError,
    QueryError,
    RecordNotFoundError,
    StorageError,
    UnknownRecordKindError,
)
from textstore.models.document import (
    Annotation,
    ImportPayload,
    StructureEntry,
    TextBundle,
    TextChunk,
    TextPart,
    TextStructure,
)
from textstore.services.backend import IndexOptions, Query, SearchBackend, SearchResult
from textstore.services.chunk_splitter import assemble_text, split_text
from textstore.services.index_pipeline import IndexPipeline, PipelineCollection
from textstore.services.range_query import build_range_query, build_type_query
from textstore.services.range_reconstructor import reconstruct
from textstore.services.wikitext_reader import ParsedText, read_source_file, read_wikitext
from textstore.utils import metrics
from textstore.utils.logger import logger

STRUCTURE_TYPE = "structure"
TEXT_TYPE = "text"
SEMANTICS_TYPE = "semantics"
TYPOGRAPHY_TYPE = "typography"
USER_TYPE = "user"

DEFAULT_CHUNK_SIZE = 1000


class TextStore:
    """Stores long texts as offset-addressed chunks and serves arbitrary ranges of them."""

    def __init__(
        self,
        backend: SearchBackend,
        index_name: str = "textus",
        users_index_name: str = "textus-users",
        text_chunk_size: int = DEFAULT_CHUNK_SIZE,
        wikitext_reader: Callable[[str], ParsedText] = read_wikitext,
    ):
        """
        Initialize text store.

        Args:
            backend: Search backend holding all records
            index_name: Backend collection for structure, chunks and annotations
            users_index_name: Backend collection for user records
            text_chunk_size: Maximum chunk length used when splitting imported text
            wikitext_reader: Markup reader used by file imports

        Raises:
            ValueError: If text_chunk_size is not positive
        """
        if text_chunk_size <= 0:
            raise ValueError(f"text_chunk_size must be positive, got {text_chunk_size}")
        self.backend = backend
        self.index_name = index_name
        self.users_index_name = users_index_name
        self.text_chunk_size = text_chunk_size
        self.wikitext_reader = wikitext_reader
        self.pipeline = IndexPipeline(backend, index_name)

    async def import_data(self, payload: ImportPayload) -> str:
        """
        Index a document, returning its new document id.

        The structure record is written first and its generated id becomes the
        document id. Chunks, semantics and typography follow through the index
        pipeline. If the pipeline fails the structure record is left in place
        without its dependents and the id is not returned.

        Raises:
            StorageError: Naming the collection whose write failed
        """
        structure_record = {
            "time": int(time.time() * 1000),
            "structure": [entry.to_dict() for entry in payload.structure],
        }
        try:
            document_id = await self.backend.index(
                self.index_name, STRUCTURE_TYPE, structure_record, IndexOptions(refresh=self.pipeline.refresh)
            )
        except Exception as e:
            metrics.import_failures.labels(collection=STRUCTURE_TYPE).inc()
            raise StorageError(
                f"Error while indexing {STRUCTURE_TYPE}: {str(e)}", collection=STRUCTURE_TYPE
            ) from e

        logger.info(f"Registered structure, textID set to {document_id}", extra={"document_id": document_id})

        spans = split_text(self.text_chunk_size, assemble_text(payload.text))
        chunks = [TextChunk.from_span(document_id, span, sequence) for sequence, span in enumerate(spans)]

        collections = [
            PipelineCollection(TEXT_TYPE, [chunk.to_record() for chunk in chunks]),
            PipelineCollection(SEMANTICS_TYPE, self._tag_annotations(payload.semantics, document_id)),
            PipelineCollection(TYPOGRAPHY_TYPE, self._tag_annotations(payload.typography, document_id)),
        ]

        try:
            await self.pipeline.run(collections)
        except StorageError:
            logger.error(
                f"Import failed, structure record {document_id} has no indexed content",
                extra={"document_id": document_id},
            )
            raise

        metrics.documents_imported.inc()
        logger.info(
            f"Imported text with text ID : {document_id}",
            extra={"document_id": document_id, "chunk_count": len(chunks)},
        )
        return document_id

    @staticmethod
    def _tag_annotations(annotations: List[Dict[str, Any]], document_id: str) -> List[Dict[str, Any]]:
        return [Annotation.from_dict(data).tagged(document_id).to_record() for data in annotations]

    async def _search(self, query: Query) -> SearchResult:
        try:
            return await self.backend.search(self.index_name, query)
        except QueryError:
            raise
        except Exception as e:
            raise QueryError(f"Search failed: {str(e)}") from e

    async def fetch_text(self, document_id: str, start: int, end: int) -> TextBundle:
        """
        Retrieve text and the annotations overlapping ``[start, end)``.

        An unknown document id yields an empty text rather than an error. Hits of
        an unknown record type are skipped and reported through ``bundle.error``;
        when several occur the last one is kept.

        Args:
            document_id: Id of the document
            start: First character offset of the result
            end: Offset one past the last character of the result

        Returns:
            TextBundle with the text, typography and semantics for the range

        Raises:
            QueryError: If the backend search fails
        """
        metrics.range_fetches.inc()
        result = await self._search(build_range_query(document_id, start, end))

        chunks: List[TextChunk] = []
        typography: List[Dict[str, Any]] = []
        semantics: List[Dict[str, Any]] = []
        error = None

        for hit in result.hits:
            if hit.type == TEXT_TYPE:
                chunks.append(TextChunk.from_record(hit.source))
            elif hit.type == TYPOGRAPHY_TYPE:
                typography.append(dict(hit.source, id=hit.id))
            elif hit.type == SEMANTICS_TYPE:
                semantics.append(dict(hit.source, id=hit.id))
            else:
                error = UnknownRecordKindError(hit.type)
                metrics.unknown_record_kinds.inc()
                logger.warning(str(error), extra={"document_id": document_id})

        logger.debug(
            f"Fetched range {start}-{end}",
            extra={"document_id": document_id, "hit_count": len(result.hits), "chunk_count": len(chunks)},
        )
        return TextBundle(
            document_id=document_id,
            text=reconstruct(start, end, chunks).text,
            start=start,
            end=end,
            typography=typography,
            semantics=semantics,
            error=error,
        )

    async def load_from_wikitext_file(self, path: Union[str, Path], title: str, description: str) -> str:
        """
        Import a wikitext file as a single-part document.

        Args:
            path: File to import
            title: Name of the top level structure entry
            description: Description of the top level structure entry

        Returns:
            The new document id

        Raises:
            ReadError: If the file is unreadable (DocumentEmptyError when empty)
            ParseError: If the markup reader fails
            StorageError: If indexing fails
        """
        data = read_source_file(path)
        try:
            parsed = self.wikitext_reader(data)
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(f"Failed to parse {path}: {str(e)}") from e

        payload = ImportPayload(
            text=[TextPart(text=parsed.text, sequence=0)],
            typography=parsed.typography,
            semantics=[],
            structure=[
                StructureEntry(type="textus:document", name=title, description=description, depth=0, start=0)
            ],
        )
        try:
            return await self.import_data(payload)
        except StorageError as e:
            logger.error(f"Import to data store failed : {str(e)}")
            raise

    async def get_text_structures(self) -> List[TextStructure]:
        """Return the id and structure of every stored document."""
        result = await self._search(build_type_query(STRUCTURE_TYPE))
        return [
            TextStructure(document_id=hit.id, structure=hit.source.get("structure", []))
            for hit in result.hits
        ]

    async def create_semantic_annotation(self, annotation: Dict[str, Any]) -> str:
        """Index a single semantic annotation, returning its id."""
        if not annotation.get("document_id"):
            raise ValueError("Semantic annotation requires a document_id")
        record = Annotation.from_dict(annotation).to_record()
        return await self.backend.index(self.index_name, SEMANTICS_TYPE, record, IndexOptions(refresh=True))

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        user = await self.backend.get(self.users_index_name, user_id)
        if user is None:
            raise RecordNotFoundError(f"No such user: {user_id}")
        return user

    async def create_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new user; fails with RecordConflictError if the id is taken."""
        await self.backend.index(
            self.users_index_name, USER_TYPE, user, IndexOptions(id=user["id"], create=True, refresh=True)
        )
        return user

    async def create_or_update_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """As create_user, but overwrites an existing user."""
        await self.backend.index(
            self.users_index_name, USER_TYPE, user, IndexOptions(id=user["id"], create=False, refresh=True)
        )
        return user

    async def delete_user(self, user_id: str) -> bool:
        return await self.backend.delete(self.users_index_name, USER_TYPE, user_id)
