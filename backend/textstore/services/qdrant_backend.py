"""Search backend using Qdrant payload storage and filtering."""
import asyncio
import uuid
from typing import Any, Dict, Optional, Set

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointIdsList,
    PointStruct,
    Range,
    VectorParams,
)

from textstore.exceptions import QueryError, RecordConflictError, StorageError
from textstore.services.backend import Hit, IndexOptions, Query, SearchBackend, SearchResult
from textstore.services.range_query import RangeQuery, TypeQuery
from textstore.utils.logger import logger

# Payload layout: the caller's record is nested under RECORD_FIELD beside the bookkeeping fields
RECORD_FIELD = "record"
TYPE_FIELD = "record_type"
ID_FIELD = "record_id"

# Records are stored as payload only; every point carries the same one-dimensional vector
_PLACEHOLDER_VECTOR = [0.0]


def to_filter(query: Query) -> Filter:
    """Translate a backend-neutral query into a Qdrant payload filter."""
    if isinstance(query, RangeQuery):
        return Filter(
            must=[
                FieldCondition(key=f"{RECORD_FIELD}.document_id", match=MatchValue(value=query.document_id)),
                FieldCondition(key=f"{RECORD_FIELD}.start", range=Range(lt=query.end)),
                FieldCondition(key=f"{RECORD_FIELD}.end", range=Range(gte=query.start)),
            ]
        )
    if isinstance(query, TypeQuery):
        return Filter(must=[FieldCondition(key=TYPE_FIELD, match=MatchValue(value=query.record_type))])
    raise ValueError(f"Unsupported query type: {type(query).__name__}")


class QdrantBackend(SearchBackend):
    """Stores typed records as Qdrant points, one Qdrant collection per backend collection."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        protocol: str = "http",
        timeout: int = 30,
        path: Optional[str] = None,
        client: Optional[AsyncQdrantClient] = None,
    ):
        """
        Initialize Qdrant client.

        Args:
            host: Qdrant server host
            port: Qdrant server HTTP port
            protocol: "http" or "https"
            timeout: Request timeout in seconds
            path: Local storage directory; when set, Qdrant runs embedded and host/port are ignored
            client: Pre-built client, used as is
        """
        if client is not None:
            self.client = client
        elif path:
            self.client = AsyncQdrantClient(path=path)
            logger.info(f"Qdrant initialized at {path}")
        else:
            self.client = AsyncQdrantClient(
                host=host,
                port=port,
                https=protocol == "https",
                timeout=timeout,
            )
            logger.info(f"Qdrant client configured for {protocol}://{host}:{port}")

        self._known_collections: Set[str] = set()
        self._collection_lock = asyncio.Lock()
        # Create-only writes hold their collection's lock across the existence check and the upsert
        self._write_locks: Dict[str, asyncio.Lock] = {}

    @staticmethod
    def _point_id(collection: str, record_id: str) -> str:
        """Derive a stable Qdrant point id from a record id."""
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{collection}/{record_id}"))

    @staticmethod
    def _hit_from_payload(payload: Dict[str, Any]) -> Hit:
        return Hit(id=payload[ID_FIELD], type=payload[TYPE_FIELD], source=dict(payload[RECORD_FIELD]))

    async def _ensure_collection(self, collection: str) -> None:
        """
        Ensure collection exists, create if it doesn't.

        Args:
            collection: Name of the collection
        """
        if collection in self._known_collections:
            return

        async with self._collection_lock:
            if collection in self._known_collections:
                return
            response = await self.client.get_collections()
            existing = {col.name for col in response.collections}
            if collection not in existing:
                await self.client.create_collection(
                    collection_name=collection,
                    vectors_config=VectorParams(size=len(_PLACEHOLDER_VECTOR), distance=Distance.DOT),
                )
                logger.debug(f"Created Qdrant collection: {collection}", extra={"collection": collection})
            self._known_collections.add(collection)

    async def index(
        self,
        collection: str,
        record_type: str,
        record: Dict[str, Any],
        options: Optional[IndexOptions] = None,
    ) -> str:
        options = options or IndexOptions()
        record_id = options.id or str(uuid.uuid4())

        if options.create:
            async with self._write_lock(collection):
                await self._write(collection, record_type, record, record_id, options)
        else:
            await self._write(collection, record_type, record, record_id, options)
        return record_id

    def _write_lock(self, collection: str) -> asyncio.Lock:
        lock = self._write_locks.get(collection)
        if lock is None:
            lock = self._write_locks[collection] = asyncio.Lock()
        return lock

    async def _write(
        self,
        collection: str,
        record_type: str,
        record: Dict[str, Any],
        record_id: str,
        options: IndexOptions,
    ) -> None:
        point_id = self._point_id(collection, record_id)
        try:
            await self._ensure_collection(collection)
            if options.create:
                existing = await self.client.retrieve(
                    collection_name=collection, ids=[point_id], with_payload=False, with_vectors=False
                )
            else:
                existing = []
            if not existing:
                payload = {RECORD_FIELD: dict(record), TYPE_FIELD: record_type, ID_FIELD: record_id}
                # Create-only writes must be visible to the next existence check
                await self.client.upsert(
                    collection_name=collection,
                    points=[PointStruct(id=point_id, vector=_PLACEHOLDER_VECTOR, payload=payload)],
                    wait=options.refresh or options.create,
                )
        except Exception as e:
            logger.error(
                f"Error indexing {record_type} record in {collection}: {str(e)}",
                extra={"collection": collection},
            )
            raise StorageError(f"Failed to index {record_type} record: {str(e)}", collection=record_type) from e

        if existing:
            raise RecordConflictError(f"Record {record_id} already exists in {collection}", collection=record_type)

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            await self._ensure_collection(collection)
            points = await self.client.retrieve(
                collection_name=collection,
                ids=[self._point_id(collection, record_id)],
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            logger.error(f"Error fetching record {record_id} from {collection}: {str(e)}")
            raise QueryError(f"Failed to fetch record {record_id}: {str(e)}") from e

        if not points:
            return None
        return self._hit_from_payload(points[0].payload).source

    async def delete(self, collection: str, record_type: str, record_id: str) -> bool:
        try:
            await self._ensure_collection(collection)
            await self.client.delete(
                collection_name=collection,
                points_selector=PointIdsList(points=[self._point_id(collection, record_id)]),
                wait=True,
            )
        except Exception as e:
            logger.error(f"Error deleting {record_type} record {record_id} from {collection}: {str(e)}")
            raise StorageError(f"Failed to delete {record_type} record: {str(e)}", collection=record_type) from e

        logger.info(f"Deleted {record_type} record {record_id} from {collection}")
        return True

    async def search(self, collection: str, query: Query) -> SearchResult:
        scroll_filter = to_filter(query)
        try:
            await self._ensure_collection(collection)
            points, _ = await self.client.scroll(
                collection_name=collection,
                scroll_filter=scroll_filter,
                limit=query.size,
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            logger.error(f"Error querying collection {collection}: {str(e)}", extra={"collection": collection})
            raise QueryError(f"Search failed: {str(e)}") from e

        hits = [self._hit_from_payload(point.payload) for point in points]
        logger.debug(f"Search returned {len(hits)} hits", extra={"collection": collection, "hit_count": len(hits)})
        return SearchResult(hits=hits)

    async def close(self) -> None:
        await self.client.close()
