"""Sequential, fail-fast indexing of named record collections."""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from textstore.exceptions import StorageError
from textstore.services.backend import IndexOptions, SearchBackend
from textstore.utils import metrics
from textstore.utils.logger import logger

CompletionCallback = Callable[[Optional[Exception]], None]


@dataclass
class PipelineCollection:
    """A named, ordered list of records indexed as a unit."""

    name: str
    records: List[Dict[str, Any]] = field(default_factory=list)


class IndexPipeline:
    """
    Persists collections one record at a time, in order.

    The first failed write abandons the rest of its collection and every later
    collection. Records already written stay written; there is no rollback.
    """

    def __init__(self, backend: SearchBackend, index_name: str, refresh: bool = True):
        """
        Initialize pipeline.

        Args:
            backend: Backend receiving the writes
            index_name: Backend collection all records are written to
            refresh: Wait for each write to become searchable before the next one
        """
        self.backend = backend
        self.index_name = index_name
        self.refresh = refresh

    async def run(
        self,
        collections: Sequence[PipelineCollection],
        on_complete: Optional[CompletionCallback] = None,
    ) -> Dict[str, List[str]]:
        """
        Index every record of every collection.

        Args:
            collections: Collections in the order they must be written
            on_complete: Called exactly once, with None on success or the first error

        Returns:
            Generated record ids per collection name

        Raises:
            StorageError: Naming the collection whose write failed
        """
        indexed: Dict[str, List[str]] = {}
        try:
            for collection in collections:
                indexed[collection.name] = await self._index_collection(collection)
        except StorageError as e:
            if on_complete is not None:
                on_complete(e)
            raise

        if on_complete is not None:
            on_complete(None)
        return indexed

    async def _index_collection(self, collection: PipelineCollection) -> List[str]:
        ids = []
        for record in collection.records:
            try:
                record_id = await self.backend.index(
                    self.index_name, collection.name, record, IndexOptions(refresh=self.refresh)
                )
            except Exception as e:
                logger.error(
                    f"Error while indexing {collection.name}: {str(e)}",
                    extra={"collection": collection.name, "record_count": len(ids)},
                )
                metrics.import_failures.labels(collection=collection.name).inc()
                raise StorageError(
                    f"Error while indexing {collection.name}: {str(e)}", collection=collection.name
                ) from e
            ids.append(record_id)
            metrics.records_indexed.labels(collection=collection.name).inc()

        logger.info(
            f"Indexed data with type {collection.name}",
            extra={"collection": collection.name, "record_count": len(ids)},
        )
        return ids
