"""Contract between the text store and a search/index backend."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from textstore.services.range_query import RangeQuery, TypeQuery

Query = Union[RangeQuery, TypeQuery]


@dataclass
class IndexOptions:
    """Options for a single record write."""

    # Explicit record id; the backend generates one when None
    id: Optional[str] = None
    # Fail when the id already exists instead of overwriting
    create: bool = False
    # Make the write visible to searches before returning
    refresh: bool = False


@dataclass
class Hit:
    """A single search result."""

    id: str
    type: str
    source: Dict[str, Any]


@dataclass
class SearchResult:
    """Hits returned by a search, capped at the query size."""

    hits: List[Hit] = field(default_factory=list)


class SearchBackend(ABC):
    """Typed record storage with filtered search. All operations are asynchronous."""

    @abstractmethod
    async def index(
        self,
        collection: str,
        record_type: str,
        record: Dict[str, Any],
        options: Optional[IndexOptions] = None,
    ) -> str:
        """
        Create or overwrite a record.

        Returns:
            The record id (generated unless given in options)

        Raises:
            RecordConflictError: If ``options.create`` is set and the id exists
            StorageError: If the write fails
        """

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a record by id, or None when it does not exist."""

    @abstractmethod
    async def delete(self, collection: str, record_type: str, record_id: str) -> bool:
        """Delete a record by id."""

    @abstractmethod
    async def search(self, collection: str, query: Query) -> SearchResult:
        """
        Execute a range or type query.

        Raises:
            QueryError: If the search fails
        """

    async def close(self) -> None:
        """Release client resources."""
