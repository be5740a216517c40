"""Document data models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class TextPart:
    """A declared piece of input text, ordered by sequence."""

    text: str
    sequence: int = 0


@dataclass
class ChunkSpan:
    """A slice of text produced by the splitter, with its offset in the original."""

    text: str
    offset: int


@dataclass
class TextChunk:
    """Represents a stored text chunk of a document."""

    document_id: str
    text: str
    start: int
    end: int
    sequence: int = 0

    @classmethod
    def from_span(cls, document_id: str, span: ChunkSpan, sequence: int) -> "TextChunk":
        return cls(
            document_id=document_id,
            text=span.text,
            start=span.offset,
            end=span.offset + len(span.text),
            sequence=sequence,
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TextChunk":
        return cls(
            document_id=record["document_id"],
            text=record["text"],
            start=record["start"],
            end=record["end"],
            sequence=record.get("sequence", 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "sequence": self.sequence,
        }


@dataclass
class Annotation:
    """
    A semantic or typographic annotation over a character range.

    Domain attributes live in ``fields``; ``id`` is assigned by the backend.
    """

    start: int
    end: int
    fields: Dict[str, Any] = field(default_factory=dict)
    document_id: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Annotation":
        fields = {k: v for k, v in data.items() if k not in ("start", "end", "document_id", "id")}
        return cls(
            start=data["start"],
            end=data["end"],
            fields=fields,
            document_id=data.get("document_id"),
            id=data.get("id"),
        )

    def tagged(self, document_id: str) -> "Annotation":
        """Return a copy owned by ``document_id``."""
        return Annotation(
            start=self.start,
            end=self.end,
            fields=dict(self.fields),
            document_id=document_id,
            id=self.id,
        )

    def to_record(self) -> Dict[str, Any]:
        if self.document_id is None:
            raise ValueError("Annotation must be tagged with a document id before it is stored")
        record = dict(self.fields)
        record.update({"document_id": self.document_id, "start": self.start, "end": self.end})
        return record


@dataclass
class StructureEntry:
    """One node of a document's structure outline."""

    type: str
    name: str
    description: str = ""
    depth: int = 0
    start: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "depth": self.depth,
            "start": self.start,
        }


@dataclass
class ImportPayload:
    """A document to import: text parts plus annotations and structure."""

    text: List[TextPart]
    semantics: List[Dict[str, Any]] = field(default_factory=list)
    typography: List[Dict[str, Any]] = field(default_factory=list)
    structure: List[StructureEntry] = field(default_factory=list)


@dataclass
class RangeText:
    """Text reconstructed for a character range."""

    text: str
    start: int
    end: int


@dataclass
class TextBundle:
    """Text and overlapping annotations for a requested range of a document."""

    document_id: str
    text: str
    start: int
    end: int
    typography: List[Dict[str, Any]] = field(default_factory=list)
    semantics: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass
class TextStructure:
    """A stored document's id and structure outline."""

    document_id: str
    structure: List[Dict[str, Any]]
