"""Pydantic schemas for API requests and responses."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from textstore.models.document import ImportPayload, StructureEntry, TextPart


class TextPartSchema(BaseModel):
    """One piece of document text."""

    text: str = Field(..., description="Text content of this part")
    sequence: int = Field(0, description="Position of this part among the document's parts")


class AnnotationSchema(BaseModel):
    """A positional annotation; any extra attributes are kept as domain fields."""

    model_config = ConfigDict(extra="allow")

    start: int = Field(..., ge=0, description="First character offset")
    end: int = Field(..., ge=0, description="Offset one past the last character")

    @model_validator(mode="after")
    def check_range(self) -> "AnnotationSchema":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class StructureEntrySchema(BaseModel):
    """One node of the structure outline."""

    type: str
    name: str
    description: str = ""
    depth: int = Field(0, ge=0)
    start: int = Field(0, ge=0)


class ImportRequest(BaseModel):
    """Request schema for importing a document."""

    text: List[TextPartSchema] = Field(..., description="Text parts, joined in sequence order")
    semantics: List[AnnotationSchema] = Field(default_factory=list)
    typography: List[AnnotationSchema] = Field(default_factory=list)
    structure: List[StructureEntrySchema] = Field(default_factory=list)

    def to_payload(self) -> ImportPayload:
        return ImportPayload(
            text=[TextPart(text=part.text, sequence=part.sequence) for part in self.text],
            semantics=[annotation.model_dump() for annotation in self.semantics],
            typography=[annotation.model_dump() for annotation in self.typography],
            structure=[StructureEntry(**entry.model_dump()) for entry in self.structure],
        )


class ImportResponse(BaseModel):
    """Response schema for document import."""

    document_id: str = Field(..., description="Identifier assigned to the imported document")
    message: str = Field(default="Document imported successfully")


class TextResponse(BaseModel):
    """Response schema for a text range fetch."""

    document_id: str
    text: str
    start: int
    end: int
    typography: List[Dict[str, Any]] = Field(default_factory=list)
    semantics: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Set when hits of an unknown record type were skipped")


class TextStructureResponse(BaseModel):
    """A stored document and its structure outline."""

    document_id: str
    structure: List[Dict[str, Any]]


class SemanticAnnotationRequest(AnnotationSchema):
    """Request schema for a standalone semantic annotation."""

    document_id: str = Field(..., min_length=1)


class AnnotationResponse(BaseModel):
    """Response schema for a created annotation."""

    id: str


class UserSchema(BaseModel):
    """A user record, keyed by id (typically an email address)."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
