"""Shared route dependencies and error translation."""
from fastapi import HTTPException

from textstore.exceptions import (
    BackendError,
    ParseError,
    ReadError,
    RecordConflictError,
    RecordNotFoundError,
    TextStoreError,
)
from textstore.services.text_store import TextStore


def get_text_store() -> TextStore:
    """Get text store from main app."""
    from textstore.main import text_store
    if text_store is None:
        raise HTTPException(status_code=503, detail="Text store not initialized")
    return text_store


def get_app_settings():
    """Get application settings from main app."""
    from textstore.main import settings
    if settings is None:
        raise HTTPException(status_code=503, detail="Settings not initialized")
    return settings


def to_http_error(e: TextStoreError) -> HTTPException:
    """Map a text store error to an HTTP response."""
    if isinstance(e, (ReadError, ParseError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, RecordConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, BackendError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
