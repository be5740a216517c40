"""Text import and range retrieval endpoints."""
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from textstore.api.dependencies import get_app_settings, get_text_store, to_http_error
from textstore.api.schemas import (
    AnnotationResponse,
    ImportRequest,
    ImportResponse,
    SemanticAnnotationRequest,
    TextResponse,
    TextStructureResponse,
)
from textstore.exceptions import TextStoreError
from textstore.services.text_store import TextStore
from textstore.utils.logger import logger

router = APIRouter()


@router.post("/texts", response_model=ImportResponse)
async def import_text(
    request: ImportRequest,
    store: TextStore = Depends(get_text_store),
):
    """
    Import a document from its text parts, annotations and structure.

    Args:
        request: ImportRequest payload
        store: Text store instance

    Returns:
        ImportResponse with the new document ID
    """
    try:
        document_id = await store.import_data(request.to_payload())
    except TextStoreError as e:
        raise to_http_error(e)
    return ImportResponse(document_id=document_id)


@router.post("/texts/wikitext", response_model=ImportResponse)
async def import_wikitext(
    file: Annotated[UploadFile, File(...)],
    title: Annotated[str, Form(...)],
    description: Annotated[str, Form()] = "",
    store: TextStore = Depends(get_text_store),
    app_settings=Depends(get_app_settings),
):
    """
    Upload a wikitext file and import it as a new document.

    Args:
        file: Wikitext file
        title: Name for the top level structure entry
        description: Description for the top level structure entry
        store: Text store instance

    Returns:
        ImportResponse with the new document ID
    """
    upload_dir = Path(app_settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    content = await file.read()
    with NamedTemporaryFile(delete=False, suffix=Path(file.filename or "").suffix or ".txt", dir=upload_dir) as tmp:
        tmp.write(content)
        tmp_file_path = tmp.name

    try:
        document_id = await store.load_from_wikitext_file(tmp_file_path, title, description)
    except TextStoreError as e:
        raise to_http_error(e)
    finally:
        os.unlink(tmp_file_path)

    logger.info(f"Imported wikitext upload {file.filename}", extra={"document_id": document_id})
    return ImportResponse(document_id=document_id)


@router.get("/texts", response_model=List[TextStructureResponse])
async def list_texts(store: TextStore = Depends(get_text_store)):
    """List every stored document with its structure outline."""
    try:
        structures = await store.get_text_structures()
    except TextStoreError as e:
        raise to_http_error(e)
    return [TextStructureResponse(document_id=s.document_id, structure=s.structure) for s in structures]


@router.get("/texts/{document_id}", response_model=TextResponse)
async def fetch_text(
    document_id: str,
    start: Annotated[int, Query(ge=0)],
    end: Annotated[int, Query(ge=0)],
    store: TextStore = Depends(get_text_store),
):
    """
    Fetch a character range of a document with its overlapping annotations.

    Args:
        document_id: Document ID
        start: First character offset
        end: Offset one past the last character

    Returns:
        TextResponse for the range
    """
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")

    try:
        bundle = await store.fetch_text(document_id, start, end)
    except TextStoreError as e:
        raise to_http_error(e)

    return TextResponse(
        document_id=bundle.document_id,
        text=bundle.text,
        start=bundle.start,
        end=bundle.end,
        typography=bundle.typography,
        semantics=bundle.semantics,
        error=str(bundle.error) if bundle.error else None,
    )


@router.post("/semantics", response_model=AnnotationResponse)
async def create_semantic_annotation(
    request: SemanticAnnotationRequest,
    store: TextStore = Depends(get_text_store),
):
    """Create and index a new semantic annotation."""
    try:
        annotation_id = await store.create_semantic_annotation(request.model_dump())
    except TextStoreError as e:
        raise to_http_error(e)
    return AnnotationResponse(id=annotation_id)
