"""User record endpoints."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from textstore.api.dependencies import get_text_store, to_http_error
from textstore.api.schemas import UserSchema
from textstore.exceptions import TextStoreError
from textstore.services.text_store import TextStore

router = APIRouter()


@router.get("/users/{user_id}")
async def get_user(user_id: str, store: TextStore = Depends(get_text_store)) -> Dict[str, Any]:
    try:
        return await store.get_user(user_id)
    except TextStoreError as e:
        raise to_http_error(e)


@router.post("/users", status_code=201)
async def create_user(user: UserSchema, store: TextStore = Depends(get_text_store)) -> Dict[str, Any]:
    """Create a user; 409 if the id already exists."""
    try:
        return await store.create_user(user.model_dump())
    except TextStoreError as e:
        raise to_http_error(e)


@router.put("/users/{user_id}")
async def create_or_update_user(
    user_id: str, user: UserSchema, store: TextStore = Depends(get_text_store)
) -> Dict[str, Any]:
    """Create or overwrite a user."""
    record = user.model_dump()
    record["id"] = user_id
    try:
        return await store.create_or_update_user(record)
    except TextStoreError as e:
        raise to_http_error(e)


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, store: TextStore = Depends(get_text_store)) -> Dict[str, Any]:
    try:
        deleted = await store.delete_user(user_id)
    except TextStoreError as e:
        raise to_http_error(e)
    return {"id": user_id, "deleted": deleted}
