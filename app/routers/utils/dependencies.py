from typing import Mapping, Optional

from fastapi import HTTPException, Request

from app.adapters.base import BaseDocumentStore, BaseObjectStorage
from app.config import get_settings


def resolve_user_id(
    headers: Mapping[str, str], query_params: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    """Local identity from the configured header, falling back to ?user_id=."""
    header = get_settings().user_id_header
    user_id = headers.get(header) or headers.get(header.lower())
    if not user_id and query_params is not None:
        user_id = query_params.get("user_id")
    return user_id.strip() if user_id and user_id.strip() else None


def get_current_user_id(request: Request) -> str:
    """FastAPI dependency to get the local user's id."""
    user_id = resolve_user_id(request.headers)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return user_id


def get_document_store(request: Request) -> BaseDocumentStore:
    """FastAPI dependency to get the app's document store."""
    return request.app.state.document_store


def get_object_storage(request: Request) -> BaseObjectStorage:
    """FastAPI dependency to get the app's object storage."""
    return request.app.state.object_storage
