"""Backend adapters for the chat core."""

from app.adapters.base import BaseDocumentStore, BaseObjectStorage, Subscription
from app.adapters.local_storage import LocalObjectStorage
from app.adapters.sql_document_store import SqlDocumentStore

__all__ = [
    "BaseDocumentStore",
    "BaseObjectStorage",
    "LocalObjectStorage",
    "SqlDocumentStore",
    "Subscription",
]
