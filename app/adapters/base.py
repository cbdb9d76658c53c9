"""
Backend adapter interfaces.

Adapters encapsulate the document store and object storage services and
expose the normalized chat message schemas to the chat core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from app.schemas.chat import MessageCreate, MessageRead, MessageUpdate

SnapshotListener = Callable[[List[MessageRead]], None]
ErrorListener = Callable[[BaseException], None]


class Subscription(ABC):
    """Handle for a live query; unsubscribe() stops further deliveries."""

    @abstractmethod
    def unsubscribe(self) -> None:
        ...


class BaseDocumentStore(ABC):
    """Contract for the real-time message store. Raise ChatBackendError subclasses on failure."""

    @abstractmethod
    async def subscribe(
        self,
        chat_id: str,
        on_snapshot: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Subscription:
        """
        Start a live query over the chat ordered by created_at.
        The initial snapshot is delivered before this returns; every later change
        delivers the full, re-read snapshot.
        """
        ...

    @abstractmethod
    async def create(self, chat_id: str, data: MessageCreate) -> MessageRead:
        """Append a message; the store assigns id and created_at."""
        ...

    @abstractmethod
    async def update(
        self, chat_id: str, message_id: str, data: MessageUpdate
    ) -> None:
        ...

    @abstractmethod
    async def query(
        self,
        chat_id: str,
        sender_id: Optional[str] = None,
        seen: Optional[bool] = None,
    ) -> List[MessageRead]:
        """One-shot snapshot, filtered by equality on the given fields."""
        ...

    @abstractmethod
    async def delete(self, chat_id: str, message_id: str) -> None:
        """Delete a message. Deleting a missing message is not an error."""
        ...


class BaseObjectStorage(ABC):
    """Contract for binary attachment storage."""

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at path and return an opaque handle."""
        ...

    @abstractmethod
    async def get_public_url(self, handle: str) -> str:
        ...
