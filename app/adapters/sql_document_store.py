"""
SQL-backed document store.

Rows live in the chat_messages table. Session work runs in the threadpool so
the event loop stays free. Subscriptions are served in-process: after every
create, update or delete the store re-reads the chat and pushes the full
snapshot to each listener registered for it, on the caller's event loop.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from typing import Callable, ContextManager, Dict, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from app.adapters.base import (
    BaseDocumentStore,
    ErrorListener,
    SnapshotListener,
    Subscription,
)
from app.core.errors import (
    DocumentQueryError,
    DocumentWriteError,
    MessageNotFoundError,
    SubscriptionError,
)
from app.infra.logging_config import get_logger
from app.schemas.chat import MessageCreate, MessageRead, MessageUpdate
from app.services.chat_message_service import ChatMessageService

logger = get_logger("sql_document_store")

SessionFactory = Callable[[], ContextManager[DBSession]]


class _SqlSubscription(Subscription):
    def __init__(self, store: "SqlDocumentStore", chat_id: str, token: int) -> None:
        self._store = store
        self._chat_id = chat_id
        self._token = token
        self._active = True

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._store._remove_listener(self._chat_id, self._token)


class SqlDocumentStore(BaseDocumentStore):
    """Document store over SQLAlchemy sessions with in-process change fan-out."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory
        self._listeners: Dict[
            str, Dict[int, Tuple[SnapshotListener, Optional[ErrorListener]]]
        ] = defaultdict(dict)
        # Snapshot reads and deliveries for a chat happen one at a time, so
        # listeners never see an older snapshot after a newer one.
        self._fanout_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._tokens = itertools.count(1)

    def listener_count(self, chat_id: str) -> int:
        return len(self._listeners.get(chat_id, {}))

    async def subscribe(
        self,
        chat_id: str,
        on_snapshot: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Subscription:
        async with self._fanout_locks[chat_id]:
            try:
                snapshot = await run_in_threadpool(self._read, chat_id)
            except SQLAlchemyError as e:
                raise SubscriptionError(
                    f"Could not subscribe to chat {chat_id}: {e}"
                ) from e
            token = next(self._tokens)
            self._listeners[chat_id][token] = (on_snapshot, on_error)
            logger.debug("Subscribed listener %s to chat %s", token, chat_id)
            self._deliver(chat_id, token, on_snapshot, snapshot)
        return _SqlSubscription(self, chat_id, token)

    async def create(self, chat_id: str, data: MessageCreate) -> MessageRead:
        try:
            created = await run_in_threadpool(self._create, chat_id, data)
        except SQLAlchemyError as e:
            raise DocumentWriteError(f"Could not create message in {chat_id}: {e}") from e
        await self._publish(chat_id)
        return created

    async def update(
        self, chat_id: str, message_id: str, data: MessageUpdate
    ) -> None:
        try:
            found = await run_in_threadpool(self._mark_seen, chat_id, message_id)
        except SQLAlchemyError as e:
            raise DocumentWriteError(
                f"Could not update message {message_id} in {chat_id}: {e}"
            ) from e
        if not found:
            raise MessageNotFoundError(chat_id, message_id)
        await self._publish(chat_id)

    async def query(
        self,
        chat_id: str,
        sender_id: Optional[str] = None,
        seen: Optional[bool] = None,
    ) -> List[MessageRead]:
        try:
            return await run_in_threadpool(
                self._read, chat_id, sender_id=sender_id, seen=seen
            )
        except SQLAlchemyError as e:
            raise DocumentQueryError(f"Could not query chat {chat_id}: {e}") from e

    async def delete(self, chat_id: str, message_id: str) -> None:
        try:
            deleted = await run_in_threadpool(self._delete, chat_id, message_id)
        except SQLAlchemyError as e:
            raise DocumentWriteError(
                f"Could not delete message {message_id} in {chat_id}: {e}"
            ) from e
        if deleted:
            await self._publish(chat_id)

    # Blocking session work, run in the threadpool.

    def _create(self, chat_id: str, data: MessageCreate) -> MessageRead:
        with self._session_factory() as db:
            record = ChatMessageService(db).create_message(chat_id, data)
            return MessageRead.from_record(record)

    def _mark_seen(self, chat_id: str, message_id: str) -> bool:
        with self._session_factory() as db:
            return ChatMessageService(db).mark_seen(chat_id, message_id) is not None

    def _delete(self, chat_id: str, message_id: str) -> bool:
        with self._session_factory() as db:
            return ChatMessageService(db).delete_message(chat_id, message_id)

    def _read(
        self,
        chat_id: str,
        sender_id: Optional[str] = None,
        seen: Optional[bool] = None,
    ) -> List[MessageRead]:
        with self._session_factory() as db:
            records = ChatMessageService(db).get_messages(
                chat_id, sender_id=sender_id, seen=seen
            )
            return [MessageRead.from_record(r) for r in records]

    # Fan-out

    def _remove_listener(self, chat_id: str, token: int) -> None:
        listeners = self._listeners.get(chat_id)
        if not listeners:
            return
        listeners.pop(token, None)
        if not listeners:
            del self._listeners[chat_id]
        logger.debug("Unsubscribed listener %s from chat %s", token, chat_id)

    def _deliver(
        self,
        chat_id: str,
        token: int,
        on_snapshot: SnapshotListener,
        snapshot: List[MessageRead],
    ) -> None:
        # The write has already committed; listener failures are only logged.
        try:
            on_snapshot(list(snapshot))
        except Exception as e:
            logger.error(
                "Listener %s of chat %s failed on snapshot: %s",
                token,
                chat_id,
                e,
                exc_info=True,
            )

    async def _publish(self, chat_id: str) -> None:
        if not self._listeners.get(chat_id):
            return
        async with self._fanout_locks[chat_id]:
            try:
                snapshot = await run_in_threadpool(self._read, chat_id)
            except SQLAlchemyError as e:
                logger.warning("Snapshot read failed for chat %s: %s", chat_id, e)
                error = SubscriptionError(
                    f"Snapshot read failed for chat {chat_id}: {e}"
                )
                listeners = list(self._listeners.get(chat_id, {}).items())
                for token, (_, on_error) in listeners:
                    if on_error is None:
                        continue
                    try:
                        on_error(error)
                    except Exception as listener_error:
                        logger.error(
                            "Listener %s of chat %s failed on error: %s",
                            token,
                            chat_id,
                            listener_error,
                        )
                return
            # Listeners removed while the read was in flight get nothing.
            for token, (on_snapshot, _) in list(
                self._listeners.get(chat_id, {}).items()
            ):
                self._deliver(chat_id, token, on_snapshot, snapshot)
