"""ChatSession: facade for one local user's view of a two-party chat (open, send, close)."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from app.adapters.base import BaseDocumentStore, BaseObjectStorage
from app.core.session_key import build_session_key
from app.infra.logging_config import get_logger
from app.schemas.chat import (
    ChatSnapshot,
    MessageRead,
    PendingAttachment,
    ReapResult,
    SendResult,
)
from app.services.composer import DEFAULT_PATH_PREFIX, MessageComposer
from app.services.live_feed import ChangeListener, LiveMessageFeed
from app.services.presentation import build_snapshot
from app.services.reaper import DisappearingMessageReaper

logger = get_logger("chat_session")


class ChatSession:
    """
    Wires the live feed, composer and reaper for a (local, remote) pair.

    Hosts must call close() exactly once when the user leaves the chat, or use
    the session as an async context manager. close() releases the feed
    subscription and starts the disappearing-message cleanup in the background.
    """

    def __init__(
        self,
        local_id: str,
        remote_id: str,
        store: BaseDocumentStore,
        storage: BaseObjectStorage,
        on_change: Optional[ChangeListener] = None,
        path_prefix: str = DEFAULT_PATH_PREFIX,
    ) -> None:
        self.local_id = local_id
        self.remote_id = remote_id
        self.chat_id = build_session_key(local_id, remote_id)
        self.feed = LiveMessageFeed(store, local_id, on_change=on_change)
        self.composer = MessageComposer(
            store, storage, self.chat_id, local_id, path_prefix=path_prefix
        )
        self._reaper = DisappearingMessageReaper(store)
        self._close_task: Optional[asyncio.Task[ReapResult]] = None

    @property
    def closed(self) -> bool:
        return self._close_task is not None

    @property
    def messages(self) -> List[MessageRead]:
        return self.feed.messages

    def snapshot(self) -> ChatSnapshot:
        return build_snapshot(self.chat_id, self.feed.messages, self.local_id)

    async def open(self) -> "ChatSession":
        if self.closed:
            raise RuntimeError(f"Chat session {self.chat_id} is closed")
        await self.feed.subscribe(self.chat_id)
        logger.info("Opened chat %s for %s", self.chat_id, self.local_id)
        return self

    async def send(
        self,
        text: Optional[str] = None,
        attachment: Optional[PendingAttachment] = None,
    ) -> SendResult:
        if text is not None:
            self.composer.text = text
        if attachment is not None:
            self.composer.attachment = attachment
        return await self.composer.send()

    def close(self) -> "asyncio.Task[ReapResult]":
        """Unsubscribe and start the cleanup once; later calls return the same task."""
        if self._close_task is not None:
            return self._close_task
        try:
            self.feed.unsubscribe()
        finally:
            self._close_task = asyncio.get_running_loop().create_task(
                self._reaper.reap(self.chat_id, self.local_id, self.remote_id)
            )
            logger.info("Closed chat %s for %s", self.chat_id, self.local_id)
        return self._close_task

    async def __aenter__(self) -> "ChatSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
