"""
Live message feed for one chat.

Keeps a snapshot projection of the chat (the whole list is replaced on every
update) and, as the recipient, marks incoming unseen messages as seen.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Callable, List, Optional, Set

from app.adapters.base import BaseDocumentStore, Subscription
from app.core.errors import ChatBackendError
from app.infra.logging_config import get_logger
from app.schemas.chat import MessageRead, MessageUpdate

logger = get_logger("live_feed")

ChangeListener = Callable[[List[MessageRead]], None]


class LiveMessageFeed:
    """Ordered, live view of a chat with recipient-side seen marking."""

    def __init__(
        self,
        store: BaseDocumentStore,
        local_id: str,
        on_change: Optional[ChangeListener] = None,
    ) -> None:
        self._store = store
        self._local_id = local_id
        self._on_change = on_change
        self._chat_id: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._messages: List[MessageRead] = []
        self._marks_issued: Set[str] = set()
        self._pending: Set[asyncio.Task] = set()

    @property
    def chat_id(self) -> Optional[str]:
        return self._chat_id

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    @property
    def messages(self) -> List[MessageRead]:
        return list(self._messages)

    async def subscribe(self, chat_id: str) -> bool:
        """Subscribe to chat_id; a repeat call for the same chat is a no-op."""
        if self._subscription is not None and chat_id == self._chat_id:
            return True
        self.unsubscribe()

        self._loop = asyncio.get_running_loop()
        self._chat_id = chat_id
        self._messages = []
        self._marks_issued.clear()
        self._generation += 1
        generation = self._generation
        try:
            self._subscription = await self._store.subscribe(
                chat_id,
                partial(self._on_snapshot, generation),
                partial(self._on_error, generation),
            )
        except ChatBackendError as e:
            self._generation += 1
            logger.error("Error subscribing to chat %s: %s", chat_id, e)
            return False
        logger.debug("Live feed subscribed to chat %s", chat_id)
        return True

    def unsubscribe(self) -> None:
        """Release the store subscription. Safe to call more than once."""
        if self._subscription is None:
            return
        subscription, self._subscription = self._subscription, None
        self._generation += 1
        subscription.unsubscribe()
        logger.debug("Live feed unsubscribed from chat %s", self._chat_id)

    async def settle(self) -> None:
        """Wait for every in-flight seen mark, including ones spawned meanwhile."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_snapshot(self, generation: int, messages: List[MessageRead]) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._apply_snapshot(generation, messages)
        elif self._loop is not None:
            self._loop.call_soon_threadsafe(self._apply_snapshot, generation, messages)

    def _on_error(self, generation: int, error: BaseException) -> None:
        if generation != self._generation:
            return
        logger.error("Live feed error for chat %s: %s", self._chat_id, error)

    def _apply_snapshot(self, generation: int, messages: List[MessageRead]) -> None:
        if generation != self._generation:
            return
        # sorted() is stable: store order breaks created_at ties
        self._messages = sorted(messages, key=lambda m: m.created_at)
        if self._on_change is not None:
            try:
                self._on_change(list(self._messages))
            except Exception as e:
                logger.error("Feed change listener failed for chat %s: %s", self._chat_id, e)
        self._dispatch_seen_marks()

    def _dispatch_seen_marks(self) -> None:
        present = {m.id for m in self._messages}
        self._marks_issued &= present
        for message in self._messages:
            if message.sender_id == self._local_id or message.seen:
                continue
            if message.id in self._marks_issued:
                continue
            self._marks_issued.add(message.id)
            task = self._loop.create_task(self._mark_seen(self._chat_id, message.id))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _mark_seen(self, chat_id: str, message_id: str) -> None:
        try:
            await self._store.update(chat_id, message_id, MessageUpdate(seen=True))
        except Exception as e:
            # Forget the mark so the next snapshot issues it again.
            self._marks_issued.discard(message_id)
            logger.error("Error marking message %s as seen: %s", message_id, e)
