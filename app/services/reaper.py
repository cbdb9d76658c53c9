"""
Disappearing-message cleanup run when a participant leaves a chat.

Deletes what the remote participant sent once the local participant has seen
it. The query and the deletions are not atomic: a message marked seen after
the query is left for the next run.
"""

from __future__ import annotations

import asyncio

from app.adapters.base import BaseDocumentStore
from app.infra.logging_config import get_logger
from app.schemas.chat import ReapResult

logger = get_logger("reaper")


class DisappearingMessageReaper:
    def __init__(self, store: BaseDocumentStore) -> None:
        self._store = store

    async def reap(self, chat_id: str, local_id: str, remote_id: str) -> ReapResult:
        """Delete every seen message sent by remote_id; never touches local_id's messages."""
        # TODO: filter by recipient instead of remote sender before chats grow past two participants.
        try:
            candidates = await self._store.query(chat_id, sender_id=remote_id, seen=True)
        except Exception as e:
            logger.error("Error querying seen messages in chat %s: %s", chat_id, e)
            return ReapResult()

        targets = [
            m
            for m in candidates
            if m.seen and m.sender_id == remote_id and m.sender_id != local_id
        ]
        if not targets:
            return ReapResult()

        outcomes = await asyncio.gather(
            *(self._store.delete(chat_id, m.id) for m in targets),
            return_exceptions=True,
        )
        result = ReapResult()
        for message, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Error deleting seen message %s: %s", message.id, outcome)
                result.failed.append(message.id)
            else:
                result.deleted.append(message.id)
        logger.info(
            "Reaped chat %s: deleted=%d failed=%d",
            chat_id,
            len(result.deleted),
            len(result.failed),
        )
        return result
