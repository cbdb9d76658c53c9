"""Message composer: pending text/attachment, upload, and append to the chat."""

from __future__ import annotations

from typing import Optional

from app.adapters.base import BaseDocumentStore, BaseObjectStorage
from app.infra.logging_config import get_logger
from app.schemas.chat import (
    Attachment,
    MessageCreate,
    PendingAttachment,
    SendResult,
    SendStatus,
)
from app.utils.media import build_attachment_path, classify_media_kind

logger = get_logger("composer")

DEFAULT_PATH_PREFIX = "chat"


class MessageComposer:
    """
    Holds the local user's pending input for one chat and sends it.

    Input is cleared only after a successful send, so a failed send can be
    retried as-is. The busy flag is the only guard against overlapping sends.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        storage: BaseObjectStorage,
        chat_id: str,
        local_id: str,
        path_prefix: str = DEFAULT_PATH_PREFIX,
    ) -> None:
        self._store = store
        self._storage = storage
        self._chat_id = chat_id
        self._local_id = local_id
        self._path_prefix = path_prefix
        self._busy = False
        self.text: Optional[str] = None
        self.attachment: Optional[PendingAttachment] = None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def can_submit(self) -> bool:
        return not self._busy

    def clear_attachment(self) -> None:
        self.attachment = None

    async def send(self) -> SendResult:
        text = self.text or None
        pending = self.attachment
        if text is None and pending is None:
            return SendResult(status=SendStatus.SKIPPED)

        self._busy = True
        try:
            attachment = await self._upload(pending) if pending is not None else None
            message = await self._store.create(
                self._chat_id,
                MessageCreate(
                    sender_id=self._local_id,
                    text=text,
                    attachment=attachment,
                    seen=False,
                ),
            )
        except Exception as e:
            logger.error("Error sending message in chat %s: %s", self._chat_id, e)
            return SendResult(status=SendStatus.FAILED, error=str(e))
        finally:
            self._busy = False

        self.text = None
        self.attachment = None
        return SendResult(status=SendStatus.SENT, message=message)

    async def _upload(self, pending: PendingAttachment) -> Attachment:
        path = build_attachment_path(self._path_prefix, self._chat_id)
        handle = await self._storage.put(path, pending.data, pending.content_type)
        url = await self._storage.get_public_url(handle)
        return Attachment(url=url, kind=classify_media_kind(pending.content_type))
