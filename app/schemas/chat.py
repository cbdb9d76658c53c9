"""Pydantic schemas for chat messages, attachments and session results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MediaKind = Literal["image", "video"]
Receipt = Literal["sent", "seen"]

# -----------------------------------------------------------------------------
# Attachments
# -----------------------------------------------------------------------------


class Attachment(BaseModel):
    """An uploaded media file referenced by a message."""

    url: str
    kind: MediaKind


class PendingAttachment(BaseModel):
    """A file selected for sending but not uploaded yet."""

    data: bytes
    content_type: str
    filename: Optional[str] = None


# -----------------------------------------------------------------------------
# Message schemas
# -----------------------------------------------------------------------------


class MessageCreate(BaseModel):
    """Schema for appending a message; the store assigns id and created_at."""

    sender_id: str = Field(min_length=1)
    text: Optional[str] = None
    attachment: Optional[Attachment] = None
    seen: bool = False

    @field_validator("text")
    @classmethod
    def _empty_text_is_absent(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @model_validator(mode="after")
    def _require_content(self) -> "MessageCreate":
        if self.text is None and self.attachment is None:
            raise ValueError("A message needs text, an attachment, or both")
        return self


class MessageUpdate(BaseModel):
    """Partial update. Seen only ever moves to True."""

    seen: Literal[True]


class MessageRead(BaseModel):
    """Message as returned by a document store."""

    id: str
    chat_id: str
    sender_id: str
    text: Optional[str] = None
    attachment: Optional[Attachment] = None
    seen: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_record(cls, record: Any) -> "MessageRead":
        """Build from a ChatMessage row, folding the attachment columns."""
        attachment = None
        if getattr(record, "attachment_url", None):
            attachment = Attachment(
                url=record.attachment_url, kind=record.attachment_kind
            )
        return cls(
            id=record.id,
            chat_id=record.chat_id,
            sender_id=record.sender_id,
            text=record.text,
            attachment=attachment,
            seen=bool(record.seen),
            created_at=record.created_at,
        )


# -----------------------------------------------------------------------------
# Presentation
# -----------------------------------------------------------------------------


class MessageView(BaseModel):
    """One display row; receipt is only set on the local user's own messages."""

    id: str
    text: Optional[str] = None
    attachment: Optional[Attachment] = None
    is_mine: bool
    seen: bool = False
    receipt: Optional[Receipt] = None
    created_at: datetime


class ChatSnapshot(BaseModel):
    chat_id: str
    messages: list[MessageView] = []


# -----------------------------------------------------------------------------
# Operation results
# -----------------------------------------------------------------------------


class SendStatus(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class SendResult(BaseModel):
    status: SendStatus
    message: Optional[MessageRead] = None
    error: Optional[str] = None


class ReapResult(BaseModel):
    """Outcome of one disappearing-message cleanup run."""

    deleted: list[str] = []
    failed: list[str] = []
