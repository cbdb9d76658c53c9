"""ChatMessage model: one row per message in a two-party chat."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.db import Base


class ChatMessage(Base):
    """One row per message, partitioned by chat_id (the derived session key)."""

    __tablename__ = "chat_messages"

    # Insertion order; breaks created_at ties.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(
        String(36),
        unique=True,
        nullable=False,
        index=True,
        default=lambda: str(uuid.uuid4()),
    )
    chat_id = Column(String(512), nullable=False, index=True)
    sender_id = Column(String(256), nullable=False)
    text = Column(Text, nullable=True)
    attachment_url = Column(String(2048), nullable=True)
    attachment_kind = Column(String(16), nullable=True)  # 'image' | 'video'
    seen = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
