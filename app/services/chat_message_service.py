"""ChatMessage CRUD and filtered reads for one chat partition."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from app.models.chat_message import ChatMessage
from app.schemas.chat import MessageCreate


class ChatMessageService:
    def __init__(self, db: DBSession) -> None:
        self.db = db

    def create_message(self, chat_id: str, data: MessageCreate) -> ChatMessage:
        msg = ChatMessage(
            chat_id=chat_id,
            sender_id=data.sender_id,
            text=data.text,
            attachment_url=data.attachment.url if data.attachment else None,
            attachment_kind=data.attachment.kind if data.attachment else None,
            seen=data.seen,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def get_message(self, chat_id: str, message_id: str) -> Optional[ChatMessage]:
        return (
            self.db.query(ChatMessage)
            .filter(ChatMessage.chat_id == chat_id, ChatMessage.id == message_id)
            .first()
        )

    def get_messages(
        self,
        chat_id: str,
        sender_id: Optional[str] = None,
        seen: Optional[bool] = None,
    ) -> List[ChatMessage]:
        """Messages of a chat ordered by created_at, then insertion order."""
        query = self.db.query(ChatMessage).filter(ChatMessage.chat_id == chat_id)
        if sender_id is not None:
            query = query.filter(ChatMessage.sender_id == sender_id)
        if seen is not None:
            query = query.filter(ChatMessage.seen == seen)
        return query.order_by(ChatMessage.created_at, ChatMessage.seq).all()

    def mark_seen(self, chat_id: str, message_id: str) -> Optional[ChatMessage]:
        """Set seen=True. Returns None when the message does not exist."""
        msg = self.get_message(chat_id, message_id)
        if msg is None:
            return None
        if not msg.seen:
            msg.seen = True
            self.db.commit()
            self.db.refresh(msg)
        return msg

    def delete_message(self, chat_id: str, message_id: str) -> bool:
        deleted = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.chat_id == chat_id, ChatMessage.id == message_id)
            .delete()
        )
        self.db.commit()
        return deleted > 0

    def get_message_count(self, chat_id: str) -> int:
        return (
            self.db.query(ChatMessage).filter(ChatMessage.chat_id == chat_id).count()
        )
