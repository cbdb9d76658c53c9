"""Display rows for a chat: created_at order, ownership and receipts."""

from __future__ import annotations

from typing import Iterable, List

from app.schemas.chat import ChatSnapshot, MessageRead, MessageView


def build_message_views(
    messages: Iterable[MessageRead], local_id: str
) -> List[MessageView]:
    rows: List[MessageView] = []
    for m in sorted(messages, key=lambda m: m.created_at):
        is_mine = m.sender_id == local_id
        rows.append(
            MessageView(
                id=m.id,
                text=m.text,
                attachment=m.attachment,
                is_mine=is_mine,
                seen=m.seen,
                receipt=("seen" if m.seen else "sent") if is_mine else None,
                created_at=m.created_at,
            )
        )
    return rows


def build_snapshot(
    chat_id: str, messages: Iterable[MessageRead], local_id: str
) -> ChatSnapshot:
    return ChatSnapshot(chat_id=chat_id, messages=build_message_views(messages, local_id))
