"""Tests for chat schemas."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.schemas.chat import Attachment, MessageCreate, MessageRead, MessageUpdate


def test_message_create_requires_text_or_attachment():
    with pytest.raises(ValidationError, match="text, an attachment"):
        MessageCreate(sender_id="u1")


def test_message_create_empty_text_counts_as_absent():
    with pytest.raises(ValidationError):
        MessageCreate(sender_id="u1", text="")
    msg = MessageCreate(
        sender_id="u1",
        text="",
        attachment=Attachment(url="http://x/a.png", kind="image"),
    )
    assert msg.text is None
    assert msg.seen is False


def test_message_create_rejects_unknown_media_kind():
    with pytest.raises(ValidationError):
        MessageCreate(sender_id="u1", attachment={"url": "http://x/a", "kind": "audio"})


def test_message_update_only_sets_seen_true():
    assert MessageUpdate(seen=True).seen is True
    with pytest.raises(ValidationError):
        MessageUpdate(seen=False)


def test_message_read_normalizes_naive_timestamps():
    msg = MessageRead(
        id="m1",
        chat_id="u2-u1",
        sender_id="u2",
        text="hi",
        created_at=datetime(2026, 1, 1, 12, 0, 0),
    )
    assert msg.created_at.tzinfo == timezone.utc
