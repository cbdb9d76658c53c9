"""Tests for SqlDocumentStore."""

import threading
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import (
    DocumentQueryError,
    DocumentWriteError,
    MessageNotFoundError,
    SubscriptionError,
)
from app.schemas.chat import MessageCreate, MessageUpdate
from app.services.chat_message_service import ChatMessageService


@pytest.mark.asyncio
async def test_subscribe_delivers_initial_snapshot(store, chat_id):
    first = await store.create(chat_id, MessageCreate(sender_id="u1", text="one"))
    second = await store.create(chat_id, MessageCreate(sender_id="u2", text="two"))
    snapshots = []
    subscription = await store.subscribe(chat_id, snapshots.append)
    assert len(snapshots) == 1
    assert [m.id for m in snapshots[0]] == [first.id, second.id]
    subscription.unsubscribe()


@pytest.mark.asyncio
async def test_writes_publish_full_snapshots(store, chat_id):
    snapshots = []
    other = []
    await store.subscribe(chat_id, snapshots.append)
    await store.subscribe("u3-u1", other.append)

    msg = await store.create(chat_id, MessageCreate(sender_id="u2", text="hi"))
    await store.update(chat_id, msg.id, MessageUpdate(seen=True))
    await store.delete(chat_id, msg.id)

    assert [len(s) for s in snapshots] == [0, 1, 1, 0]
    assert snapshots[1][0].seen is False
    assert snapshots[2][0].seen is True
    # Only the initial snapshot for the unrelated chat
    assert other == [[]]


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery(store, chat_id):
    snapshots = []
    subscription = await store.subscribe(chat_id, snapshots.append)
    assert store.listener_count(chat_id) == 1
    subscription.unsubscribe()
    subscription.unsubscribe()
    assert store.listener_count(chat_id) == 0
    await store.create(chat_id, MessageCreate(sender_id="u2", text="hi"))
    assert snapshots == [[]]


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamp(store, chat_id):
    msg = await store.create(chat_id, MessageCreate(sender_id="u1", text="hello"))
    assert msg.id
    assert msg.chat_id == chat_id
    assert msg.seen is False
    assert msg.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_query_filters(store, chat_id):
    await store.create(chat_id, MessageCreate(sender_id="u1", text="mine"))
    theirs = await store.create(chat_id, MessageCreate(sender_id="u2", text="theirs"))
    await store.update(chat_id, theirs.id, MessageUpdate(seen=True))
    await store.create(chat_id, MessageCreate(sender_id="u2", text="unseen"))

    assert len(await store.query(chat_id)) == 3
    assert len(await store.query(chat_id, sender_id="u2")) == 2
    seen = await store.query(chat_id, sender_id="u2", seen=True)
    assert [m.id for m in seen] == [theirs.id]


@pytest.mark.asyncio
async def test_update_missing_message_raises(store, chat_id):
    with pytest.raises(MessageNotFoundError):
        await store.update(chat_id, "missing", MessageUpdate(seen=True))


@pytest.mark.asyncio
async def test_delete_missing_message_is_noop(store, chat_id):
    snapshots = []
    await store.subscribe(chat_id, snapshots.append)
    await store.delete(chat_id, "missing")
    assert snapshots == [[]]


@pytest.mark.asyncio
async def test_subscribe_failure_raises_subscription_error(store, chat_id):
    with patch.object(store, "_read", side_effect=SQLAlchemyError("down")):
        with pytest.raises(SubscriptionError):
            await store.subscribe(chat_id, lambda snapshot: None)
    assert store.listener_count(chat_id) == 0


@pytest.mark.asyncio
async def test_create_failure_raises_write_error(store, chat_id):
    with patch.object(
        ChatMessageService, "create_message", side_effect=SQLAlchemyError("down")
    ):
        with pytest.raises(DocumentWriteError):
            await store.create(chat_id, MessageCreate(sender_id="u1", text="hi"))


@pytest.mark.asyncio
async def test_query_failure_raises_query_error(store, chat_id):
    with patch.object(store, "_read", side_effect=SQLAlchemyError("down")):
        with pytest.raises(DocumentQueryError):
            await store.query(chat_id)


@pytest.mark.asyncio
async def test_publish_failure_reports_to_error_listener(store, chat_id):
    errors = []
    await store.subscribe(chat_id, lambda snapshot: None, errors.append)
    with patch.object(store, "_read", side_effect=SQLAlchemyError("down")):
        await store.create(chat_id, MessageCreate(sender_id="u2", text="hi"))
    assert len(errors) == 1
    assert isinstance(errors[0], SubscriptionError)


@pytest.mark.asyncio
async def test_failing_listener_is_isolated(store, chat_id):
    def broken(snapshot):
        raise RuntimeError("listener broke")

    received = []
    await store.subscribe(chat_id, broken)
    await store.subscribe(chat_id, received.append)

    msg = await store.create(chat_id, MessageCreate(sender_id="u2", text="hi"))
    await store.update(chat_id, msg.id, MessageUpdate(seen=True))

    assert [len(s) for s in received] == [0, 1, 1]
    assert received[-1][0].seen is True
    assert store.listener_count(chat_id) == 2


@pytest.mark.asyncio
async def test_session_work_runs_off_the_event_loop(store, chat_id):
    loop_thread = threading.get_ident()
    session_threads = []
    listener_threads = []
    real_read = store._read

    def tracking_read(*args, **kwargs):
        session_threads.append(threading.get_ident())
        return real_read(*args, **kwargs)

    await store.subscribe(
        chat_id, lambda snapshot: listener_threads.append(threading.get_ident())
    )
    with patch.object(store, "_read", side_effect=tracking_read):
        await store.create(chat_id, MessageCreate(sender_id="u2", text="hi"))
        await store.query(chat_id)

    assert len(session_threads) == 2
    assert loop_thread not in session_threads
    assert listener_threads == [loop_thread, loop_thread]
