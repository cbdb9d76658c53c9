"""Chats API: read, send, leave, and the live WebSocket session."""

from __future__ import annotations

import asyncio
import json
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Response,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from app.adapters.base import BaseDocumentStore, BaseObjectStorage
from app.config import get_settings
from app.core.errors import ChatBackendError
from app.core.session_key import build_session_key
from app.infra.logging_config import get_logger
from app.routers.utils.dependencies import (
    get_current_user_id,
    get_document_store,
    get_object_storage,
    resolve_user_id,
)
from app.schemas.chat import (
    ChatSnapshot,
    MessageRead,
    PendingAttachment,
    ReapResult,
    SendStatus,
)
from app.services.chat_session import ChatSession
from app.services.composer import MessageComposer
from app.services.presentation import build_snapshot
from app.services.reaper import DisappearingMessageReaper
from app.utils.media import is_supported_media

logger = get_logger("chats")

chats_router = APIRouter(prefix="/chats", tags=["Chat"])


def put_latest(queue: asyncio.Queue[ChatSnapshot], snapshot: ChatSnapshot) -> None:
    """Queue snapshot, replacing one the client has not received yet."""
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(snapshot)


def _chat_id_or_400(local_id: str, remote_id: str) -> str:
    try:
        return build_session_key(local_id, remote_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@chats_router.get("/{remote_id}/messages", response_model=ChatSnapshot)
async def get_messages(
    remote_id: str,
    local_id: str = Depends(get_current_user_id),
    store: BaseDocumentStore = Depends(get_document_store),
) -> ChatSnapshot:
    """Current messages of the chat as display rows. Does not mark anything seen."""
    chat_id = _chat_id_or_400(local_id, remote_id)
    try:
        messages = await store.query(chat_id)
    except ChatBackendError as e:
        logger.warning("Message read failed for chat %s: %s", chat_id, e)
        raise HTTPException(status_code=503, detail="Messages are unavailable")
    return build_snapshot(chat_id, messages, local_id)


@chats_router.post(
    "/{remote_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    responses={204: {"description": "Nothing to send"}},
)
async def send_message(
    remote_id: str,
    text: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    local_id: str = Depends(get_current_user_id),
    store: BaseDocumentStore = Depends(get_document_store),
    storage: BaseObjectStorage = Depends(get_object_storage),
):
    """
    Send text and/or one image or video to the chat.
    Empty sends are a no-op (204); upload or write failures return 502.
    """
    settings = get_settings()
    chat_id = _chat_id_or_400(local_id, remote_id)
    composer = MessageComposer(
        store, storage, chat_id, local_id, path_prefix=settings.media_path_prefix
    )
    composer.text = text

    if file is not None:
        if not is_supported_media(file.content_type):
            raise HTTPException(
                status_code=415, detail="Only image and video attachments are supported"
            )
        data = await file.read()
        if len(data) > settings.max_attachment_bytes:
            raise HTTPException(status_code=413, detail="Attachment is too large")
        composer.attachment = PendingAttachment(
            data=data, content_type=file.content_type, filename=file.filename
        )

    result = await composer.send()
    if result.status == SendStatus.SKIPPED:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    if result.status == SendStatus.FAILED:
        raise HTTPException(status_code=502, detail="Message could not be sent")
    return result.message


@chats_router.post("/{remote_id}/leave", response_model=ReapResult)
async def leave_chat(
    remote_id: str,
    local_id: str = Depends(get_current_user_id),
    store: BaseDocumentStore = Depends(get_document_store),
) -> ReapResult:
    """Run the disappearing-message cleanup for clients without a live socket."""
    chat_id = _chat_id_or_400(local_id, remote_id)
    return await DisappearingMessageReaper(store).reap(chat_id, local_id, remote_id)


@chats_router.websocket("/{remote_id}/ws")
async def chat_socket(websocket: WebSocket, remote_id: str) -> None:
    """
    Live chat session. Every feed update is pushed as a ChatSnapshot frame;
    {"text": "..."} frames are sent as messages. Disconnecting closes the
    session, which runs the disappearing-message cleanup.
    """
    local_id = resolve_user_id(websocket.headers, websocket.query_params)
    if local_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    updates: asyncio.Queue[ChatSnapshot] = asyncio.Queue(maxsize=1)

    def push_latest(messages: List[MessageRead]) -> None:
        put_latest(updates, build_snapshot(session.chat_id, messages, local_id))

    session = ChatSession(
        local_id,
        remote_id,
        websocket.app.state.document_store,
        websocket.app.state.object_storage,
        on_change=push_latest,
        path_prefix=get_settings().media_path_prefix,
    )

    async def pump() -> None:
        while True:
            snapshot = await updates.get()
            await websocket.send_json(snapshot.model_dump(mode="json"))

    sender = asyncio.create_task(pump())
    try:
        await session.open()
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring malformed frame in chat %s", session.chat_id)
                continue
            if not isinstance(frame, dict):
                continue
            text = frame.get("text")
            session.composer.text = text if isinstance(text, str) else None
            await session.composer.send()
    except WebSocketDisconnect:
        logger.debug("Client %s left chat %s", local_id, session.chat_id)
    finally:
        # close() unsubscribes before returning; the cleanup outlives cancellation.
        close_task = session.close()
        sender.cancel()
        result: ReapResult = await asyncio.shield(close_task)
        logger.debug("Cleanup after socket close: %s", result)
        await asyncio.gather(sender, return_exceptions=True)

