from app.services.chat_message_service import ChatMessageService
from app.services.chat_session import ChatSession
from app.services.composer import MessageComposer
from app.services.live_feed import LiveMessageFeed
from app.services.reaper import DisappearingMessageReaper

__all__ = [
    "ChatMessageService",
    "ChatSession",
    "DisappearingMessageReaper",
    "LiveMessageFeed",
    "MessageComposer",
]
