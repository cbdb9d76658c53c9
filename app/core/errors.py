"""Errors raised by document store and object storage adapters."""

from __future__ import annotations


class ChatBackendError(RuntimeError):
    """Base error for failures reported by a chat backend adapter."""


class SubscriptionError(ChatBackendError):
    """The live message subscription could not be established or maintained."""


class DocumentWriteError(ChatBackendError):
    """A create, update or delete was rejected by the document store."""


class MessageNotFoundError(DocumentWriteError):
    def __init__(self, chat_id: str, message_id: str) -> None:
        super().__init__(f"Message {message_id} not found in chat {chat_id}")
        self.chat_id = chat_id
        self.message_id = message_id


class DocumentQueryError(ChatBackendError):
    """A snapshot query against the document store failed."""


class UploadError(ChatBackendError):
    """An attachment could not be stored or its public URL resolved."""
