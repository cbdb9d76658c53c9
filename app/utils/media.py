"""Helpers for media attachments: classification and storage paths."""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

SUPPORTED_MEDIA_PREFIXES = ("image/", "video/")


def classify_media_kind(content_type: Optional[str]) -> str:
    """Return "image" for image/* media types and "video" for everything else."""
    if content_type and content_type.lower().startswith("image/"):
        return "image"
    return "video"


def is_supported_media(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    return content_type.lower().startswith(SUPPORTED_MEDIA_PREFIXES)


def build_attachment_path(prefix: str, chat_id: str) -> str:
    """Storage path for a new attachment: {prefix}/{chat_id}/{uuid}."""
    prefix = prefix.strip("/")
    name = str(uuid4())
    if not prefix:
        return f"{chat_id}/{name}"
    return f"{prefix}/{chat_id}/{name}"
