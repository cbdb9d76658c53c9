"""Tests for LocalObjectStorage."""

import threading
from unittest.mock import patch

import pytest

from app.core.errors import UploadError


@pytest.mark.asyncio
async def test_put_and_public_url(storage, media_root):
    handle = await storage.put("chat/u2-u1/abc", b"\x89PNG", "image/png")
    assert handle == "chat/u2-u1/abc"
    assert (media_root / "chat" / "u2-u1" / "abc").read_bytes() == b"\x89PNG"
    url = await storage.get_public_url(handle)
    assert url == "http://testserver/media/chat/u2-u1/abc"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["../escape", "/etc/passwd", "chat/../../x", ""])
async def test_put_rejects_paths_outside_root(storage, path):
    with pytest.raises(UploadError):
        await storage.put(path, b"data", "image/png")


@pytest.mark.asyncio
async def test_public_url_for_missing_object_raises(storage):
    with pytest.raises(UploadError, match="No stored object"):
        await storage.get_public_url("chat/u2-u1/missing")


@pytest.mark.asyncio
async def test_writes_run_off_the_event_loop(storage):
    loop_thread = threading.get_ident()
    write_threads = []
    real_write = storage._write

    def tracking_write(target, data):
        write_threads.append(threading.get_ident())
        real_write(target, data)

    with patch.object(storage, "_write", side_effect=tracking_write):
        await storage.put("chat/u2-u1/abc", b"\x89PNG", "image/png")

    assert len(write_threads) == 1
    assert write_threads[0] != loop_thread
