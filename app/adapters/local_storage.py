"""Object storage on the local filesystem, served under a public base URL."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Union

from fastapi.concurrency import run_in_threadpool

from app.adapters.base import BaseObjectStorage
from app.core.errors import UploadError
from app.infra.logging_config import get_logger

logger = get_logger("local_storage")


class LocalObjectStorage(BaseObjectStorage):
    """Stores blobs under root; the handle is the relative POSIX path."""

    def __init__(self, root: Union[str, Path], public_base_url: str) -> None:
        self._root = Path(root).resolve()
        self._public_base_url = public_base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, handle: str) -> Path:
        relative = PurePosixPath(handle)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise UploadError(f"Invalid storage path: {handle!r}")
        return self._root.joinpath(*relative.parts)

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        try:
            await run_in_threadpool(self._write, target, data)
        except OSError as e:
            raise UploadError(f"Could not store {path}: {e}") from e
        logger.debug("Stored %d bytes (%s) at %s", len(data), content_type, path)
        return str(PurePosixPath(path))

    async def get_public_url(self, handle: str) -> str:
        if not await run_in_threadpool(self._resolve(handle).is_file):
            raise UploadError(f"No stored object for {handle!r}")
        return f"{self._public_base_url}/{handle}"
