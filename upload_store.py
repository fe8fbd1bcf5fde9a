"""
upload_store.py — short-lived on-disk storage for uploaded photos.

Each request writes its photos here, reads them back once while building the
backend payload, and deletes them before the response leaves. The directory
is the only state shared between requests; file names are random so two
requests never touch the same file.

Usage:
    with store.scope() as handles:
        handles.append(store.store(data, "image/jpeg", "front.jpg"))
        ...
    # every handle in `handles` is deleted here, on success or failure
"""
from __future__ import annotations

import contextlib
import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import config

logger = logging.getLogger(__name__)


class HandleReleased(RuntimeError):
    """Raised when a handle is read after its file was deleted."""


@dataclass
class UploadHandle:
    """One uploaded file owned by a single request."""
    path: Path
    filename: str
    mime_type: str
    released: bool = field(default=False, compare=False)


class UploadStore:

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory or config.UPLOAD_DIR)

    def store(self, data: bytes, mime_type: str, filename: str = "") -> UploadHandle:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / secrets.token_hex(16)
        path.write_bytes(data)
        logger.debug("Stored upload %s (%d bytes, %s)", path.name, len(data), mime_type)
        return UploadHandle(path=path, filename=filename, mime_type=mime_type)

    def read(self, handle: UploadHandle) -> bytes:
        if handle.released:
            raise HandleReleased(f"upload {handle.path.name} was already released")
        return handle.path.read_bytes()

    def release(self, handle: UploadHandle) -> None:
        """Delete the backing file. Safe to call more than once."""
        if handle.released:
            return
        handle.released = True
        try:
            os.unlink(handle.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            # Logged, not raised: release runs inside finally blocks
            logger.error("Could not delete upload %s: %s", handle.path.name, exc)

    @contextlib.contextmanager
    def scope(self) -> Iterator[list[UploadHandle]]:
        """
        Yield a list for the caller to append handles to, and release every
        one of them on exit, whichever way the block exits.
        """
        handles: list[UploadHandle] = []
        try:
            yield handles
        finally:
            for handle in handles:
                self.release(handle)

    def pending(self) -> list[str]:
        """Names of upload files still on disk."""
        if not self.directory.is_dir():
            return []
        return sorted(p.name for p in self.directory.iterdir() if p.is_file())
