"""
Filesystem photo loader.

Resolves (photo_id, user_id) to a stored upload through a lookup
callable supplied by the host app, then reads the file off the event
loop.
"""

from __future__ import annotations

import asyncio
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional

import structlog

from photo_analysis.domain.jobs.ports import PhotoPayload
from photo_analysis.domain.shared.errors import PhotoNotFoundError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PhotoRecord:
    """Photo metadata as stored by the host app."""

    photo_id: str
    user_id: str
    file_path: str
    mime_type: Optional[str] = None


PhotoLookup = Callable[[str], Awaitable[Optional[PhotoRecord]]]


class FilePhotoLoader:
    """
    IPhotoLoader reading uploads from disk.

    Args:
        lookup: Async callable returning the PhotoRecord for an ID, or None
        base_dir: Optional root that relative file paths are resolved against
    """

    def __init__(self, lookup: PhotoLookup, base_dir: Optional[str] = None) -> None:
        self._lookup = lookup
        self._base_dir = Path(base_dir) if base_dir else None

    def _resolve(self, file_path: str) -> Path:
        path = Path(file_path)
        if self._base_dir is not None and not path.is_absolute():
            path = self._base_dir / path
        return path

    async def load(self, photo_id: str, user_id: str) -> PhotoPayload:
        record = await self._lookup(photo_id)
        if record is None or record.user_id != user_id:
            raise PhotoNotFoundError(photo_id)

        path = self._resolve(record.file_path)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            logger.warning(
                "Photo file unreadable",
                photo_id=photo_id,
                path=str(path),
                error=str(exc),
            )
            raise PhotoNotFoundError(photo_id, "file unreadable") from exc

        mime_type = record.mime_type or mimetypes.guess_type(path.name)[0] or "image/jpeg"
        return PhotoPayload(content=content, mime_type=mime_type)
