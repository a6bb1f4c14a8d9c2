"""
In-memory photo repository.

Stands in for the app's photo service in tests and local runs: photos
are registered with their owner and raw bytes.
"""

from __future__ import annotations

from typing import Dict, Tuple

from photo_analysis.domain.jobs.ports import PhotoPayload
from photo_analysis.domain.shared.errors import PhotoNotFoundError


class InMemoryPhotoRepository:
    """
    In-memory implementation of IPhotoLoader.

    Example:
        >>> photos = InMemoryPhotoRepository()
        >>> photos.register("p1", "u1", b"\\xff\\xd8...")
        >>> payload = await photos.load("p1", "u1")
    """

    def __init__(self) -> None:
        self._photos: Dict[str, Tuple[str, PhotoPayload]] = {}
        self.loads = 0

    def register(
        self,
        photo_id: str,
        user_id: str,
        content: bytes,
        mime_type: str = "image/jpeg",
    ) -> None:
        self._photos[photo_id] = (user_id, PhotoPayload(content=content, mime_type=mime_type))

    def remove(self, photo_id: str) -> None:
        self._photos.pop(photo_id, None)

    async def load(self, photo_id: str, user_id: str) -> PhotoPayload:
        self.loads += 1
        entry = self._photos.get(photo_id)
        if entry is None:
            raise PhotoNotFoundError(photo_id)

        owner_id, payload = entry
        if owner_id != user_id:
            raise PhotoNotFoundError(photo_id)
        return payload
