"""Tests for photo loaders."""

from pathlib import Path
from typing import Dict, Optional

import pytest

from photo_analysis.domain.jobs.ports import IPhotoLoader
from photo_analysis.domain.shared.errors import PhotoNotFoundError
from photo_analysis.infrastructure.photos.file_photo_loader import FilePhotoLoader, PhotoRecord
from photo_analysis.infrastructure.photos.in_memory_photo_repository import (
    InMemoryPhotoRepository,
)


class TestInMemoryPhotoRepository:
    @pytest.mark.asyncio
    async def test_load_owned_photo(self) -> None:
        repo = InMemoryPhotoRepository()
        repo.register("p1", "u1", b"jpeg", "image/jpeg")

        payload = await repo.load("p1", "u1")

        assert payload.content == b"jpeg"
        assert payload.mime_type == "image/jpeg"
        assert isinstance(repo, IPhotoLoader)

    @pytest.mark.asyncio
    async def test_other_users_photo_is_not_found(self) -> None:
        repo = InMemoryPhotoRepository()
        repo.register("p1", "u1", b"jpeg")

        with pytest.raises(PhotoNotFoundError):
            await repo.load("p1", "u2")

    @pytest.mark.asyncio
    async def test_unknown_photo(self) -> None:
        with pytest.raises(PhotoNotFoundError):
            await InMemoryPhotoRepository().load("nope", "u1")


class TestFilePhotoLoader:
    @staticmethod
    def _loader(records: Dict[str, PhotoRecord], base_dir: Optional[str] = None) -> FilePhotoLoader:
        async def lookup(photo_id: str) -> Optional[PhotoRecord]:
            return records.get(photo_id)

        return FilePhotoLoader(lookup, base_dir=base_dir)

    @pytest.mark.asyncio
    async def test_reads_file_relative_to_base_dir(self, tmp_path: Path) -> None:
        (tmp_path / "meal.png").write_bytes(b"\x89PNG")
        loader = self._loader(
            {"p1": PhotoRecord("p1", "u1", "meal.png")}, base_dir=str(tmp_path)
        )

        payload = await loader.load("p1", "u1")

        assert payload.content == b"\x89PNG"
        assert payload.mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_record_mime_type_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "upload.bin"
        path.write_bytes(b"data")
        loader = self._loader({"p1": PhotoRecord("p1", "u1", str(path), "image/webp")})

        payload = await loader.load("p1", "u1")

        assert payload.mime_type == "image/webp"

    @pytest.mark.asyncio
    async def test_wrong_owner(self, tmp_path: Path) -> None:
        path = tmp_path / "a.jpg"
        path.write_bytes(b"x")
        loader = self._loader({"p1": PhotoRecord("p1", "u1", str(path))})

        with pytest.raises(PhotoNotFoundError):
            await loader.load("p1", "u2")

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path) -> None:
        loader = self._loader({"p1": PhotoRecord("p1", "u1", str(tmp_path / "gone.jpg"))})

        with pytest.raises(PhotoNotFoundError, match="file unreadable"):
            await loader.load("p1", "u1")
