"""Photo loaders."""

from photo_analysis.infrastructure.photos.file_photo_loader import FilePhotoLoader, PhotoRecord
from photo_analysis.infrastructure.photos.in_memory_photo_repository import (
    InMemoryPhotoRepository,
)

__all__ = ["FilePhotoLoader", "InMemoryPhotoRepository", "PhotoRecord"]
