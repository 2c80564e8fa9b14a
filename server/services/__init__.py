"""Service layer for business logic."""

from server.services.file_service import FileService, build_storage_filename

__all__ = [
    "FileService",
    "build_storage_filename",
]
