"""Pydantic schemas for API requests and responses."""

from server.schemas.files import (
    FileRecordResponse,
    UploadResponse,
    ShareMetadataResponse,
    DeleteFileResponse,
    StatisticsResponse,
)
from server.schemas.common import ErrorResponse, ShareErrorResponse

__all__ = [
    "FileRecordResponse",
    "UploadResponse",
    "ShareMetadataResponse",
    "DeleteFileResponse",
    "StatisticsResponse",
    "ErrorResponse",
    "ShareErrorResponse",
]
