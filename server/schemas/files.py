"""Pydantic schemas for file endpoints."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from common.types import UploadStatistics


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileRecordResponse(CamelModel):
    """Response model for file metadata."""
    id: str
    filename: str
    original_name: str
    size: int
    type: str
    url: str
    uploaded_at: str
    expires_at: str
    download_count: int
    user_id: str
    security_mode: bool


class UploadResponse(FileRecordResponse):
    """Response model for file upload."""
    share_url: str


class ShareMetadataResponse(FileRecordResponse):
    """Response model for share metadata lookups."""
    share_url: str


class DeleteFileResponse(BaseModel):
    """Response model for file deletion."""
    deleted: bool


class StatisticsResponse(CamelModel):
    """Response model for upload statistics."""
    total_uploads: int
    uploads_today: int
    total_size: int
    average_file_size: int
    most_uploaded_type: str

    @classmethod
    def from_statistics(cls, stats: UploadStatistics) -> "StatisticsResponse":
        return cls.model_validate(stats.to_dict())
