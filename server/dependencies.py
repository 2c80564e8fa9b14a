"""FastAPI dependencies resolving components attached to the application."""

from fastapi import Request

from server.services.file_service import FileService
from server.storage import LocalBlobStorage


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_blob_storage(request: Request) -> LocalBlobStorage:
    return request.app.state.blob_storage
