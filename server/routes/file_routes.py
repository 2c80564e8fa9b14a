"""Download, share and blob API routes."""

import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, StreamingResponse

from common.exceptions import NotFoundError, UpstreamFailureError
from common.logging_config import get_logger
from common.types import FileRecord
from server.dependencies import get_blob_storage, get_file_service
from server.schemas import (
    DeleteFileResponse,
    ErrorResponse,
    ShareErrorResponse,
    ShareMetadataResponse,
    StatisticsResponse,
)
from server.services.file_service import FileService
from server.storage import LocalBlobStorage
from server.utils import NO_CACHE_HEADERS, content_disposition

logger = get_logger(__name__)

router = APIRouter(tags=["Files"])

SHARE_NOT_FOUND = "파일을 찾을 수 없습니다."
SHARE_FETCH_FAILED = "파일 다운로드 중 오류가 발생했습니다."
SHARE_SERVER_ERROR = "서버 오류가 발생했습니다."


def _attachment_response(record: FileRecord, stream, extra_headers: Optional[dict] = None) -> StreamingResponse:
    headers = {
        "Content-Disposition": content_disposition(record.original_name or f"file_{record.id}"),
        "Content-Length": str(record.size),
    }
    headers.update(extra_headers or {})
    return StreamingResponse(stream, media_type=record.content_type, headers=headers)


@router.get("/download/{file_id}")
async def download_file(file_id: str, file_service: FileService = Depends(get_file_service)):
    """
    Download a file by share ID.

    Returns:
        - StreamingResponse with the file bytes as an attachment

    Raises:
        - 404: File not found (plain text)
        - 500: Stored bytes could not be fetched (plain text)
    """
    try:
        record, stream = file_service.open_download(file_id)
    except NotFoundError:
        return PlainTextResponse("File not found", status_code=status.HTTP_404_NOT_FOUND)
    except UpstreamFailureError as e:
        logger.error(f"Download fetch failed [file_id={file_id}]: {e}")
        return PlainTextResponse("Failed to fetch file", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return _attachment_response(record, stream)


@router.get("/share/{file_id}", responses={404: {"model": ShareErrorResponse}, 500: {"model": ShareErrorResponse}})
async def share_file(
    file_id: str,
    format: Optional[str] = Query(None, description="'json' for metadata instead of the file"),
    file_service: FileService = Depends(get_file_service),
):
    """
    Resolve a share link.

    Parameters:
        - file_id: Share ID
        - format: "json" returns metadata; anything else proxies the download

    Raises:
        - 404: File not found
        - 500: Download or server error
    """
    logger.info(f"Share link requested [file_id={file_id}] format={format or 'download'}")

    try:
        if format == "json":
            record = file_service.get_file(file_id)
            payload = ShareMetadataResponse.model_validate(
                {**record.to_dict(), "shareUrl": file_service.share_url(record.id)}
            )
            return JSONResponse(content=payload.model_dump(by_alias=True), headers=NO_CACHE_HEADERS)

        record, stream = file_service.open_download(file_id)
    except NotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": SHARE_NOT_FOUND})
    except UpstreamFailureError as e:
        logger.error(f"Share fetch failed [file_id={file_id}]: {e}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": SHARE_FETCH_FAILED})
    except Exception as e:
        logger.error(f"Share link error [file_id={file_id}]: {e}", exc_info=True)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": SHARE_SERVER_ERROR})

    return _attachment_response(record, stream, NO_CACHE_HEADERS)


@router.delete(
    "/files/{file_id}",
    response_model=DeleteFileResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_file(
    file_id: str,
    x_session_id: Optional[str] = Header(None),
    file_service: FileService = Depends(get_file_service),
):
    """
    Delete a file owned by the caller's session.

    Parameters:
        - X-Session-ID header: session ID the file was uploaded with

    Raises:
        - 400: Missing session header
        - 403: Session does not own the file
        - 404: File not found
    """
    if not x_session_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "X-Session-ID header is required", "code": "MISSING_SESSION"},
        )

    if not file_service.delete_file(file_id, x_session_id):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"deleted": False, "detail": "Session does not own this file", "code": "NOT_OWNER"},
        )

    return DeleteFileResponse(deleted=True)


@router.get("/files/{filename}")
async def get_blob(filename: str, storage: LocalBlobStorage = Depends(get_blob_storage)):
    """
    Serve stored bytes at their public URL.

    Raises:
        - 404: No such blob
    """
    try:
        path = storage.path_for(filename)
    except UpstreamFailureError:
        return PlainTextResponse("File not found", status_code=status.HTTP_404_NOT_FOUND)

    if not path.is_file():
        return PlainTextResponse("File not found", status_code=status.HTTP_404_NOT_FOUND)

    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return FileResponse(path, media_type=media_type)


@router.get("/stats", response_model=StatisticsResponse)
async def upload_statistics(file_service: FileService = Depends(get_file_service)):
    """
    Summary of the files currently held by the server.
    """
    return StatisticsResponse.from_statistics(file_service.statistics())
