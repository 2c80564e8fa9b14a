"""Upload API route."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.responses import JSONResponse

from common.logging_config import get_logger
from server.dependencies import get_file_service
from server.schemas import ErrorResponse, UploadResponse
from server.services.file_service import FileService
from server.utils import NO_CACHE_HEADERS, parse_flag

logger = get_logger(__name__)

router = APIRouter(tags=["Upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    response: Response,
    file: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    security_mode: Optional[str] = Form(None, alias="securityMode"),
    file_service: FileService = Depends(get_file_service),
):
    """
    Upload a file and register a share link for it.

    Parameters:
        - file: File to upload (multipart/form-data)
        - userId: Uploader's session ID (optional, generated when absent)
        - securityMode: "true" to flag the upload for extra verification

    Returns:
        - The created file record plus shareUrl

    Raises:
        - 400: No file provided
        - 429: Upload rate limit exceeded
        - 500: Storage failure
    """
    if file is None or not file.filename:
        logger.info("Upload rejected: no file provided")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "No file provided", "code": "MISSING_FILE"},
        )

    data = await file.read()

    record = file_service.upload_file(
        original_name=file.filename,
        data=data,
        content_type=file.content_type,
        user_id=user_id,
        security_mode=parse_flag(security_mode),
    )

    response.headers.update(NO_CACHE_HEADERS)
    return UploadResponse.model_validate({**record.to_dict(), "shareUrl": file_service.share_url(record.id)})
