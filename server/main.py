"""Entry point for the share server."""

import time
import uuid
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.exceptions import (
    DuplicateIdError,
    FileLinkException,
    NotFoundError,
    RateLimitedError,
    UpstreamFailureError,
)
from common.logging_config import setup_logging
from lifecycle.cleanup import CleanupScheduler
from lifecycle.local_storage import JsonFileStorage
from lifecycle.metadata_store import MetadataStore
from lifecycle.rate_limiter import RateLimiter
from server.config import SERVER_HOST, SERVER_PORT, ServerSettings
from server.routes.file_routes import router as file_router
from server.routes.upload_routes import router as upload_router
from server.services.file_service import FileService
from server.storage import LocalBlobStorage

logger = setup_logging('server')


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.warning(
            f"File not found error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "code": "FILE_NOT_FOUND"}
        )

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        logger.warning(
            f"Rate limited: {exc} [request_id={_request_id(request)}] path={request.url.path}"
        )
        retry_after = exc.retry_after.total_seconds() if exc.retry_after else 0
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": str(exc), "code": "RATE_LIMITED", "retryAfter": retry_after},
            headers={"Retry-After": str(max(1, int(retry_after + 0.999)))}
        )

    @app.exception_handler(DuplicateIdError)
    async def duplicate_id_handler(request: Request, exc: DuplicateIdError):
        logger.error(
            f"Duplicate ID error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "code": "DUPLICATE_ID"}
        )

    @app.exception_handler(UpstreamFailureError)
    async def upstream_failure_handler(request: Request, exc: UpstreamFailureError):
        logger.error(
            f"Upstream failure: {exc} [request_id={_request_id(request)}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Upload failed", "code": "UPSTREAM_FAILURE"}
        )

    @app.exception_handler(FileLinkException)
    async def filelink_exception_handler(request: Request, exc: FileLinkException):
        logger.error(
            f"FileLink exception: {exc} [request_id={_request_id(request)}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc), "code": "INTERNAL_ERROR"}
        )


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    """
    Build the application and the components it serves.

    Args:
        settings: Server settings (read from the environment when omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or ServerSettings.from_env()
    ttl = timedelta(minutes=settings.ttl_minutes)

    app = FastAPI(
        title="FileLink Share Server",
        description="Short-lived file sharing with expiring share codes",
        version="1.0.0"
    )

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    local_storage = JsonFileStorage(settings.metadata_path)
    store = MetadataStore(local_storage, default_ttl=ttl)
    blob_storage = LocalBlobStorage(settings.blob_dir, settings.public_url)
    blob_storage.ensure_directory()
    rate_limiter = RateLimiter(
        local_storage,
        max_uploads=settings.rate_limit_max_uploads,
        window=timedelta(seconds=settings.rate_limit_window_seconds),
    )
    file_service = FileService(store, blob_storage, rate_limiter, ttl, settings.share_url_prefix)
    scheduler = CleanupScheduler(
        store,
        on_expired=file_service.purge_blob if settings.purge_expired_blobs else None,
        rate_limiter=rate_limiter,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.blob_storage = blob_storage
    app.state.file_service = file_service
    app.state.cleanup_scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Session-ID"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.on_event("startup")
    async def startup_event():
        """
        Start the expiry sweep on application startup.
        """
        logger.info("Share server starting up...")
        await scheduler.start_auto_cleanup(settings.cleanup_interval_minutes, settings.ttl_minutes)
        logger.info("Background cleanup task started")

    @app.on_event("shutdown")
    async def shutdown_event():
        """
        Stop background work on application shutdown.
        """
        logger.info("Share server shutting down...")
        await scheduler.stop()
        logger.info("Cleanup task stopped")

    register_exception_handlers(app)

    app.include_router(upload_router)
    app.include_router(file_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "FileLink Share Server API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for container healthchecks.
        Returns 200 if service is alive.
        """
        return {
            "status": "healthy",
            "service": "server",
            "cleanup": "running" if scheduler.running else "stopped",
        }

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "server.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
