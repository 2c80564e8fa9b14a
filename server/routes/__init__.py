"""API routes package."""

from server.routes.file_routes import router as file_router
from server.routes.upload_routes import router as upload_router

__all__ = ["file_router", "upload_router"]
