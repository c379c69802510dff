from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)


class DriveError(Exception):
    """
    Base error of the drive core.

    Every subclass carries the HTTP status it is translated to at the API boundary,
    so routes never branch on status codes themselves.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class NotFound(DriveError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "File not found"


class ValidationError(DriveError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid upload"


class TooLarge(DriveError):
    status_code = 413
    message = "File too large"


class StorageError(DriveError):
    message = "Failed to generate download link"


class StorageWriteError(StorageError):
    message = "Failed to upload file"


class StorageDeleteError(StorageError):
    message = "Failed to delete file"


class MetadataWriteError(DriveError):
    message = "Failed to save file metadata"

    def __init__(self, message: str | None = None, *, orphan_key: str | None = None):
        super().__init__(message)
        self.orphan_key = orphan_key


class AuthError(DriveError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


async def handle_drive_error(request: Request, exc: DriveError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )
