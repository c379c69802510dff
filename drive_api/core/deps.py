from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from drive_api.config import Settings
from drive_api.core.errors import AuthError
from drive_api.core.security import decode_token
from drive_api.database import get_async_session
from drive_api.repositories.files import FileRepository
from drive_api.services.files import FileService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_owner(
        token: str | None = Depends(oauth2_scheme),
        settings: Settings = Depends(get_app_settings),
) -> str:
    if not settings.AUTH_ENABLED:
        return settings.OWNER_EMAIL

    if not token:
        raise AuthError()

    payload = decode_token(settings, token)
    if not payload:
        raise AuthError("Invalid token")

    subject: str | None = payload.get("sub")
    if not subject or subject.lower() != settings.OWNER_EMAIL.lower():
        raise AuthError("Invalid token payload")

    return subject


async def get_file_service(
        request: Request,
        session: AsyncSession = Depends(get_async_session),
        settings: Settings = Depends(get_app_settings),
) -> FileService:
    repo = FileRepository(session, recent_window_days=settings.RECENT_WINDOW_DAYS)
    return FileService(repo, request.app.state.storage, settings)
