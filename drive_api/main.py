import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drive_api.config import Settings, get_settings
from drive_api.core.errors import DriveError, handle_drive_error, handle_unexpected_error
from drive_api.database import build_engine, build_session_maker, init_models
from drive_api.logging_config import configure_logging
from drive_api.routes.auth import router as auth_router
from drive_api.routes.files import router as file_router
from drive_api.routes.health import router as health_router
from drive_api.storage.base import BlobStore
from drive_api.storage.s3 import S3Storage

log = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, storage: BlobStore | None = None) -> FastAPI:
    """Create the drive API; engine and blob store live for the lifetime of the app."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(settings.DATABASE_URL)
        await init_models(engine)
        app.state.engine = engine
        app.state.session_maker = build_session_maker(engine)
        app.state.storage = storage or S3Storage(settings)
        log.info("Drive API started (bucket=%s, db=%s)", settings.S3_BUCKET, engine.url.render_as_string())
        try:
            yield
        finally:
            if storage is None:
                app.state.storage.close()
            await engine.dispose()
            log.info("Drive API stopped")

    app = FastAPI(title="Personal Drive API", lifespan=lifespan)
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(file_router)

    app.add_exception_handler(DriveError, handle_drive_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=5000)
