from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from kore.config import AuthConfig, settings
from kore.core.exceptions import InvalidArgument, TransientStoreError
from kore.database import Base, engine
from kore.logging_config import configure_logging

# Import models so SQLAlchemy registers tables
from kore.models import (  # noqa: F401
    user,
    block,
    mute,
    audit_log,
)

# Routers
from kore.routers import (
    blocks_router,
    mutes_router,
    audit_router,
)


# -----------------------
# DATABASE TABLES
# -----------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


# -----------------------
# ERROR MAPPING
# -----------------------
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def transient_store_error_handler(request: Request, exc: TransientStoreError):
    logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage temporarily unavailable"},
    )


# -----------------------
# CREATE APP
# -----------------------
def create_app(auth_config: Optional[AuthConfig] = None) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Block and mute moderation API.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Built once; the auth dependency reads it from here
    app.state.auth_config = auth_config or settings.auth_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InvalidArgument, invalid_argument_handler)
    app.add_exception_handler(TransientStoreError, transient_store_error_handler)

    # -----------------------
    # ROUTES
    # -----------------------
    app.include_router(blocks_router.router)
    app.include_router(mutes_router.router)
    app.include_router(audit_router.router)

    # -----------------------
    # HEALTH CHECK
    # -----------------------
    @app.get("/")
    def root():
        return {"message": "Kore moderation API is running!"}

    logger.info(f"{settings.PROJECT_NAME} created (env={settings.ENV})")
    return app


app = create_app()
