"""
OAuth Client Registry - Main Application

SECURITY FEATURES:
- Conditional API docs (disabled when DOCS_ENABLED is false)
- Request-tagged logging without secrets or tokens
- RFC 7807 error bodies; client existence never leaks across owners
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from oauth_registry import __version__
from oauth_registry.api.deps import get_logo_storage
from oauth_registry.api.router import api_router
from oauth_registry.config import settings
from oauth_registry.database import init_db
from oauth_registry.exceptions import register_exception_handlers
from oauth_registry.logging_config import configure_logging
from oauth_registry.middleware import CorrelationIdMiddleware

configure_logging(settings.DEBUG)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting OAuth Client Registry...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    # SECURITY: Don't log full database URL, just the driver
    logger.info(f"Database driver: {settings.DATABASE_URL.split('://', 1)[0]}")
    get_logo_storage().ensure_default()
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # SECURITY: Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        raise
    yield
    logger.info("Shutting down OAuth Client Registry...")


docs_url = "/docs" if settings.DOCS_ENABLED else None
redoc_url = "/redoc" if settings.DOCS_ENABLED else None

app = FastAPI(
    title="OAuth Client Registry",
    description="Owner-scoped management of third-party OAuth client registrations",
    version=__version__,
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

allowed_origins = [settings.FRONTEND_URL]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(api_router)
app.mount(
    settings.LOGO_MOUNT_PATH,
    StaticFiles(directory=settings.LOGO_UPLOAD_DIR, check_dir=False),
    name="client-logos",
)


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "OAuth Client Registry",
        "version": __version__,
        "health": "/health",
    }
    if settings.DOCS_ENABLED:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oauth_registry.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
