import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.errors import register_error_handlers
from app.core.logging import configure_logging
from app.db.session import init_db
from app.routers import auth, upload
from app.routers import map as map_routes
from app.services.blob_store import uploads_prefix

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.project_name} started (database: {settings.database_url.split('://', 1)[0]})")
    yield


app = FastAPI(
    title=settings.project_name,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials="*" not in settings.cors_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(upload.router, prefix=settings.api_prefix)
app.include_router(map_routes.router, prefix=settings.api_prefix)

# Uploaded files are served as-is; the directory must exist before the mount is created
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(uploads_prefix(settings.api_prefix).rstrip("/"), StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Welcome to Mapdesk API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
