"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from shopfloor.config import get_settings
from shopfloor.db.database import init_db
from shopfloor.exceptions import register_exception_handlers

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events.

    Args:
        app: FastAPI application instance.
    """
    # Startup
    init_db()
    logger.info(f"{settings.app_name} started ({settings.environment})")
    yield
    # Shutdown (cleanup if needed)


app = FastAPI(
    title=settings.app_name,
    description="Shop-floor production recording, label design and label printing",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Uploaded logos
Path(settings.media_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.media_url_prefix, StaticFiles(directory=settings.media_dir), name="media")


# Import and include routers
from shopfloor.auth.router import router as auth_router  # noqa: E402
from shopfloor.labels.router import router as labels_router  # noqa: E402
from shopfloor.production.router import router as production_router  # noqa: E402
from shopfloor.reprints.router import router as reprints_router  # noqa: E402

# API routes
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(production_router, prefix="/api/production", tags=["production"])
app.include_router(labels_router, prefix="/api/labels", tags=["labels"])
app.include_router(reprints_router, prefix="/api/reprints", tags=["reprints"])


@app.get("/health")
async def health_check():
    """Liveness probe.

    Returns:
        dict: Health status.
    """
    return {"status": "healthy", "app": settings.app_name}
