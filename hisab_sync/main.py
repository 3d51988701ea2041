"""
Hisab Ghar Offline Sync - Main Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .dependencies import init_dependencies, close_dependencies
from .routes import worker_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting Hisab Ghar sync worker...")
    await init_dependencies()
    logger.info("Worker ready")
    yield
    logger.info("Shutting down...")
    await close_dependencies()


# Create app
app = FastAPI(
    title="Hisab Ghar Offline Sync",
    description="Upload and download the offline store of a Hisab Ghar device",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(worker_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "hisab_sync.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
