"""Main FastAPI application entry point"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from modelvault import __version__
from modelvault.api.errors import register_exception_handlers
from modelvault.api.health import router as health_router
from modelvault.api.report_routes import router as report_router
from modelvault.config import settings
from modelvault.database import create_all

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.environment == "development":
        await create_all()
        logger.info("Database tables created")
    yield


app = FastAPI(
    title="ModelVault API",
    description="Data layer for creator projects, model versions, favourites and admin reports",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-Id"],
    expose_headers=["Content-Disposition"],
    max_age=3600,
)

register_exception_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(report_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "ModelVault API",
        "version": __version__,
        "status": "running",
    }
