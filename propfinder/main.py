"""
FastAPI main application for Property Finder.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from propfinder.config import Settings, load_settings
from propfinder.filtering import CriteriaExtractor
from propfinder.routers import properties, search
from propfinder.services.images import ImageUploadHandler, ImageWatermarker
from propfinder.services.search import RemoteEnrichmentAdapter, SearchOrchestrator
from propfinder.storage import build_stores

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application for the given settings.

    Args:
        settings: Application settings (read from the environment if omitted)

    Returns:
        Configured FastAPI app; stores and services are created on startup
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        # Startup
        logger.info("Starting Property Finder API...")
        database, listing_store, search_log_store = build_stores(settings.database)
        if database is not None:
            await database.connect()
            logger.info("Database initialized")
        else:
            logger.info("Using in-memory stores")

        extractor = CriteriaExtractor(
            anchored_price_units=settings.extraction.anchored_price_units
        )
        enrichment = RemoteEnrichmentAdapter(settings.enrichment, extractor)
        if not enrichment.use_llm:
            logger.info("Remote enrichment unavailable, searches use keyword rules")

        app.state.settings = settings
        app.state.listing_store = listing_store
        app.state.search_log_store = search_log_store
        app.state.orchestrator = SearchOrchestrator(enrichment, listing_store, search_log_store)
        app.state.upload_handler = ImageUploadHandler(settings.uploads)
        app.state.watermarker = (
            ImageWatermarker(settings.watermark) if settings.watermark.enabled else None
        )

        yield

        # Shutdown
        logger.info("Shutting down Property Finder API...")
        await enrichment.close()
        if database is not None:
            await database.close()

    app = FastAPI(
        title="Property Finder API",
        description="Property listings with watermarked images and natural-language search",
        version=VERSION,
        lifespan=lifespan
    )

    # CORS middleware - allow all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": VERSION
        }

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Property Finder API",
            "docs": "/docs",
            "health": "/health"
        }

    app.include_router(properties.router, prefix="/api", tags=["properties"])
    app.include_router(search.router, prefix="/api", tags=["search"])

    app.mount(
        settings.uploads.public_prefix,
        StaticFiles(directory=settings.uploads.upload_dir, check_dir=False),
        name="uploads",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
