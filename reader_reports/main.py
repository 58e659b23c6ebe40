"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reader_reports.api.routes import router as reports_router
from reader_reports.core.config import settings
from reader_reports.infrastructure.reference.loader import load_reference_data

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting reader weekly reports service")
    app.state.reference_data = await load_reference_data(settings.reference_data_path)
    logger.info("Reference data loaded")
    yield
    logger.info("Shutting down reader weekly reports service")


app = FastAPI(
    title="Reader Weekly Reports",
    description="Weekly quote digests with AI analysis and book recommendations",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
