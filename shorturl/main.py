"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Startup/shutdown (logging setup, assignment lock, optional table creation)
- Application metadata

Run with:
    uvicorn shorturl.main:app
or the `shorturl-server` console script.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shorturl import __version__
from shorturl.api import endpoints
from shorturl.api.schemas import HealthResponse
from shorturl.core.exceptions import DatabaseError
from shorturl.core.lock_manager import reset_assignment_lock
from shorturl.core.setting import settings
from shorturl.db.session import async_session_maker, engine, init_db
from shorturl.middleware.logging import add_logging_middleware, configure_logging
from shorturl.services.registry import UrlRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    configure_logging(settings.LOG_LEVEL)
    reset_assignment_lock()

    if settings.CREATE_TABLES_ON_STARTUP:
        logger.info("Creating missing database tables")
        await init_db()

    logger.info(f"URL Shortener Service started ({settings.ENV_SETTING.value})")

    yield

    logger.info("Shutting down URL Shortener Service")
    await engine.dispose()


app = FastAPI(
    title="URL Shortener Service",
    description="Maps URLs to short sequential identifiers and redirects back",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """Service banner."""
    return {
        "message": "URL Shortener Service",
        "version": __version__,
        "docs": "/docs"
    }


@app.get(
    "/health",
    tags=["Health"],
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check():
    """
    Health check endpoint for monitoring.

    Runs a count query so an unreachable database shows up as 503.
    """
    try:
        async with async_session_maker() as session:
            await UrlRegistry(session).count()
    except DatabaseError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=HealthResponse(status="unhealthy", database="unavailable").model_dump()
        )
    return HealthResponse(status="healthy", database="ok")


app.include_router(endpoints.router, tags=["URL Shortener"])


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run("shorturl.main:app", host=settings.HOST, port=settings.PORT)
