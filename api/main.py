"""
Broker CRM API - Main Application.

FastAPI application with CORS enabled for the dashboard frontend. Settings and
the Supabase client are created once at startup and kept on `app.state`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.models import ErrorResponse
from domain.errors import CRMError, Forbidden, NotFound, StoreFailure, Unauthenticated, ValidationError
from repositories.client import create_supabase_client, load_settings
from services.notification_service import LoggingNotificationDispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.state.settings = settings
    app.state.supabase = create_supabase_client(settings)
    app.state.notification_delivery = LoggingNotificationDispatcher()
    logger.info("Broker CRM API started", extra={"version": __version__})
    yield


# Create FastAPI application
app = FastAPI(
    title="Broker CRM API",
    description="REST API for managing broker leads and their audit trail",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the dashboard host once it has a fixed domain
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: CRMError, redirect_to: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=str(error), redirect_to=redirect_to, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return _error(401, exc, exc.redirect_to)


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return _error(403, exc, exc.redirect_to)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error(404, exc)


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return _error(400, exc)


@app.exception_handler(StoreFailure)
async def store_failure_handler(request: Request, exc: StoreFailure):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return _error(500, exc)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "broker-crm-api",
    }


# Import and include routers
from api.routers import leads, portal  # noqa: E402

app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
app.include_router(portal.router, prefix="/api/v1", tags=["Portal"])
