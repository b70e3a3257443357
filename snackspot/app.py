"""
SnackSpot Auckland - FastAPI Application Entrypoint

This module initializes the FastAPI application with:
- CORS and security middleware
- Authentication routes and dependencies
- Database and auth manager lifecycle
- Structured logging
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from snackspot.config import settings, AuthConfig
from snackspot.log import configure_logging
from snackspot.gateway.middleware import SecurityMiddleware
from snackspot.auth.database import get_engine, init_db, get_session_factory
from snackspot.auth.errors import StorageFailure, STORAGE_FAILURE_MESSAGE
from snackspot.auth.routes import router as auth_router
from snackspot.auth.service import AuthManager


logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Initialize SQLModel database (users, refresh tokens)
        - Build the process-wide AuthManager from immutable config

    An AuthManager already placed on app.state (tests) is kept as is.

    Shutdown:
        - Dispose the database engine
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    engine = None
    if getattr(app.state, "auth_manager", None) is None:
        engine = get_engine(settings.DATABASE_URL)
        init_db(engine)
        app.state.db_engine = engine
        app.state.auth_manager = AuthManager(
            AuthConfig.from_settings(settings),
            get_session_factory(engine),
        )

    logger.info("app.startup")

    yield

    # Shutdown
    if engine is not None:
        engine.dispose()
    logger.info("app.shutdown")


app = FastAPI(
    title="SnackSpot Auckland",
    description="Authentication service for the SnackSpot Auckland snack discovery app",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - the SPA sends the refresh cookie, so credentials are allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "PUT", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

app.add_middleware(SecurityMiddleware)


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    """Storage failures are already logged; the client gets an opaque 500."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": STORAGE_FAILURE_MESSAGE},
    )


# Register authentication routes
app.include_router(auth_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint for local dev tooling."""
    return {
        "status": "healthy",
        "version": "0.1.0",
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "SnackSpot Auckland",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
