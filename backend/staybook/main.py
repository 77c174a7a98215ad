"""StayBook Engine: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from staybook.api.v1.listings import router as listings_router
from staybook.api.v1.pricing import router as pricing_router
from staybook.api.v1.reservations import router as reservations_router
from staybook.config import settings
from staybook.domain.errors import (
    DateConflictError,
    InvalidTransitionError,
    NotCheckInDayError,
    NotFoundError,
    ReservationError,
    ValidationError,
    VersionConflictError,
)

# Configure root logger so all staybook.* loggers output to stderr.
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_ERROR_STATUS: list[tuple[type[ReservationError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DateConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (NotCheckInDayError, status.HTTP_409_CONFLICT),
    (VersionConflictError, status.HTTP_409_CONFLICT),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    yield
    # Shutdown: dispose engine connections
    from staybook.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Reservation lifecycle, split payments, availability and cancellation refunds.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.exception_handler(ReservationError)
async def reservation_error_handler(_request: Request, exc: ReservationError) -> JSONResponse:
    """Map engine errors to HTTP statuses with a stable error body."""
    status_code = next(
        (code for error_cls, code in _ERROR_STATUS if isinstance(exc, error_cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


# Routers
app.include_router(listings_router)
app.include_router(reservations_router)
app.include_router(pricing_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
