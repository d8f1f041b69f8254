"""Consignment number service — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from consignment_service.adapters.persistence.database import engine
from consignment_service.config import settings
from consignment_service.domain.errors import ConsignmentError, RangeConflictError
from consignment_service.infrastructure.api.routes_consignments import (
    router as consignments_router,
)
from consignment_service.infrastructure.api.routes_health import router as health_router
from consignment_service.infrastructure.api.routes_settlement import (
    router as settlement_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


async def consignment_error_handler(request: Request, exc: ConsignmentError) -> JSONResponse:
    body = {"error": exc.message}
    if isinstance(exc, RangeConflictError) and exc.conflicting_owner:
        body["conflictingOwner"] = exc.conflicting_owner
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Consignment Number Service",
        description="Consignment number ranges, usage tracking and settlement",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ConsignmentError, consignment_error_handler)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(consignments_router, prefix="/api")
    app.include_router(settlement_router, prefix="/api")

    return app


app = create_app()
