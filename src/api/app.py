"""FastAPI application for the rental ledger."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.rentals import router as rentals_router
from src.services import AsyncSessionLocal, async_engine, init_models
from src.services.config import get_settings
from src.services.errors import AppError, error_response
from src.services.seeding import seed_demo_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create tables and seed demo data on startup; dispose engine on shutdown."""
    await init_models()
    logger.info("Database tables initialized")

    if get_settings().seed_demo_data:
        async with AsyncSessionLocal() as session:
            await seed_demo_data(session)

    try:
        yield
    finally:
        await async_engine.dispose()
        logger.info("Application shutting down")


settings = get_settings()

app = FastAPI(
    title="Rent Ledger",
    description="Lease balances and payment ledger for landlords and renters",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origin.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render service errors as {"error": {"code", "message", "field"}}."""
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code
        )
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


app.include_router(rentals_router)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint for monitoring."""
    return {"status": "ok"}


__all__ = ["app", "lifespan"]
