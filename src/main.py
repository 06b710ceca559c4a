"""Main application entry point."""

import argparse
import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.invoices import router as invoices_router
from src.config.settings import settings
from src.models import Base
from src.services import async_engine
from src.services.errors import AppError, InvalidArgumentError, error_response
from src.services.logging import setup_server_logging

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")
    yield
    await async_engine.dispose()
    logger.info("Application shutting down")


app = FastAPI(
    title=settings.api_title,
    description="Invoice aggregation for tourist-village apartments",
    version=settings.api_version,
    lifespan=lifespan,
)

app.include_router(invoices_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Non-numeric ids and malformed dates
    errors = exc.errors()
    location = ".".join(str(part) for part in errors[0]["loc"]) if errors else "request"
    error = InvalidArgumentError(f"Invalid value for {location}")
    return JSONResponse(status_code=error.http_status, content=error_response(error))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Server error"}},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Village Invoices API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    args = parser.parse_args()

    setup_server_logging()
    logger.info("Starting Uvicorn server on %s:%d...", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
