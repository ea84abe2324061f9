"""FastAPI app entry point for the parts catalog API."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from partfinder.api.deps import get_nhtsa, limiter
from partfinder.api.routes import router
from partfinder.config import get_settings, validate_settings
from partfinder.core.logging import (
    log_error,
    log_request,
    log_response,
    logger,
    setup_logging,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup / shutdown."""
    logger.info("Starting parts catalog API...")
    yield
    logger.info("Shutting down...")
    if get_nhtsa.cache_info().currsize:
        await get_nhtsa().close()


settings = get_settings()
setup_logging(settings.log_level)

# Validate settings on startup
try:
    validate_settings()
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    raise

app = FastAPI(
    title="Parts Catalog API",
    description="Browse cars and parts, decode VINs and find compatible parts",
    version="1.0.0",
    lifespan=lifespan,
)

# State for limiter
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    log_error("Rate limit exceeded", client=get_remote_address(request))
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Try again later."},
    )


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    log_request(request.method, request.url.path)

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    log_response(request.method, request.url.path, response.status_code, duration_ms)
    return response


# Routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "partfinder"}
