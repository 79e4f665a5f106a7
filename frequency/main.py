import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from frequency.core.config import settings
from frequency.core.redis import redis_client
from frequency.api.v1.router import api_router
from frequency.api.v1.endpoints.realtime import realtime_endpoint
from frequency.utils.exceptions import FrequencyException, StoreError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting up...")
    # Connect to Redis
    await redis_client.connect()

    yield

    logger.info("Shutting down...")
    # Disconnect from Redis
    await redis_client.disconnect()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    openapi_url="/api/v1/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FrequencyException)
async def frequency_exception_handler(request: Request, exc: FrequencyException):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers
    )


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    error = StoreError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


# Include API router
app.include_router(api_router, prefix="/api/v1")

# WebSocket endpoint for change notifications
app.websocket("/ws/realtime")(realtime_endpoint)


# Root endpoint
@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
        "redoc": "/api/redoc",
        "health": "/health",
        "api": "/api/v1",
        "websocket": "/ws/realtime"
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    redis_status = "healthy" if await redis_client.set("health_check", "ok", expire=10) else "unavailable"

    return {
        "status": "healthy" if redis_status == "healthy" else "degraded",
        "services": {
            "redis": redis_status
        }
    }
