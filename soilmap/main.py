"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from soilmap.config import settings
from soilmap.middleware.error_handler import ErrorHandlerMiddleware
from soilmap.api.v1.routers import areas, geometry

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_requests}/minute"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Store backend: {settings.store_backend}")
    logger.info(f"Measurement plan: spacing={settings.plan_small_spacing_m}m/"
                f"{settings.plan_large_spacing_m}m, max_points={settings.plan_max_points}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if settings.store_backend == "http":
        from soilmap.infrastructure.backend_client import get_backend_client
        await get_backend_client().close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Area Measurement API for Soil Sensor Platform

    This API manages user-drawn measurement areas, the sensor captures
    recorded inside them and the statistics derived from those captures.

    ## Features

    - **Areas**: Create named areas from polygons of 3 or more points
    - **Measurements**: Accept captures only from the owning device and only
      inside the area polygon, numbered 1, 2, 3, ... per area
    - **Averages**: Recompute per-area means of temperature, moisture,
      nitrogen, phosphorus, potassium and pH after every capture
    - **Recommendations**: Soil amendments, fertilizers and crops from fixed
      threshold rules
    - **Measurement Planning**: Metric sampling grid inside a drawn polygon
    - **Rate Limiting**: Protects the API from abuse
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(areas.router, prefix="/api/v1")
app.include_router(geometry.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
