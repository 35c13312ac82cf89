"""RideWise API - FastAPI application entry point.

Heuristic scoring service for a cab booking platform: ride demand prediction
and driver allocation, route optimisation with real-time update logs, and
trip safety analytics.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.v1 import demand, routes, safety
from app.config import get_settings
from app.core.exceptions import CabBookingException
from app.core.logging_config import get_logger, setup_logging
from app.core.middleware import MetricsMiddleware, RequestLoggingMiddleware, RequestMetrics
from app.core.rate_limit import limiter
from app.dependencies import get_routing_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    setup_logging()
    logger = get_logger(__name__)
    logger.info(f"Starting RideWise API in {settings.APP_ENV} mode")
    if not get_routing_service().enabled:
        logger.warning("GOOGLE_MAPS_API_KEY not set, routes use the fallback optimiser")
    yield
    # Shutdown
    logger.info("Shutting down RideWise API")


# Create FastAPI application
app = FastAPI(
    title="RideWise API",
    description="""RideWise scores the decisions of a cab booking platform.

Features: ride demand prediction with recommended driver counts per H3 zone, proportional driver allocation, route optimisation with alternatives and real-time update logs, and trip safety analytics with ordered recommendations and alerts.

Data sources: Google Directions API for provider routes (optional; a built-in optimiser is used otherwise), caller-supplied historical demand and driver records.
    """,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "health",
            "description": "Health and readiness checks",
        },
        {
            "name": "demand",
            "description": "Demand prediction and driver allocation",
        },
        {
            "name": "routes",
            "description": "Route optimisation and real-time updates",
        },
        {
            "name": "safety",
            "description": "Trip safety analytics",
        },
    ],
)

# Get settings
settings = get_settings()

# Add rate limiter state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Shared by the metrics middleware and the /metrics endpoint
metrics = RequestMetrics()
app.state.metrics = metrics

# Add metrics middleware (must be added before request logging for accurate timing)
app.add_middleware(MetricsMiddleware, metrics=metrics)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Add CORS middleware (added last, executes first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler for custom exceptions
@app.exception_handler(CabBookingException)
async def cab_booking_exception_handler(request: Request, exc: CabBookingException):
    """Handle RideWise custom exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.__class__.__name__,
            "message": exc.message,
            "path": request.url.path,
        },
    )


# Health check endpoints
@app.get("/health", tags=["health"])
async def health_check():
    """Basic liveness check."""
    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_check():
    """Readiness check, reporting whether provider routing is configured."""
    return {
        "status": "ready",
        "directions_provider": "configured" if get_routing_service().enabled else "fallback",
    }


@app.get("/metrics", tags=["health"])
async def get_metrics(request: Request):
    """Get application metrics.

    Returns request counts, response times, and status codes.
    """
    return request.app.state.metrics.snapshot()


# Include API routers
app.include_router(demand.router, prefix="/api/v1/demand", tags=["demand"])
app.include_router(routes.router, prefix="/api/v1/routes", tags=["routes"])
app.include_router(safety.router, prefix="/api/v1/safety", tags=["safety"])
