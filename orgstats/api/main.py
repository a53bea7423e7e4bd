"""
FastAPI application entry point.
GitHub Organization Contributor Stats - API Layer
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orgstats.api.middleware.error_handler import register_exception_handlers
from orgstats.api.middleware.logging import RequestIdMiddleware, RequestLoggingMiddleware
from orgstats.api.routes import export, health, stats
from orgstats.core.config import settings
from orgstats.core.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown events.
    """
    setup_logging()
    logger.info(
        "Starting FastAPI application",
        extra={
            "default_token_configured": settings.GITHUB_TOKEN is not None,
            "review_strategy": settings.REVIEW_STRATEGY,
            "max_concurrent_requests": settings.MAX_CONCURRENT_REQUESTS,
        },
    )
    if settings.GITHUB_TOKEN is None:
        logger.warning("No default GitHub token configured, unauthenticated rate limits apply")

    yield

    logger.info("Application shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title="GitHub Organization Stats",
    description="Per-contributor commit and review statistics across a GitHub organization",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Middleware added last runs first: request IDs wrap request logging
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIdMiddleware)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list() or ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)

register_exception_handlers(app)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "GitHub Organization Stats",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
        "health": "/api/v1/health",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(stats.router, prefix="/api/v1", tags=["Stats"])
app.include_router(export.router, prefix="/api/v1", tags=["Export"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "orgstats.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
