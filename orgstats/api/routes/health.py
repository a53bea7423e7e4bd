"""
Health check and run metrics endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, status

from orgstats.api.models.responses import HealthResponse, MetricsResponse
from orgstats.core.config import settings
from orgstats.core.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

MAX_TRACKED_DURATIONS = 100

# Process-wide run counters (updated by the stats route)
system_metrics: Dict[str, Any] = {
    "total_runs": 0,
    "successful_runs": 0,
    "failed_runs": 0,
    "runs_without_token": 0,
    "run_durations": [],  # Last 100 run durations (ms)
    "startup_time": datetime.now(timezone.utc),
    "last_run_at": None,
}


def record_run(success: bool, duration_ms: float, has_token: bool) -> None:
    """Record the outcome of one stats run."""
    system_metrics["total_runs"] += 1
    if success:
        system_metrics["successful_runs"] += 1
    else:
        system_metrics["failed_runs"] += 1
    if not has_token:
        system_metrics["runs_without_token"] += 1

    durations = system_metrics["run_durations"]
    durations.append(duration_ms)
    if len(durations) > MAX_TRACKED_DURATIONS:
        del durations[: len(durations) - MAX_TRACKED_DURATIONS]

    system_metrics["last_run_at"] = datetime.now(timezone.utc)


def _average_duration() -> Optional[float]:
    durations = system_metrics["run_durations"]
    if not durations:
        return None
    return round(sum(durations) / len(durations), 2)


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns basic service health status",
    tags=["Health"],
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        HealthResponse with service status
    """
    uptime_seconds = (
        datetime.now(timezone.utc) - system_metrics["startup_time"]
    ).total_seconds()

    return HealthResponse(
        status="healthy",
        default_token_configured=settings.GITHUB_TOKEN is not None,
        review_strategy=settings.REVIEW_STRATEGY,
        uptime_seconds=uptime_seconds,
    )


@router.get(
    "/health/metrics",
    response_model=MetricsResponse,
    status_code=status.HTTP_200_OK,
    summary="Run metrics",
    description="Returns counters and latency for stats runs since startup",
    tags=["Health"],
)
async def run_metrics() -> MetricsResponse:
    """Counters for stats runs served by this process."""
    return MetricsResponse(
        total_runs=system_metrics["total_runs"],
        successful_runs=system_metrics["successful_runs"],
        failed_runs=system_metrics["failed_runs"],
        runs_without_token=system_metrics["runs_without_token"],
        average_run_time_ms=_average_duration(),
        last_run_at=system_metrics["last_run_at"],
    )
