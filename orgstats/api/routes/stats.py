"""
Organization stats endpoint.
Parses the request, runs the stats client, and shapes the response.
"""

import time

from fastapi import APIRouter, Depends, Request, status

from orgstats.api.models.requests import StatsRequest
from orgstats.api.models.responses import ErrorResponse, StatsResponse
from orgstats.api.routes.health import record_run
from orgstats.core.logger import get_logger
from orgstats.pipelines.stats_client import NO_TOKEN_WARNING, StatsClient, build_stats_client

logger = get_logger(__name__)

router = APIRouter()


def get_stats_client() -> StatsClient:
    """Dependency providing a stats client wired to settings."""
    return build_stats_client()


@router.post(
    "/stats",
    response_model=StatsResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Get contributor stats for an organization",
    description=(
        "Aggregates commits, lines added/removed and optionally reviews per "
        "contributor across an organization's repositories"
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing organization name"},
        404: {"model": ErrorResponse, "description": "Organization not found"},
        429: {"model": ErrorResponse, "description": "Rate limited without a token"},
        500: {"model": ErrorResponse, "description": "Any other failure"},
    },
    tags=["Stats"],
)
async def fetch_stats(
    request: Request,
    body: StatsRequest,
    stats_client: StatsClient = Depends(get_stats_client),
) -> StatsResponse:
    """
    Get the top contributors of an organization.

    Blacklist rules:
    - user:<login> excludes a contributor everywhere
    - repo:<name> excludes a repository
    - a bare value excludes a contributor or repository with that exact name

    Returns:
        Echo of the resolved options plus the ranked contributors
    """
    config = body.to_run_config()
    has_token = stats_client.has_credential(config)
    warning = None if has_token else NO_TOKEN_WARNING

    # Picked up by the error handlers as well
    request.state.warning = warning

    start_time = time.time()
    try:
        contributors = await stats_client.run(config)
    except Exception:
        record_run(False, round((time.time() - start_time) * 1000, 2), has_token)
        raise
    record_run(True, round((time.time() - start_time) * 1000, 2), has_token)

    return StatsResponse.from_run(config, contributors, warning=warning)
