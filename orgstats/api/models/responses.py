"""
Response models for API endpoints.
All outgoing response schemas using Pydantic.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orgstats.connectors.schemas import ContributorStats, RunConfig


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContributorStatsModel(BaseModel):
    """Aggregated totals for a single contributor."""

    user: str = Field(..., description="GitHub login")
    commits: int = Field(..., ge=0, description="Commits across counted repositories")
    lines_added: int = Field(..., ge=0, description="Lines added")
    lines_removed: int = Field(..., ge=0, description="Lines removed")
    reviews: int = Field(default=0, ge=0, description="Pull request reviews")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_stats(cls, stats: ContributorStats) -> "ContributorStatsModel":
        return cls(
            user=stats.user,
            commits=stats.commits,
            lines_added=stats.lines_added,
            lines_removed=stats.lines_removed,
            reviews=stats.reviews,
        )


class StatsResponse(BaseModel):
    """Response model for the organization stats endpoint."""

    org: str = Field(..., description="Organization analysed")
    since: Optional[str] = Field(None, description="Time window hint as requested")
    include_reviews: bool = Field(..., description="Whether reviews were counted")
    exclude_forks: bool = Field(..., description="Whether forks were skipped")
    blacklist: List[str] = Field(default_factory=list, description="Parsed blacklist rules")
    top: int = Field(..., ge=1, description="Resolved top-N")
    stats: List[ContributorStatsModel] = Field(
        default_factory=list, description="Contributors ranked by commits"
    )
    warning: Optional[str] = Field(None, description="Set when no GitHub token was used")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "org": "pathwaycom",
                    "includeReviews": True,
                    "excludeForks": True,
                    "blacklist": ["user:dependabot[bot]"],
                    "top": 3,
                    "stats": [
                        {
                            "user": "alice",
                            "commits": 120,
                            "linesAdded": 5400,
                            "linesRemoved": 2100,
                            "reviews": 37,
                        }
                    ],
                }
            ]
        },
    )

    @classmethod
    def from_run(
        cls,
        config: RunConfig,
        contributors: List[ContributorStats],
        warning: Optional[str] = None,
    ) -> "StatsResponse":
        return cls(
            org=config.org,
            since=config.since,
            include_reviews=config.include_reviews,
            exclude_forks=config.exclude_forks,
            blacklist=[rule.token for rule in config.blacklist],
            top=config.top,
            stats=[ContributorStatsModel.from_stats(stats) for stats in contributors],
            warning=warning,
        )


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Overall service status")
    timestamp: datetime = Field(default_factory=_utcnow)
    default_token_configured: bool = Field(..., description="Server has a fallback GitHub token")
    review_strategy: str = Field(..., description="How reviews are counted")
    uptime_seconds: Optional[float] = Field(None, description="Service uptime")
    version: str = Field(default="0.1.0", description="API version")


class MetricsResponse(BaseModel):
    """Response model for run metrics endpoint."""

    total_runs: int = Field(..., description="Stats runs started")
    successful_runs: int = Field(..., description="Stats runs that returned results")
    failed_runs: int = Field(..., description="Stats runs that ended in an error")
    runs_without_token: int = Field(..., description="Runs made without any GitHub token")
    average_run_time_ms: Optional[float] = Field(None, description="Average run latency")
    last_run_at: Optional[datetime] = Field(None, description="When the last run finished")
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error message")
    error_type: str = Field(..., description="Error kind")
    request_id: Optional[str] = Field(None, description="Request ID for tracking")
    timestamp: datetime = Field(default_factory=_utcnow)
    warning: Optional[str] = Field(None, description="Set when no GitHub token was used")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "error": 'Organization "nope" not found',
                    "errorType": "OrgNotFoundError",
                    "requestId": "abc-123",
                    "timestamp": "2026-01-15T10:30:00Z",
                }
            ]
        },
    )
