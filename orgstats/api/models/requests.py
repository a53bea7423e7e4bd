"""
Request models for API endpoints.
All incoming request validation using Pydantic.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from orgstats.connectors.schemas import RunConfig
from orgstats.pipelines.blacklist import parse_blacklist
from orgstats.pipelines.ranker import coerce_top


class StatsRequest(BaseModel):
    """Request model for the organization stats endpoint."""

    org: Optional[str] = Field(
        default=None,
        description="GitHub organization login",
        examples=["pathwaycom"],
    )
    since: Optional[str] = Field(
        default=None,
        description="Time window hint, echoed back unchanged",
        examples=["30d"],
    )
    include_reviews: bool = Field(
        default=False,
        description="Also count pull request reviews per contributor",
    )
    exclude_forks: bool = Field(
        default=False,
        description="Skip repositories that are forks",
    )
    blacklist: Union[str, List[str], None] = Field(
        default=None,
        description="Comma-separated rules: user:<login>, repo:<name>, or a bare name",
        examples=["user:dependabot[bot],repo:website"],
    )
    top: Any = Field(
        default=None,
        description="Number of contributors to return; invalid or < 1 means 3",
        examples=[5],
    )
    token: Optional[str] = Field(
        default=None,
        description="GitHub token for this request; falls back to the server default",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "org": "pathwaycom",
                    "includeReviews": True,
                    "excludeForks": True,
                    "blacklist": "user:dependabot[bot],repo:website",
                    "top": 5,
                }
            ]
        },
    )

    @field_validator("org", "since", "token", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Strip strings; treat blank values as missing."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("include_reviews", "exclude_forks", mode="before")
    @classmethod
    def null_to_false(cls, v: Any) -> Any:
        return False if v is None else v

    def to_run_config(self) -> RunConfig:
        """Build the immutable run configuration for the stats client."""
        return RunConfig(
            org=self.org or "",
            since=self.since,
            include_reviews=self.include_reviews,
            exclude_forks=self.exclude_forks,
            blacklist=parse_blacklist(self.blacklist),
            top=coerce_top(self.top),
            token=self.token,
        )
