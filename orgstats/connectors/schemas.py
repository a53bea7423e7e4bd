"""
Schema definitions for the aggregation core.
Defines the structure of data flowing from GitHub through the pipeline.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional


# Kinds of blacklist rule
RuleKind = Literal["user", "repo", "either"]


@dataclass(frozen=True)
class Repository:
    """A repository of the organization being analysed."""

    name: str
    is_fork: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Repository":
        return cls(name=data["name"], is_fork=bool(data.get("fork", False)))


@dataclass(frozen=True)
class FilterRule:
    """
    A single blacklist entry.

    - kind "user": matches a contributor login
    - kind "repo": matches a repository name
    - kind "either": legacy bare entry, matches a login or a repository name
    """

    kind: RuleKind
    value: str

    @property
    def token(self) -> str:
        """The textual form the rule was parsed from."""
        if self.kind == "either":
            return self.value
        return f"{self.kind}:{self.value}"


@dataclass(frozen=True)
class RepositoryContribution:
    """One contributor's totals inside a single repository."""

    user: str
    commits: int = 0
    lines_added: int = 0
    lines_removed: int = 0


@dataclass
class ContributorStats:
    """Aggregated totals for one contributor across the organization."""

    user: str
    commits: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    reviews: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (camelCase keys)."""
        return {
            "user": self.user,
            "commits": self.commits,
            "linesAdded": self.lines_added,
            "linesRemoved": self.lines_removed,
            "reviews": self.reviews,
        }


@dataclass(frozen=True)
class RunConfig:
    """Everything one aggregation run needs. Immutable for the run."""

    org: str
    since: Optional[str] = None
    include_reviews: bool = False
    exclude_forks: bool = False
    blacklist: tuple[FilterRule, ...] = field(default_factory=tuple)
    top: int = 3
    token: Optional[str] = None

    def as_log_context(self) -> dict[str, Any]:
        """Config fields safe to log (never the token)."""
        context = asdict(self)
        context.pop("token", None)
        context["blacklist"] = [rule.token for rule in self.blacklist]
        context["has_token"] = self.token is not None
        return context
