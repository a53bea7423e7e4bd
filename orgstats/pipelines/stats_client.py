"""
Stats client: the aggregation run orchestrator.
Lists repositories, fetches per-repository stats with bounded concurrency,
merges, back-fills reviews, and ranks.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from orgstats.connectors.repository_lister import RepositoryLister
from orgstats.connectors.schemas import ContributorStats, Repository, RunConfig
from orgstats.connectors.stats_fetcher import StatsFetcher
from orgstats.core.config import settings
from orgstats.core.exceptions import (
    ConfigurationError,
    GitHubAPIError,
    InvariantError,
    ValidationError,
)
from orgstats.core.github_client import GitHubClient
from orgstats.core.logger import get_logger
from orgstats.pipelines.aggregator import (
    ContributorMap,
    apply_reviews,
    merge,
    merge_review_counts,
)
from orgstats.pipelines.ranker import rank

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

REVIEW_STRATEGIES = ("search", "pulls")

NO_TOKEN_WARNING = "No GitHub token provided. Rate limits may apply."


class StatsClient:
    """
    Runs one aggregation per call to `run`.

    Each run owns its contributor map; nothing is shared between concurrent
    runs. Per-repository fetches fan out under a semaphore, and their results
    are merged by a single writer in repository order so that first-seen
    order (the ranking tie-break) does not depend on network timing.

    Failures leave `run` as one of:
    - ValidationError: bad input, raised before any request
    - OrgNotFoundError / RateLimitError: from repository listing
    - InvariantError: GitHub returned an unusable payload
    - GitHubAPIError: anything else
    """

    def __init__(
        self,
        default_token: Optional[str] = None,
        max_concurrency: Optional[int] = None,
        review_strategy: Optional[str] = None,
        client_factory: Callable[[Optional[str]], GitHubClient] = GitHubClient,
    ):
        """
        Args:
            default_token: Credential used when a run config carries none
            max_concurrency: Upper bound on in-flight GitHub requests
            review_strategy: "search" (one query per contributor) or
                "pulls" (walk every pull request's reviews)
            client_factory: Builds the GitHub client for a run's token
        """
        self.default_token = default_token or None
        self.max_concurrency = (
            settings.MAX_CONCURRENT_REQUESTS if max_concurrency is None else max_concurrency
        )
        self.review_strategy = (review_strategy or settings.REVIEW_STRATEGY).lower()
        self.client_factory = client_factory

        if self.review_strategy not in REVIEW_STRATEGIES:
            raise ConfigurationError(
                f"Unknown review strategy: {self.review_strategy}",
                details={"allowed": list(REVIEW_STRATEGIES)},
            )
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")

    def resolve_token(self, config: RunConfig) -> Optional[str]:
        """Per-run token first, then the default token."""
        return config.token or self.default_token

    def has_credential(self, config: RunConfig) -> bool:
        return self.resolve_token(config) is not None

    async def run(self, config: RunConfig) -> list[ContributorStats]:
        """
        Aggregate, rank, and truncate contributor stats for an organization.

        Args:
            config: Run configuration

        Returns:
            Contributors sorted by commits (descending), at most `config.top`
        """
        self._validate(config)
        started = time.time()

        logger.info("Stats run started", extra=config.as_log_context())

        try:
            contributors = await self._run(config)
        except (ValidationError, GitHubAPIError, InvariantError):
            raise
        except Exception as e:
            logger.exception("Stats run failed unexpectedly")
            raise GitHubAPIError(
                f"Failed to fetch stats: {e}",
                details={"org": config.org, "error_type": type(e).__name__},
            ) from e

        logger.info(
            "Stats run completed",
            extra={
                "org": config.org,
                "contributors": len(contributors),
                "duration_ms": round((time.time() - started) * 1000, 2),
            },
        )
        return contributors

    @staticmethod
    def _validate(config: RunConfig) -> None:
        if not isinstance(config.org, str) or not config.org.strip():
            raise ValidationError("Organization name is required", details={"field": "org"})

    async def _run(self, config: RunConfig) -> list[ContributorStats]:
        client = self.client_factory(self.resolve_token(config))
        lister = RepositoryLister(client)
        fetcher = StatsFetcher(client)
        org = config.org.strip()

        # Step 1: Repositories
        repositories = await lister.list_repositories(
            org, config.exclude_forks, config.blacklist
        )

        # Step 2: Per-repository stats, merged in listing order
        per_repo = await self._map_bounded(
            lambda repo: fetcher.fetch_contributor_stats(org, repo.name), repositories
        )
        contributors: ContributorMap = {}
        for repo, contributions in zip(repositories, per_repo):
            merge(contributors, repo.name, contributions, config.blacklist)

        # Step 3: Reviews, only for users that survived aggregation
        if config.include_reviews and contributors:
            await self._backfill_reviews(fetcher, org, repositories, contributors)

        # Step 4: Rank
        ranked = rank(contributors.values(), config.top)

        logger.debug(
            "Contributors aggregated",
            extra={
                "org": org,
                "repositories": len(repositories),
                "distinct_users": len(contributors),
                "returned": len(ranked),
            },
        )
        return ranked

    async def _backfill_reviews(
        self,
        fetcher: StatsFetcher,
        org: str,
        repositories: Sequence[Repository],
        contributors: ContributorMap,
    ) -> None:
        if self.review_strategy == "search":
            users = list(contributors)
            counts = await self._map_bounded(
                lambda user: fetcher.fetch_review_count(org, user), users
            )
            apply_reviews(contributors, dict(zip(users, counts)))
        else:
            per_repo = await self._map_bounded(
                lambda repo: fetcher.fetch_repository_reviews(org, repo.name), repositories
            )
            apply_reviews(contributors, merge_review_counts(per_repo))

    async def _map_bounded(
        self, func: Callable[[T], Awaitable[R]], items: Sequence[T]
    ) -> list[R]:
        """Run `func` over `items` with bounded concurrency, keeping order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def worker(item: T) -> R:
            async with semaphore:
                return await func(item)

        tasks = [asyncio.ensure_future(worker(item)) for item in items]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # Abandon in-flight fetches; partial results are discarded
            for task in tasks:
                task.cancel()
            raise


def build_stats_client(**overrides: Any) -> StatsClient:
    """Create a stats client wired to application settings."""
    options = {
        "default_token": settings.GITHUB_TOKEN,
        "max_concurrency": settings.MAX_CONCURRENT_REQUESTS,
        "review_strategy": settings.REVIEW_STRATEGY,
    }
    options.update(overrides)
    return StatsClient(**options)
