"""
Per-repository statistics fetcher.
Retrieves contributor totals and review counts, isolating failures so one bad
repository (or user) cannot abort a whole organization scan.
"""

from collections import Counter
from typing import Any, Optional

from orgstats.connectors.schemas import RepositoryContribution
from orgstats.core.exceptions import (
    ConnectionError as AppConnectionError,
    GitHubAPIError,
    InvariantError,
    RateLimitError,
)
from orgstats.core.github_client import GitHubClient
from orgstats.core.logger import get_logger
from orgstats.utils.github_queries import (
    SEARCH_ISSUES_PATH,
    build_pulls_params,
    build_review_search_query,
    contributor_stats_path,
    pull_reviews_path,
    pulls_path,
)

logger = get_logger(__name__)


class StatsFetcher:
    """
    Fetches statistics for a single repository or user.

    Every method degrades to an empty result on upstream failure:
    - rate limited without a token: warning, zero for that unit of work
    - any other upstream or network failure: error, zero for that unit of work

    A payload of the wrong shape raises InvariantError and fails the run.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def fetch_contributor_stats(
        self, org: str, repo: str
    ) -> list[RepositoryContribution]:
        """
        Get commit and line totals per contributor for one repository.

        Uses the aggregated contributor statistics endpoint. GitHub computes
        it asynchronously and answers 202 on a cold cache; that is treated as
        "no contributors yet" rather than waited on.
        """
        try:
            status_code, data = await self.client.get_json(contributor_stats_path(org, repo))
        except (GitHubAPIError, AppConnectionError) as e:
            self._log_isolated_failure(e, unit="contributor stats", repo=repo)
            return []

        if status_code == 202:
            logger.info("Contributor stats not computed yet", extra={"org": org, "repo": repo})
            return []

        if not data:
            return []

        if not isinstance(data, list):
            raise InvariantError(
                "Expected a list of contributor stats from GitHub",
                details={"org": org, "repo": repo, "type": type(data).__name__},
            )

        contributions = []
        for entry in data:
            contribution = self._parse_contributor_entry(entry)
            if contribution is not None:
                contributions.append(contribution)

        logger.debug(
            "Contributor stats fetched",
            extra={"org": org, "repo": repo, "contributors": len(contributions)},
        )
        return contributions

    async def fetch_review_count(self, org: str, user: str) -> int:
        """
        Count pull requests in the organization reviewed by a user.

        One search query per user; only the total count is read.
        """
        params = {"q": build_review_search_query(org, user), "per_page": 1}
        try:
            _, data = await self.client.get_json(SEARCH_ISSUES_PATH, params)
        except (GitHubAPIError, AppConnectionError) as e:
            self._log_isolated_failure(e, unit="PR reviews", user=user)
            return 0

        if not isinstance(data, dict):
            raise InvariantError(
                "Expected a search result object from GitHub",
                details={"org": org, "user": user},
            )
        return _non_negative(data.get("total_count"))

    async def fetch_repository_reviews(self, org: str, repo: str) -> dict[str, int]:
        """
        Count submitted reviews per reviewer login for one repository.

        Walks every pull request (all states) and every review on it. If any
        page fails, the repository contributes no review counts at all.
        """
        counts: Counter = Counter()
        try:
            pulls = await self.client.paginate(pulls_path(org, repo), build_pulls_params())
            for pull in pulls:
                number = pull.get("number") if isinstance(pull, dict) else None
                if number is None:
                    continue
                reviews = await self.client.paginate(pull_reviews_path(org, repo, number))
                for review in reviews:
                    login = _login_of(review.get("user") if isinstance(review, dict) else None)
                    if login:
                        counts[login] += 1
        except (GitHubAPIError, AppConnectionError) as e:
            self._log_isolated_failure(e, unit="PR reviews", repo=repo)
            return {}

        logger.debug(
            "Repository reviews counted",
            extra={"org": org, "repo": repo, "reviewers": len(counts)},
        )
        return dict(counts)

    @staticmethod
    def _parse_contributor_entry(entry: Any) -> Optional[RepositoryContribution]:
        if not isinstance(entry, dict):
            return None
        login = _login_of(entry.get("author"))
        if not login:
            # Cannot be attributed to anyone
            return None

        weeks = entry.get("weeks") or []
        lines_added = sum(_non_negative(week.get("a")) for week in weeks if isinstance(week, dict))
        lines_removed = sum(_non_negative(week.get("d")) for week in weeks if isinstance(week, dict))

        return RepositoryContribution(
            user=login,
            commits=_non_negative(entry.get("total")),
            lines_added=lines_added,
            lines_removed=lines_removed,
        )

    def _log_isolated_failure(self, error: Exception, unit: str, **context: Any) -> None:
        rate_limited = isinstance(error, RateLimitError) or (
            isinstance(error, GitHubAPIError) and error.status_code == 403
        )
        if rate_limited and not self.client.has_token:
            logger.warning(
                "Rate limit exceeded, skipping. Please add a GitHub token to increase the limit.",
                extra={"unit": unit, **context},
            )
            return

        logger.error(
            "Error fetching data from GitHub, skipping",
            extra={
                "unit": unit,
                "error_type": type(error).__name__,
                "error": str(error),
                **context,
            },
        )


def _login_of(user: Any) -> Optional[str]:
    if not isinstance(user, dict):
        return None
    login = user.get("login")
    return login if isinstance(login, str) and login else None


def _non_negative(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0
