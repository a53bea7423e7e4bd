"""
Lists the repositories of a GitHub organization that take part in a run.
"""

from typing import Sequence

from orgstats.connectors.schemas import FilterRule, Repository
from orgstats.core.exceptions import (
    GitHubAPIError,
    InvariantError,
    OrgNotFoundError,
    RateLimitError,
)
from orgstats.core.github_client import GitHubClient
from orgstats.core.logger import get_logger
from orgstats.pipelines.blacklist import is_repo_blacklisted
from orgstats.utils.github_queries import build_repo_list_params, org_repos_path

logger = get_logger(__name__)

RATE_LIMIT_HINT = "Rate limit exceeded. Please add a GitHub token to increase the limit."


class RepositoryLister:
    """
    Enumerates an organization's repositories.

    Reads every page of the listing; a partial list would silently skew the
    aggregated totals, so any failure here is fatal for the run.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def list_repositories(
        self,
        org: str,
        exclude_forks: bool,
        blacklist: Sequence[FilterRule],
    ) -> list[Repository]:
        """
        Get the filtered repositories of an organization.

        Args:
            org: Organization login
            exclude_forks: Drop repositories that are forks
            blacklist: Rules; "repo" and bare rules drop matching repositories

        Returns:
            Repositories in the order GitHub listed them

        Raises:
            OrgNotFoundError: If the organization does not exist
            RateLimitError: If the quota is exhausted and no token was supplied
            GitHubAPIError: For any other upstream failure
        """
        try:
            payload = await self.client.paginate(org_repos_path(org), build_repo_list_params())
        except GitHubAPIError as e:
            if e.status_code == 404:
                raise OrgNotFoundError(
                    f'Organization "{org}" not found', details={"org": org}, status_code=404
                ) from e
            if e.status_code in (403, 429) and not self.client.has_token:
                raise RateLimitError(
                    RATE_LIMIT_HINT, details={"org": org}, status_code=e.status_code
                ) from e
            if isinstance(e, RateLimitError):
                # Authenticated quota exhausted: a token would not help
                raise GitHubAPIError(
                    e.message, details={"org": org, **e.details}, status_code=e.status_code
                ) from e
            raise

        repositories = []
        skipped_forks = 0
        skipped_blacklisted = 0

        for item in payload:
            if not isinstance(item, dict) or "name" not in item:
                raise InvariantError(
                    "Unexpected repository entry from GitHub", details={"org": org}
                )
            repo = Repository.from_api(item)

            if exclude_forks and repo.is_fork:
                skipped_forks += 1
                continue
            if is_repo_blacklisted(repo.name, blacklist):
                skipped_blacklisted += 1
                continue
            repositories.append(repo)

        logger.info(
            "Repositories listed",
            extra={
                "org": org,
                "total": len(payload),
                "selected": len(repositories),
                "skipped_forks": skipped_forks,
                "skipped_blacklisted": skipped_blacklisted,
            },
        )
        return repositories
