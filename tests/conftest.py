"""Shared fixtures: GitHub payload builders and fast, settings-independent clients."""

from typing import Optional

import pytest

from orgstats.core.github_client import GitHubClient
from orgstats.pipelines.stats_client import StatsClient

API = "https://api.github.com"


def fast_client(token: Optional[str] = None) -> GitHubClient:
    """GitHub client without retry delays, pinned to the public API URL."""
    return GitHubClient(token=token, base_url=API, timeout=5.0, max_retries=1, retry_delay=0)


@pytest.fixture
def api_url() -> str:
    return API


@pytest.fixture
def github_client() -> GitHubClient:
    return fast_client()


@pytest.fixture
def authed_github_client() -> GitHubClient:
    return fast_client("test-token-123")


@pytest.fixture
def make_stats_client():
    """Factory for stats clients that never read the GITHUB_TOKEN setting."""

    def _make(
        default_token: Optional[str] = None,
        review_strategy: str = "search",
        max_concurrency: int = 2,
    ) -> StatsClient:
        return StatsClient(
            default_token=default_token,
            max_concurrency=max_concurrency,
            review_strategy=review_strategy,
            client_factory=fast_client,
        )

    return _make


@pytest.fixture
def contributor():
    """Build one entry of the /stats/contributors payload."""

    def _contributor(login: Optional[str], total: int, weeks=((0, 0),)) -> dict:
        return {
            "author": {"login": login} if login else None,
            "total": total,
            "weeks": [{"w": 1700000000, "a": a, "d": d, "c": 0} for a, d in weeks],
        }

    return _contributor


@pytest.fixture
def repo():
    """Build one entry of the /orgs/{org}/repos payload."""

    def _repo(name: str, fork: bool = False) -> dict:
        return {"name": name, "full_name": f"acme/{name}", "fork": fork}

    return _repo
