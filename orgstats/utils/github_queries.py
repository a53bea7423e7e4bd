"""
GitHub REST endpoint templates and query builders.
"""

from urllib.parse import quote


# List every repository of an organization (all types)
ORG_REPOS_PATH = "/orgs/{org}/repos"

# Aggregated per-contributor totals with weekly additions/deletions
CONTRIBUTOR_STATS_PATH = "/repos/{owner}/{repo}/stats/contributors"

# Pull requests and the reviews submitted on each of them
PULLS_PATH = "/repos/{owner}/{repo}/pulls"
PULL_REVIEWS_PATH = "/repos/{owner}/{repo}/pulls/{number}/reviews"

# Issue / pull request search
SEARCH_ISSUES_PATH = "/search/issues"


def _segment(value: str) -> str:
    return quote(value, safe="")


def org_repos_path(org: str) -> str:
    """
    Build the repository listing path for an organization.

    Example:
        >>> org_repos_path("pathwaycom")
        '/orgs/pathwaycom/repos'
    """
    return ORG_REPOS_PATH.format(org=_segment(org))


def contributor_stats_path(owner: str, repo: str) -> str:
    return CONTRIBUTOR_STATS_PATH.format(owner=_segment(owner), repo=_segment(repo))


def pulls_path(owner: str, repo: str) -> str:
    return PULLS_PATH.format(owner=_segment(owner), repo=_segment(repo))


def pull_reviews_path(owner: str, repo: str, number: int) -> str:
    return PULL_REVIEWS_PATH.format(
        owner=_segment(owner), repo=_segment(repo), number=int(number)
    )


def build_review_search_query(org: str, user: str) -> str:
    """
    Build the search qualifier string counting pull requests a user reviewed
    inside an organization.

    Example:
        >>> build_review_search_query("pathwaycom", "octocat")
        'org:pathwaycom reviewed-by:octocat is:pr'
    """
    return f"org:{org} reviewed-by:{user} is:pr"


def build_repo_list_params() -> dict:
    """Query parameters for the organization repository listing."""
    return {"type": "all"}


def build_pulls_params() -> dict:
    """Query parameters for listing pull requests in every state."""
    return {"state": "all"}
