"""
Contributor aggregation across repositories.
Folds per-repository contributor totals into one map keyed by login.
"""

from typing import Iterable, Mapping, Sequence

from orgstats.connectors.schemas import (
    ContributorStats,
    FilterRule,
    RepositoryContribution,
)
from orgstats.pipelines.blacklist import is_repo_blacklisted, is_user_blacklisted

# Insertion order is first-seen order, which the ranker relies on for ties
ContributorMap = dict[str, ContributorStats]


def merge(
    running: ContributorMap,
    repo: str,
    contributions: Iterable[RepositoryContribution],
    blacklist: Sequence[FilterRule] = (),
) -> ContributorMap:
    """
    Add one repository's contributor totals to the running map.

    Entries without a login, from a blacklisted repository, or for a
    blacklisted user are skipped. Reviews are left untouched.

    Args:
        running: Map being built for the current run (mutated and returned)
        repo: Name of the repository the contributions come from
        contributions: Per-contributor totals of that repository
        blacklist: Active filter rules

    Returns:
        The same map, for chaining

    Example:
        >>> m = merge({}, "api", [RepositoryContribution("alice", 2, 10, 1)])
        >>> m["alice"].commits
        2
    """
    if is_repo_blacklisted(repo, blacklist):
        return running

    for contribution in contributions:
        user = contribution.user
        if not user or is_user_blacklisted(user, blacklist):
            continue

        stats = running.get(user)
        if stats is None:
            stats = running[user] = ContributorStats(user=user)

        stats.commits += contribution.commits
        stats.lines_added += contribution.lines_added
        stats.lines_removed += contribution.lines_removed

    return running


def apply_reviews(running: ContributorMap, review_counts: Mapping[str, int]) -> ContributorMap:
    """
    Back-fill review counts for contributors already in the map.

    Users that only reviewed (no commits in any counted repository) are not
    added.
    """
    for user, stats in running.items():
        stats.reviews = max(0, int(review_counts.get(user, 0)))
    return running


def merge_review_counts(counts: Iterable[Mapping[str, int]]) -> dict[str, int]:
    """Sum several per-repository review count maps."""
    totals: dict[str, int] = {}
    for repo_counts in counts:
        for user, count in repo_counts.items():
            totals[user] = totals.get(user, 0) + count
    return totals
