"""
Contributor ranking by commit volume.
"""

from typing import Any, Iterable

from orgstats.connectors.schemas import ContributorStats

DEFAULT_TOP = 3


def coerce_top(value: Any, default: int = DEFAULT_TOP) -> int:
    """
    Resolve a user-supplied "top" value.

    Numbers and numeric strings are truncated to an int; anything
    non-numeric, boolean, missing, or below 1 falls back to the default.

    Example:
        >>> coerce_top("7"), coerce_top("abc"), coerce_top(-5), coerce_top(None)
        (7, 3, 3, 3)
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
    try:
        top = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return top if top >= 1 else default


def rank(contributors: Iterable[ContributorStats], top: Any) -> list[ContributorStats]:
    """
    Order contributors by commits (highest first) and keep the first `top`.

    The sort is stable, so contributors with equal commits keep the order in
    which they were first seen.
    """
    ordered = sorted(contributors, key=lambda stats: stats.commits, reverse=True)
    return ordered[: coerce_top(top)]
