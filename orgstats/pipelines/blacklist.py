"""
Blacklist parsing and matching.

Rules match by exact, case-sensitive string equality:
- "user:<login>" excludes a contributor
- "repo:<name>" excludes a repository
- a bare "<value>" excludes a contributor or a repository with that name
"""

from typing import Iterable, Optional, Sequence, Union

from orgstats.connectors.schemas import FilterRule

USER_PREFIX = "user:"
REPO_PREFIX = "repo:"


def parse_rule(token: str) -> Optional[FilterRule]:
    """
    Parse a single blacklist token.

    Returns None for blank tokens (and for prefixes with nothing after them),
    since an empty value would otherwise match every repository.

    Example:
        >>> parse_rule(" user:octocat ")
        FilterRule(kind='user', value='octocat')
    """
    token = token.strip()
    if token.startswith(USER_PREFIX):
        value = token[len(USER_PREFIX):].strip()
        return FilterRule("user", value) if value else None
    if token.startswith(REPO_PREFIX):
        value = token[len(REPO_PREFIX):].strip()
        return FilterRule("repo", value) if value else None
    return FilterRule("either", token) if token else None


def parse_blacklist(raw: Union[str, Iterable[str], None]) -> tuple[FilterRule, ...]:
    """
    Parse a comma-separated string (or a list of tokens) into ordered rules.

    Duplicates are dropped, keeping the first occurrence.
    """
    if raw is None:
        return ()
    tokens = raw.split(",") if isinstance(raw, str) else raw

    rules: list[FilterRule] = []
    for token in tokens:
        rule = parse_rule(str(token))
        if rule is not None and rule not in rules:
            rules.append(rule)
    return tuple(rules)


def is_repo_blacklisted(repo: str, rules: Sequence[FilterRule]) -> bool:
    return any(rule.kind in ("repo", "either") and rule.value == repo for rule in rules)


def is_user_blacklisted(user: str, rules: Sequence[FilterRule]) -> bool:
    return any(rule.kind in ("user", "either") and rule.value == user for rule in rules)


def is_blacklisted(repo: str, user: str, rules: Sequence[FilterRule]) -> bool:
    """True when either the repository or the contributor is excluded."""
    return is_repo_blacklisted(repo, rules) or is_user_blacklisted(user, rules)
