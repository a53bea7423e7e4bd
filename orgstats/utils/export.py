"""
Export helpers for stats results.
Pure transforms of an already fetched result; no network access.
"""

import json
from typing import Any, Mapping

CSV_HEADERS = ["User", "Commits", "Lines Added", "Lines Removed", "Reviews"]
CSV_FIELDS = ["user", "commits", "linesAdded", "linesRemoved", "reviews"]


def to_csv(result: Mapping[str, Any]) -> str:
    """
    Render the contributor list as CSV.

    One header line, then one line per contributor. Values are joined with
    commas as-is (no quoting), lines with "\\n", and there is no trailing
    newline.

    Example:
        >>> to_csv({"stats": [{"user": "alice", "commits": 5, "linesAdded": 100,
        ...                    "linesRemoved": 20, "reviews": 2}]})
        'User,Commits,Lines Added,Lines Removed,Reviews\\nalice,5,100,20,2'
    """
    lines = [",".join(CSV_HEADERS)]
    for stat in result.get("stats") or []:
        lines.append(",".join(str(stat.get(field, "")) for field in CSV_FIELDS))
    return "\n".join(lines)


def to_json(result: Mapping[str, Any]) -> str:
    """Render the full result object as pretty-printed JSON."""
    return json.dumps(result, indent=2, default=str)


def export_filename(org: str, extension: str) -> str:
    """Download filename for an export, e.g. "acme_stats.csv"."""
    safe_org = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in org) or "org"
    return f"{safe_org}_stats.{extension}"
