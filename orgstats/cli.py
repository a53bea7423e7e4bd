"""
Command-line front end.

    orgstats stats ORG [--top N] [--include-reviews] [--exclude-forks]
                       [--blacklist RULES] [--format table|csv|json] [--output FILE]
    orgstats token set TOKEN | show | clear
    orgstats serve [--host HOST] [--port PORT]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from orgstats.api.models.responses import StatsResponse
from orgstats.connectors.schemas import ContributorStats, RunConfig
from orgstats.core.config import settings
from orgstats.core.exceptions import BaseAppException
from orgstats.core.logger import setup_logging
from orgstats.pipelines.blacklist import parse_blacklist
from orgstats.pipelines.ranker import coerce_top
from orgstats.pipelines.stats_client import NO_TOKEN_WARNING, StatsClient, build_stats_client
from orgstats.utils.export import to_csv, to_json
from orgstats.utils.token_store import FileTokenStore, TokenStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orgstats",
        description="Per-contributor commit and review stats for a GitHub organization.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    stats = sub.add_parser("stats", help="Aggregate contributor stats for an organization")
    stats.add_argument("org", help="GitHub organization login")
    stats.add_argument("--since", default=None, help="Time window hint, echoed in the output")
    stats.add_argument("--include-reviews", action="store_true", help="Count PR reviews")
    stats.add_argument("--exclude-forks", action="store_true", help="Skip forked repositories")
    stats.add_argument(
        "--blacklist",
        default="",
        help="Comma-separated rules: user:<login>, repo:<name>, or a bare name",
    )
    stats.add_argument("--top", default="3", help="Number of contributors to show (default: 3)")
    stats.add_argument("--token", default=None, help="GitHub token for this run")
    stats.add_argument(
        "--review-strategy",
        choices=["search", "pulls"],
        default=None,
        help="How reviews are counted (default: from settings)",
    )
    stats.add_argument(
        "--format", dest="fmt", choices=["table", "csv", "json"], default="table"
    )
    stats.add_argument("--output", "-o", default=None, help="Write to a file instead of stdout")

    token = sub.add_parser("token", help="Manage the stored GitHub token")
    token_sub = token.add_subparsers(dest="token_command", required=True)
    token_set = token_sub.add_parser("set", help="Store a token")
    token_set.add_argument("value", help="GitHub personal access token")
    token_sub.add_parser("show", help="Show whether a token is stored")
    token_sub.add_parser("clear", help="Remove the stored token")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.API_HOST)
    serve.add_argument("--port", type=int, default=settings.API_PORT)

    return parser


def resolve_token(explicit: Optional[str], store: TokenStore) -> Optional[str]:
    """--token first, then the token store. The settings default is applied by the client."""
    if explicit and explicit.strip():
        return explicit.strip()
    return store.get()


def render_table(contributors: Sequence[ContributorStats]) -> str:
    headers = ["User", "Commits", "Lines Added", "Lines Removed", "Reviews"]
    rows = [
        [c.user, str(c.commits), str(c.lines_added), str(c.lines_removed), str(c.reviews)]
        for c in contributors
    ]
    widths = [max(len(row[i]) for row in [headers, *rows]) for i in range(len(headers))]

    def fmt(row: list[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()

    lines = [fmt(headers), fmt(["-" * width for width in widths])]
    lines.extend(fmt(row) for row in rows)
    return "\n".join(lines)


def render(fmt: str, response: StatsResponse, contributors: Sequence[ContributorStats]) -> str:
    payload = response.model_dump(by_alias=True, exclude_none=True, mode="json")
    if fmt == "csv":
        return to_csv(payload)
    if fmt == "json":
        return to_json(payload)
    return render_table(contributors)


def run_stats(
    args: argparse.Namespace,
    store: TokenStore,
    stats_client: Optional[StatsClient] = None,
) -> int:
    try:
        if stats_client is None:
            overrides = {"review_strategy": args.review_strategy} if args.review_strategy else {}
            stats_client = build_stats_client(**overrides)

        config = RunConfig(
            org=args.org.strip(),
            since=args.since,
            include_reviews=args.include_reviews,
            exclude_forks=args.exclude_forks,
            blacklist=parse_blacklist(args.blacklist),
            top=coerce_top(args.top),
            token=resolve_token(args.token, store),
        )
        warning = None if stats_client.has_credential(config) else NO_TOKEN_WARNING
        if warning:
            print(f"warning: {warning}", file=sys.stderr)

        contributors = asyncio.run(stats_client.run(config))
    except BaseAppException as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    response = StatsResponse.from_run(config, contributors, warning=warning)
    output = render(args.fmt, response, contributors)

    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        print(f"Wrote {len(contributors)} contributors to {args.output}", file=sys.stderr)
    else:
        print(output)
    return 0


def run_token(args: argparse.Namespace, store: TokenStore) -> int:
    try:
        if args.token_command == "set":
            store.set(args.value)
            print("Token saved.")
        elif args.token_command == "clear":
            store.clear()
            print("Token cleared.")
        else:
            print("A token is stored." if store.get() else "No token stored.")
    except BaseAppException as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "orgstats.api.main:app",
        host=args.host,
        port=args.port,
        reload=settings.API_RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
    return 0


def main(argv: Optional[Sequence[str]] = None, store: Optional[TokenStore] = None) -> int:
    args = build_parser().parse_args(argv)
    store = store or FileTokenStore(settings.TOKEN_STORE_PATH)

    if args.command == "serve":
        return run_serve(args)

    setup_logging(sys.stderr)
    if args.command == "token":
        return run_token(args, store)
    return run_stats(args, store)


if __name__ == "__main__":
    raise SystemExit(main())
