"""End-to-end runs of the stats client against a mocked GitHub API."""

import asyncio

import pytest
import respx
from httpx import Response

from orgstats.connectors.schemas import RunConfig
from orgstats.core.exceptions import (
    ConfigurationError,
    GitHubAPIError,
    InvariantError,
    OrgNotFoundError,
    RateLimitError,
    ValidationError,
)
from orgstats.pipelines.blacklist import parse_blacklist
from orgstats.pipelines.stats_client import StatsClient

API = "https://api.github.com"
REPOS_URL = f"{API}/orgs/acme/repos"


def stats_url(repo: str) -> str:
    return f"{API}/repos/acme/{repo}/stats/contributors"


def search_by_user(counts):
    """side_effect for /search/issues answering from a login -> total_count map."""

    def _answer(request):
        query = request.url.params["q"]
        user = query.split("reviewed-by:")[1].split()[0]
        return Response(200, json={"total_count": counts.get(user, 0), "items": []})

    return _answer


@pytest.mark.parametrize("org", ["", "   ", None])
@respx.mock(assert_all_called=False)
async def test_missing_org_fails_before_any_request(respx_mock, make_stats_client, org):
    route = respx_mock.get(REPOS_URL).mock(return_value=Response(200, json=[]))

    with pytest.raises(ValidationError):
        await make_stats_client().run(RunConfig(org=org))

    assert not route.called


@respx.mock
async def test_totals_are_summed_across_repositories(make_stats_client, repo, contributor):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("web")]))
    respx.get(stats_url("api")).mock(
        return_value=Response(200, json=[contributor("alice", 5, weeks=[(100, 20)])])
    )
    respx.get(stats_url("web")).mock(
        return_value=Response(
            200,
            json=[contributor("alice", 3, weeks=[(30, 5)]), contributor("bob", 4, weeks=[(7, 1)])],
        )
    )

    result = await make_stats_client().run(RunConfig(org="acme", top=10))

    assert [c.to_dict() for c in result] == [
        {"user": "alice", "commits": 8, "linesAdded": 130, "linesRemoved": 25, "reviews": 0},
        {"user": "bob", "commits": 4, "linesAdded": 7, "linesRemoved": 1, "reviews": 0},
    ]


@respx.mock(assert_all_called=False)
async def test_blacklisted_repository_is_never_fetched(respx_mock, make_stats_client, repo, contributor):
    respx_mock.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("legacy")]))
    respx_mock.get(stats_url("api")).mock(return_value=Response(200, json=[contributor("alice", 1)]))
    legacy = respx_mock.get(stats_url("legacy")).mock(
        return_value=Response(200, json=[contributor("dave", 99)])
    )

    result = await make_stats_client().run(
        RunConfig(org="acme", blacklist=parse_blacklist("repo:legacy"))
    )

    assert [c.user for c in result] == ["alice"]
    assert not legacy.called


@respx.mock
async def test_blacklisted_user_is_excluded_everywhere(make_stats_client, repo, contributor):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("web")]))
    respx.get(stats_url("api")).mock(
        return_value=Response(200, json=[contributor("dependabot[bot]", 40), contributor("alice", 2)])
    )
    respx.get(stats_url("web")).mock(
        return_value=Response(200, json=[contributor("dependabot[bot]", 30)])
    )

    result = await make_stats_client().run(
        RunConfig(org="acme", blacklist=parse_blacklist("user:dependabot[bot]"))
    )

    assert [c.user for c in result] == ["alice"]


@respx.mock(assert_all_called=False)
async def test_forks_are_skipped_when_requested(respx_mock, make_stats_client, repo, contributor):
    respx_mock.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("upstream", fork=True)]))
    respx_mock.get(stats_url("api")).mock(return_value=Response(200, json=[contributor("alice", 1)]))
    fork = respx_mock.get(stats_url("upstream")).mock(
        return_value=Response(200, json=[contributor("stranger", 500)])
    )

    result = await make_stats_client().run(RunConfig(org="acme", exclude_forks=True))

    assert [c.user for c in result] == ["alice"]
    assert not fork.called


@respx.mock
async def test_one_failing_repository_does_not_abort_the_run(make_stats_client, repo, contributor):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("broken"), repo("web")]))
    respx.get(stats_url("api")).mock(return_value=Response(200, json=[contributor("alice", 3)]))
    respx.get(stats_url("broken")).mock(return_value=Response(500))
    respx.get(stats_url("web")).mock(return_value=Response(200, json=[contributor("bob", 2)]))

    result = await make_stats_client().run(RunConfig(org="acme"))

    assert [(c.user, c.commits) for c in result] == [("alice", 3), ("bob", 2)]


@respx.mock
async def test_top_truncates_and_ties_keep_first_seen_order(make_stats_client, repo, contributor):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("web")]))
    respx.get(stats_url("api")).mock(
        return_value=Response(200, json=[contributor("carol", 2), contributor("alice", 5)])
    )
    respx.get(stats_url("web")).mock(
        return_value=Response(200, json=[contributor("bob", 2), contributor("dave", 1)])
    )

    result = await make_stats_client(max_concurrency=1).run(RunConfig(org="acme", top=3))

    assert [c.user for c in result] == ["alice", "carol", "bob"]


@respx.mock
async def test_empty_organization_yields_no_contributors(make_stats_client):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[]))

    assert await make_stats_client().run(RunConfig(org="acme", include_reviews=True)) == []


@respx.mock
async def test_reviews_are_backfilled_for_surviving_users_only(make_stats_client, repo, contributor):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api")]))
    respx.get(stats_url("api")).mock(
        return_value=Response(200, json=[contributor("alice", 5), contributor("bot", 9)])
    )
    search = respx.get(f"{API}/search/issues").mock(
        side_effect=search_by_user({"alice": 7, "bot": 100, "reviewer-only": 50})
    )

    result = await make_stats_client().run(
        RunConfig(org="acme", include_reviews=True, blacklist=parse_blacklist("user:bot"))
    )

    assert [(c.user, c.reviews) for c in result] == [("alice", 7)]
    assert search.call_count == 1


@respx.mock(assert_all_called=False)
async def test_reviews_are_not_fetched_unless_requested(respx_mock, make_stats_client, repo, contributor):
    respx_mock.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api")]))
    respx_mock.get(stats_url("api")).mock(return_value=Response(200, json=[contributor("alice", 5)]))
    search = respx_mock.get(f"{API}/search/issues").mock(
        return_value=Response(200, json={"total_count": 3, "items": []})
    )

    result = await make_stats_client().run(RunConfig(org="acme"))

    assert result[0].reviews == 0
    assert not search.called


@respx.mock(assert_all_called=False)
async def test_pulls_strategy_counts_reviews_per_repository(respx_mock, make_stats_client, repo, contributor):
    respx_mock.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api"), repo("web")]))
    respx_mock.get(stats_url("api")).mock(return_value=Response(200, json=[contributor("alice", 5)]))
    respx_mock.get(stats_url("web")).mock(return_value=Response(200, json=[contributor("bob", 2)]))
    respx_mock.get(f"{API}/repos/acme/api/pulls").mock(return_value=Response(200, json=[{"number": 1}]))
    respx_mock.get(f"{API}/repos/acme/web/pulls").mock(return_value=Response(200, json=[{"number": 8}]))
    respx_mock.get(f"{API}/repos/acme/api/pulls/1/reviews").mock(
        return_value=Response(200, json=[{"user": {"login": "bob"}}, {"user": {"login": "alice"}}])
    )
    respx_mock.get(f"{API}/repos/acme/web/pulls/8/reviews").mock(
        return_value=Response(200, json=[{"user": {"login": "bob"}}, {"user": {"login": "eve"}}])
    )
    search = respx_mock.get(f"{API}/search/issues").mock(
        return_value=Response(200, json={"total_count": 99, "items": []})
    )

    result = await make_stats_client(review_strategy="pulls").run(
        RunConfig(org="acme", include_reviews=True)
    )

    assert [(c.user, c.reviews) for c in result] == [("alice", 1), ("bob", 2)]
    assert not search.called


@respx.mock
async def test_unknown_organization_propagates(make_stats_client):
    respx.get(REPOS_URL).mock(return_value=Response(404, json={"message": "Not Found"}))

    with pytest.raises(OrgNotFoundError):
        await make_stats_client().run(RunConfig(org="acme"))


@respx.mock
async def test_rate_limited_listing_without_token(make_stats_client):
    respx.get(REPOS_URL).mock(
        return_value=Response(403, json={"message": "API rate limit exceeded"}, headers={"X-RateLimit-Remaining": "0"})
    )

    with pytest.raises(RateLimitError):
        await make_stats_client().run(RunConfig(org="acme"))


@respx.mock
async def test_malformed_stats_payload_fails_the_run(make_stats_client, repo):
    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("api")]))
    respx.get(stats_url("api")).mock(return_value=Response(200, json={"unexpected": True}))

    with pytest.raises(InvariantError):
        await make_stats_client().run(RunConfig(org="acme"))


async def test_unexpected_failures_are_wrapped():
    def broken_factory(token):
        raise RuntimeError("boom")

    client = StatsClient(max_concurrency=1, review_strategy="search", client_factory=broken_factory)

    with pytest.raises(GitHubAPIError) as exc_info:
        await client.run(RunConfig(org="acme"))

    assert exc_info.value.message == "Failed to fetch stats: boom"


@respx.mock
async def test_default_token_is_used_when_run_has_none(make_stats_client):
    route = respx.get(REPOS_URL).mock(return_value=Response(200, json=[]))
    client = make_stats_client(default_token="server-token")

    await client.run(RunConfig(org="acme"))

    assert route.calls[0].request.headers["authorization"] == "Bearer server-token"
    assert client.has_credential(RunConfig(org="acme")) is True


@respx.mock
async def test_run_token_overrides_default(make_stats_client):
    route = respx.get(REPOS_URL).mock(return_value=Response(200, json=[]))

    await make_stats_client(default_token="server-token").run(RunConfig(org="acme", token="mine"))

    assert route.calls[0].request.headers["authorization"] == "Bearer mine"


def test_no_credential_without_any_token(make_stats_client):
    assert make_stats_client().has_credential(RunConfig(org="acme")) is False


def test_unknown_review_strategy_is_rejected():
    with pytest.raises(ConfigurationError):
        StatsClient(max_concurrency=1, review_strategy="graphql")


def test_zero_concurrency_is_rejected():
    with pytest.raises(ConfigurationError):
        StatsClient(max_concurrency=0, review_strategy="search")


@respx.mock
async def test_ties_follow_listing_order_when_fetches_finish_out_of_order(
    make_stats_client, repo, contributor
):
    async def slow_stats(request):
        await asyncio.sleep(0.2)
        return Response(200, json=[contributor("carol", 2)])

    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("slow"), repo("fast")]))
    respx.get(stats_url("slow")).mock(side_effect=slow_stats)
    respx.get(stats_url("fast")).mock(return_value=Response(200, json=[contributor("bob", 2)]))

    result = await make_stats_client(max_concurrency=5).run(RunConfig(org="acme"))

    assert [c.user for c in result] == ["carol", "bob"]


@respx.mock
async def test_fatal_fetch_cancels_pending_fetches(make_stats_client, repo, contributor):
    finished = []

    async def slow_stats(request):
        await asyncio.sleep(0.3)
        finished.append("slow")
        return Response(200, json=[contributor("carol", 2)])

    respx.get(REPOS_URL).mock(return_value=Response(200, json=[repo("slow"), repo("bad")]))
    respx.get(stats_url("slow")).mock(side_effect=slow_stats)
    respx.get(stats_url("bad")).mock(return_value=Response(200, json={"x": 1}))

    with pytest.raises(InvariantError):
        await make_stats_client(max_concurrency=5).run(RunConfig(org="acme"))

    # Long enough for the slow fetch to have finished had it kept running
    await asyncio.sleep(0.5)
    assert finished == []
