"""Tests for the GitHub REST client.

Uses mocked HTTP responses (respx) to avoid real GitHub API calls.
"""

import pytest
import respx
from httpx import Response

from orgstats.core.exceptions import GitHubAPIError, InvariantError, RateLimitError

REPOS_URL = "https://api.github.com/orgs/acme/repos"


@respx.mock
async def test_unauthenticated_requests_send_no_authorization(github_client):
    route = respx.get(REPOS_URL).mock(return_value=Response(200, json=[]))

    await github_client.get_json("/orgs/acme/repos")

    request = route.calls[0].request
    assert "authorization" not in request.headers
    assert request.headers["accept"] == "application/vnd.github+json"
    assert "user-agent" in request.headers
    assert github_client.has_token is False


@respx.mock
async def test_token_is_sent_as_bearer(authed_github_client):
    route = respx.get(REPOS_URL).mock(return_value=Response(200, json=[]))

    await authed_github_client.get_json("/orgs/acme/repos")

    assert route.calls[0].request.headers["authorization"] == "Bearer test-token-123"


@respx.mock
async def test_paginate_follows_next_links(github_client):
    route = respx.get(REPOS_URL)
    route.mock(
        side_effect=[
            Response(
                200,
                json=[{"name": f"repo{i}"} for i in range(100)],
                headers={"Link": f'<{REPOS_URL}?per_page=100&page=2>; rel="next", <{REPOS_URL}?per_page=100&page=3>; rel="last"'},
            ),
            Response(
                200,
                json=[{"name": f"repo{i}"} for i in range(100, 200)],
                headers={"Link": f'<{REPOS_URL}?per_page=100&page=3>; rel="next"'},
            ),
            Response(200, json=[{"name": "repo200"}]),
        ]
    )

    items = await github_client.paginate("/orgs/acme/repos", {"type": "all"})

    assert len(items) == 201
    assert items[-1]["name"] == "repo200"
    assert len(route.calls) == 3
    first = route.calls[0].request.url
    assert first.params["per_page"] == "100"
    assert first.params["type"] == "all"
    assert route.calls[1].request.url.params["page"] == "2"


@respx.mock
async def test_paginate_rejects_non_list_page(github_client):
    respx.get(REPOS_URL).mock(return_value=Response(200, json={"message": "odd"}))

    with pytest.raises(InvariantError):
        await github_client.paginate("/orgs/acme/repos")


@respx.mock
async def test_not_found_carries_status_code(github_client):
    respx.get(REPOS_URL).mock(return_value=Response(404, json={"message": "Not Found"}))

    with pytest.raises(GitHubAPIError) as exc_info:
        await github_client.get_json("/orgs/acme/repos")

    assert exc_info.value.status_code == 404
    assert not isinstance(exc_info.value, RateLimitError)


@respx.mock
async def test_exhausted_quota_raises_rate_limit_error(github_client):
    respx.get(REPOS_URL).mock(
        return_value=Response(
            403,
            json={"message": "API rate limit exceeded for 10.0.0.1."},
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1900000000"},
        )
    )

    with pytest.raises(RateLimitError) as exc_info:
        await github_client.get_json("/orgs/acme/repos")

    assert exc_info.value.status_code == 403
    assert github_client.rate_limit_status["remaining"] == 0


@respx.mock
async def test_plain_forbidden_is_not_a_rate_limit(github_client):
    respx.get(REPOS_URL).mock(
        return_value=Response(403, json={"message": "Resource not accessible by integration"})
    )

    with pytest.raises(GitHubAPIError) as exc_info:
        await github_client.get_json("/orgs/acme/repos")

    assert exc_info.value.status_code == 403
    assert not isinstance(exc_info.value, RateLimitError)


@respx.mock
async def test_server_errors_are_retried(github_client):
    route = respx.get(REPOS_URL)
    route.mock(side_effect=[Response(502), Response(200, json=[{"name": "api"}])])

    status_code, data = await github_client.get_json("/orgs/acme/repos")

    assert status_code == 200
    assert data == [{"name": "api"}]
    assert len(route.calls) == 2


@respx.mock
async def test_server_errors_give_up_after_retries(github_client):
    route = respx.get(REPOS_URL).mock(return_value=Response(500))

    with pytest.raises(GitHubAPIError) as exc_info:
        await github_client.get_json("/orgs/acme/repos")

    assert exc_info.value.status_code == 500
    assert len(route.calls) == 2  # first try + one retry


@respx.mock
async def test_empty_body_decodes_to_none(github_client):
    respx.get(REPOS_URL).mock(return_value=Response(204))

    status_code, data = await github_client.get_json("/orgs/acme/repos")

    assert status_code == 204
    assert data is None
