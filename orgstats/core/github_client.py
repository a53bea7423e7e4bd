"""
GitHub REST API client.
Handles authentication, requests, pagination, rate limiting, and error handling.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from orgstats.core.config import settings
from orgstats.core.exceptions import (
    ConnectionError as AppConnectionError,
    GitHubAPIError,
    InvariantError,
    RateLimitError,
)
from orgstats.core.logger import get_logger

logger = get_logger(__name__)


class GitHubClient:
    """
    Async GitHub REST API client with rate limit tracking and error handling.

    Features:
    - Optional bearer token authentication
    - Exhaustive Link-header pagination
    - Retry logic for transient failures (5xx, timeouts)
    - Structured error handling (404, 403, rate limits)
    """

    DEFAULT_PER_PAGE = 100
    RATE_LIMIT_BUFFER = 10  # Warn when fewer requests than this remain

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub token. If None, requests are sent unauthenticated
            base_url: API root, defaults to settings.GITHUB_API_URL
            timeout: Per-request timeout in seconds
            max_retries: Retries for server errors and transport failures
            retry_delay: Base delay between retries in seconds
        """
        self.token = token or None
        self.base_url = (base_url or settings.GITHUB_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GITHUB_REQUEST_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.GITHUB_MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.GITHUB_RETRY_DELAY
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "orgstats/0.1.0",
            "X-GitHub-Api-Version": settings.GITHUB_API_VERSION,
        }
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"

        self._rate_limit_remaining: Optional[int] = None
        self._rate_limit_reset_at: Optional[datetime] = None

        logger.debug(
            "GitHub client initialized",
            extra={"base_url": self.base_url, "authenticated": self.has_token},
        )

    @property
    def has_token(self) -> bool:
        return self.token is not None

    async def get_json(
        self, path: str, params: Optional[dict[str, Any]] = None
    ) -> tuple[int, Any]:
        """
        GET a single resource.

        Args:
            path: API path (e.g. "/orgs/acme/repos") or absolute URL
            params: Query parameters

        Returns:
            Tuple of (status_code, decoded JSON or None for an empty body)

        Raises:
            RateLimitError: If rate limit is exceeded
            GitHubAPIError: If API returns an error
            AppConnectionError: If network request fails
        """
        response = await self._send(self._build_url(path), params)
        return response.status_code, self._decode(response)

    async def paginate(
        self, path: str, params: Optional[dict[str, Any]] = None
    ) -> list[Any]:
        """
        Collect every item of a list endpoint, following rel="next" links.

        Raises:
            InvariantError: If a page is not a JSON list
        """
        items: list[Any] = []
        url: Optional[str] = self._build_url(path)
        query: Optional[dict[str, Any]] = {"per_page": self.DEFAULT_PER_PAGE, **(params or {})}
        pages = 0

        while url:
            response = await self._send(url, query)
            data = self._decode(response)
            if data is None:
                break
            if not isinstance(data, list):
                raise InvariantError(
                    "Expected a list from GitHub",
                    details={"url": url, "type": type(data).__name__},
                )
            items.extend(data)
            pages += 1

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            query = None

        logger.debug(
            "Pagination complete",
            extra={"path": path, "pages": pages, "items": len(items)},
        )
        return items

    async def _send(
        self, url: str, params: Optional[dict[str, Any]], retry_count: int = 0
    ) -> httpx.Response:
        self._check_rate_limit()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.debug(
                    "Executing GitHub request",
                    extra={"url": url, "params": params, "retry_count": retry_count},
                )
                response = await client.get(url, params=params, headers=self.headers)

        except httpx.TimeoutException as e:
            logger.warning("GitHub API request timeout", extra={"url": url, "error": str(e)})
            if retry_count < self.max_retries:
                await asyncio.sleep(self.retry_delay)
                return await self._send(url, params, retry_count + 1)
            raise AppConnectionError(
                f"GitHub API timeout after {self.max_retries} retries",
                details={"url": url},
            ) from e

        except httpx.RequestError as e:
            logger.warning("GitHub API request failed", extra={"url": url, "error": str(e)})
            if retry_count < self.max_retries:
                await asyncio.sleep(self.retry_delay)
                return await self._send(url, params, retry_count + 1)
            raise AppConnectionError(
                f"GitHub API connection error: {e}", details={"url": url}
            ) from e

        self._update_rate_limit_from_response(response)

        if response.status_code >= 500:
            # Server error - retry
            if retry_count < self.max_retries:
                await asyncio.sleep(self.retry_delay * (retry_count + 1))
                return await self._send(url, params, retry_count + 1)
            raise GitHubAPIError(
                f"GitHub API server error: {response.status_code}",
                details={"url": url},
                status_code=response.status_code,
            )

        self._raise_for_status(response, url)
        return response

    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        """Map GitHub error statuses onto application exceptions."""
        status_code = response.status_code
        if status_code < 400:
            return

        if status_code == 401:
            raise GitHubAPIError(
                "GitHub authentication failed. Check your token.",
                details={"url": url},
                status_code=401,
            )

        if status_code in (403, 429):
            # Could be rate limit or forbidden
            if self._is_rate_limited(response):
                raise RateLimitError(
                    "GitHub API rate limit exceeded",
                    details={
                        "url": url,
                        "reset_at": self._rate_limit_reset_at,
                        "remaining": self._rate_limit_remaining,
                    },
                    status_code=status_code,
                )
            raise GitHubAPIError(
                "GitHub API access forbidden",
                details={"url": url, "response": response.text[:500]},
                status_code=status_code,
            )

        if status_code == 404:
            raise GitHubAPIError(
                "GitHub resource not found",
                details={"url": url},
                status_code=404,
            )

        raise GitHubAPIError(
            f"GitHub API error: {status_code}",
            details={"url": url, "response": response.text[:500]},
            status_code=status_code,
        )

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        if "Retry-After" in response.headers:
            return True
        return "rate limit" in response.text.lower()

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise InvariantError(
                "GitHub returned a non-JSON response",
                details={"url": str(response.url), "status_code": response.status_code},
            ) from e

    def _build_url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _check_rate_limit(self) -> None:
        """Warn when we're approaching the rate limit."""
        if self._rate_limit_remaining is None:
            # First request, don't know limits yet
            return

        if self._rate_limit_remaining < self.RATE_LIMIT_BUFFER:
            logger.warning(
                "Approaching GitHub rate limit",
                extra={
                    "remaining": self._rate_limit_remaining,
                    "reset_at": self._rate_limit_reset_at,
                    "authenticated": self.has_token,
                },
            )

    def _update_rate_limit_from_response(self, response: httpx.Response) -> None:
        """Update rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")
        try:
            if remaining is not None:
                self._rate_limit_remaining = int(remaining)
            if reset is not None:
                self._rate_limit_reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        except ValueError:
            logger.debug("Ignoring malformed rate limit headers", extra={"remaining": remaining, "reset": reset})

    @property
    def rate_limit_status(self) -> dict[str, Any]:
        """Get current rate limit status."""
        return {
            "remaining": self._rate_limit_remaining,
            "reset_at": self._rate_limit_reset_at,
            "buffer": self.RATE_LIMIT_BUFFER,
            "authenticated": self.has_token,
        }
