"""Async GitHub API client using httpx.

Provides a thin wrapper around the GitHub REST search API with proper
error handling and rate limiting awareness.
"""

import asyncio
import contextlib
import time
from dataclasses import dataclass
from typing import Any

import httpx

from gitscope.logging import get_logger

log = get_logger("gitscope.github.client")

GITHUB_API_BASE = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RATE_LIMIT_MAX_WAIT = 60
MAX_PER_PAGE = 100


class GitHubAPIError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


class GitHubAuthError(GitHubAPIError):
    """Authentication failed."""

    pass


class GitHubNotFoundError(GitHubAPIError):
    """Resource not found."""

    pass


class GitHubRateLimitError(GitHubAPIError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str,
        reset_at: int | None = None,
        remaining: int = 0,
        status_code: int = 403,
    ):
        super().__init__(message, status_code=status_code)
        self.reset_at = reset_at
        self.remaining = remaining


class GitHubValidationError(GitHubAPIError):
    """Validation error (422)."""

    pass


@dataclass
class RateLimitInfo:
    """Rate limit information from GitHub API."""

    limit: int
    remaining: int
    reset_at: int  # Unix timestamp
    used: int


class GitHubClient:
    """Async GitHub API client.

    Uses httpx for async HTTP operations. A rate-limited request is retried
    once if the limit resets soon enough; otherwise the error is raised to
    the caller.
    """

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        rate_limit_max_wait: int = DEFAULT_RATE_LIMIT_MAX_WAIT,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token or app token.
            base_url: GitHub API base URL (for enterprise).
            timeout: Request timeout in seconds.
            rate_limit_max_wait: Longest wait (seconds) for a rate-limit reset
                before giving up.
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._rate_limit_max_wait = rate_limit_max_wait
        self._client: httpx.AsyncClient | None = None
        self._rate_limit: RateLimitInfo | None = None

    @property
    def rate_limit(self) -> RateLimitInfo | None:
        """Get the last known rate limit info."""
        return self._rate_limit

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _update_rate_limit(self, headers: httpx.Headers) -> None:
        """Update rate limit info from response headers."""
        with contextlib.suppress(ValueError, TypeError):
            self._rate_limit = RateLimitInfo(
                limit=int(headers.get("x-ratelimit-limit", 0)),
                remaining=int(headers.get("x-ratelimit-remaining", 0)),
                reset_at=int(headers.get("x-ratelimit-reset", 0)),
                used=int(headers.get("x-ratelimit-used", 0)),
            )

    def _seconds_until_reset(self, error: GitHubRateLimitError) -> float | None:
        """Seconds to wait before retrying, or None if not worth waiting."""
        if not error.reset_at:
            return None
        wait = max(1.0, error.reset_at - time.time())
        if wait > self._rate_limit_max_wait:
            return None
        return wait

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make a request, retrying once after a short rate-limit reset.

        Raises:
            GitHubRateLimitError: Rate limit exceeded and not resetting soon.
            GitHubAPIError: Any other API error.
        """
        try:
            return await self._send(method, path, params)
        except GitHubRateLimitError as e:
            wait = self._seconds_until_reset(e)
            if wait is None:
                log.warning("github_rate_limited", path=path, reset_at=e.reset_at)
                raise
            log.warning("github_rate_limited_retrying", path=path, wait_seconds=round(wait, 1))
            await asyncio.sleep(wait)
            return await self._send(method, path, params)

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make a single request to the GitHub API.

        Args:
            method: HTTP method.
            path: API path (without base URL).
            params: Query parameters.

        Returns:
            Parsed JSON response.

        Raises:
            GitHubAuthError: Authentication failed.
            GitHubNotFoundError: Resource not found.
            GitHubRateLimitError: Rate limit exceeded.
            GitHubValidationError: Validation error.
            GitHubAPIError: Other API errors.
        """
        client = await self._get_client()

        try:
            response = await client.request(method=method, url=path, params=params)
        except httpx.RequestError as e:
            log.error("github_request_failed", path=path, error=str(e))
            raise GitHubAPIError(f"Request failed: {e}") from e

        self._update_rate_limit(response.headers)

        if response.status_code == 401:
            raise GitHubAuthError("Authentication failed", status_code=401)

        if response.status_code in (403, 429):
            if response.status_code == 429 or "rate limit" in response.text.lower():
                raise GitHubRateLimitError(
                    "Rate limit exceeded",
                    reset_at=self._rate_limit.reset_at if self._rate_limit else None,
                    remaining=0,
                    status_code=response.status_code,
                )
            raise GitHubAPIError(f"Forbidden: {response.text}", status_code=403)

        if response.status_code == 404:
            raise GitHubNotFoundError("Resource not found", status_code=404)

        if response.status_code == 422:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {"message": response.text}
            raise GitHubValidationError(
                error_data.get("message", "Validation failed"),
                status_code=422,
                response=error_data,
            )

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {"message": response.text}
            raise GitHubAPIError(
                error_data.get("message", f"HTTP {response.status_code}"),
                status_code=response.status_code,
                response=error_data,
            )

        try:
            result: dict[str, Any] | list[dict[str, Any]] = response.json()
            return result
        except ValueError as e:
            raise GitHubAPIError("Invalid JSON in response", status_code=response.status_code) from e

    async def search_repositories(
        self,
        query: str,
        sort: str = "updated",
        order: str = "desc",
        per_page: int = MAX_PER_PAGE,
        page: int = 1,
    ) -> dict[str, Any]:
        """Run a repository search.

        Args:
            query: Search query including qualifiers.
            sort: Sort field (stars, forks, help-wanted-issues, updated).
            order: Sort order (asc, desc).
            per_page: Results per page (max 100).
            page: Page number, starting at 1.

        Returns:
            The raw search response (``total_count``, ``incomplete_results``,
            ``items``).
        """
        data = await self._request(
            "GET",
            "/search/repositories",
            params={
                "q": query,
                "sort": sort,
                "order": order,
                "per_page": min(per_page, MAX_PER_PAGE),
                "page": page,
            },
        )
        if not isinstance(data, dict):
            raise GitHubAPIError("Unexpected response format")
        return data
