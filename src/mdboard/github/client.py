"""GitHub GraphQL API client."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("MDBOARD_GITHUB_TOKEN", "GITHUB_TOKEN")


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    pass


class GitHubAuthError(GitHubClientError):
    """Authentication failed."""

    pass


class GitHubNotFoundError(GitHubClientError):
    """Resource not found."""

    pass


class GitHubForbiddenError(GitHubClientError):
    """Permission denied."""

    pass


class GitHubRateLimitError(GitHubClientError):
    """Rate limit exceeded."""

    pass


class BatchProtocolError(GitHubClientError):
    """A batched response does not line up with the operations sent."""

    def __init__(self, expected: int, received: int, missing: list[str] | None = None):
        self.expected = expected
        self.received = received
        self.missing = missing or []
        detail = f"expected {expected} results, received {received}"
        if self.missing:
            detail += f" (missing: {', '.join(self.missing)})"
        super().__init__(f"Batch response mismatch: {detail}")


class GitHubClient:
    """GitHub GraphQL API client.

    A thin synchronous wrapper around the GraphQL endpoint:
    - Token authentication (from env var or gh CLI)
    - Enterprise support via custom base_url
    - HTTP and GraphQL error mapping onto GitHubClientError subclasses
    """

    def __init__(self, token: str, base_url: str = "api.github.com", timeout: float = 30.0):
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token
            base_url: API host (default: api.github.com, use custom for Enterprise)
            timeout: Request timeout in seconds
        """
        self.token = token
        self.base_url = base_url
        self._graphql_url = f"https://{base_url}/graphql"
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @classmethod
    def from_environment(cls, base_url: str = "api.github.com") -> GitHubClient:
        """Create a client from environment variables or gh CLI.

        Tries in order:
        1. MDBOARD_GITHUB_TOKEN, then GITHUB_TOKEN
        2. gh auth token (if gh CLI is installed and authenticated)

        Raises:
            GitHubAuthError: If no token is available
        """
        for name in TOKEN_ENV_VARS:
            token = os.environ.get(name)
            if token:
                logger.debug("Using token from %s environment variable", name)
                return cls(token, base_url)

        command = ["gh", "auth", "token"]
        if base_url != "api.github.com":
            command += ["--hostname", base_url.removeprefix("api.")]
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=True)
            token = result.stdout.strip()
            if token:
                logger.debug("Using token from gh CLI")
                return cls(token, base_url)
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("gh CLI not available or not authenticated")

        logger.error("No GitHub token found")
        raise GitHubAuthError(
            "No GitHub token found. Either:\n"
            "  - Set GITHUB_TOKEN (or MDBOARD_GITHUB_TOKEN)\n"
            "  - Run 'gh auth login' to authenticate with GitHub CLI"
        )

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query or mutation document.

        Args:
            query: GraphQL document
            variables: Document variables

        Returns:
            The 'data' field of the response

        Raises:
            GitHubAuthError: Authentication failed
            GitHubNotFoundError: Resource not found
            GitHubForbiddenError: Permission denied
            GitHubRateLimitError: Rate limit exceeded
            GitHubClientError: Other errors
        """
        op_match = re.search(r"(?:query|mutation)\s+(\w+)", query)
        op_name = op_match.group(1) if op_match else "anonymous"

        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        # Variables may carry story bodies; keep them at DEBUG
        logger.debug("GraphQL %s: variables=%s", op_name, variables)

        start_time = time.monotonic()
        try:
            response = self._client.post(self._graphql_url, json=payload)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("GraphQL %s failed after %.0fms: %s", op_name, elapsed_ms, e)
            raise GitHubClientError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        self._raise_for_status(response, op_name, elapsed_ms)

        try:
            result = response.json()
        except ValueError as e:
            logger.error("GraphQL %s: Invalid JSON response (%.0fms)", op_name, elapsed_ms)
            raise GitHubClientError(f"Invalid JSON response: {e}") from e

        if result.get("errors"):
            self._raise_for_errors(result["errors"], op_name, elapsed_ms)

        logger.info("GraphQL %s: 200 OK (%.0fms)", op_name, elapsed_ms)
        return result.get("data") or {}

    def _raise_for_status(self, response: httpx.Response, op_name: str, elapsed_ms: float) -> None:
        """Map HTTP error statuses onto client exceptions."""
        status = response.status_code
        if status == 401:
            logger.error("GraphQL %s: 401 Unauthorized (%.0fms)", op_name, elapsed_ms)
            raise GitHubAuthError(
                "Authentication failed. Check your GITHUB_TOKEN.\n"
                "Required scopes: read:project, project, repo"
            )
        if status == 403:
            if "rate limit" in response.text.lower():
                logger.error("GraphQL %s: 403 Rate Limited (%.0fms)", op_name, elapsed_ms)
                raise GitHubRateLimitError("GitHub API rate limit exceeded. Try again later.")
            logger.error("GraphQL %s: 403 Forbidden (%.0fms)", op_name, elapsed_ms)
            raise GitHubForbiddenError(
                "Permission denied. The token needs:\n"
                "  - read:project (to fetch the board)\n"
                "  - project (to create and update board items)\n"
                "  - repo (to edit linked issues and pull requests)"
            )
        if status == 404:
            logger.error("GraphQL %s: 404 Not Found (%.0fms)", op_name, elapsed_ms)
            raise GitHubNotFoundError("Resource not found")
        if status >= 400:
            logger.error("GraphQL %s: HTTP %d (%.0fms)", op_name, status, elapsed_ms)
            raise GitHubClientError(f"HTTP {status}: {response.text}")

    def _raise_for_errors(
        self, errors: list[dict[str, Any]], op_name: str, elapsed_ms: float
    ) -> None:
        """Map a GraphQL errors array onto client exceptions.

        A batched mutation with one failing alias is reported as a whole-document
        failure.
        """
        messages = [e.get("message", str(e)) for e in errors]
        for error in errors:
            error_type = error.get("type", "")
            message = error.get("message", "")
            if error_type == "NOT_FOUND" or "could not resolve" in message.lower():
                logger.error("GraphQL %s: Not Found - %s (%.0fms)", op_name, message, elapsed_ms)
                raise GitHubNotFoundError(message)
            if error_type == "FORBIDDEN" or "permission" in message.lower():
                logger.error("GraphQL %s: Forbidden - %s (%.0fms)", op_name, message, elapsed_ms)
                raise GitHubForbiddenError(message)
            if error_type == "RATE_LIMITED":
                logger.error("GraphQL %s: Rate Limited (%.0fms)", op_name, elapsed_ms)
                raise GitHubRateLimitError(message)

        logger.error("GraphQL %s: errors=%s (%.0fms)", op_name, messages, elapsed_ms)
        raise GitHubClientError(f"GraphQL errors: {'; '.join(messages)}")
