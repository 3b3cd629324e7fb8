"""Synchronous GitHub REST API client.

Fetches everything one analysis run needs: repository metadata, commits,
contributors, language byte counts, the recursive tree and raw file content.
A single httpx.Client is shared across threads, so manifest fetches issued by
the dependency aggregator reuse pooled connections.
"""

import logging
import os
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from repolyzer.models.dependency import TreeEntry
from repolyzer.models.repository import Commit, Contributor, RepoInfo

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_PAGES = 10
PER_PAGE = 100


class GitHubError(Exception):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        full_message = message
        if status_code is not None:
            full_message += f" (HTTP {status_code})"
        super().__init__(full_message)


class NotFoundError(GitHubError):
    """Raised when the requested repository, ref or path does not exist."""


class RateLimitError(GitHubError):
    """Raised when the API rate limit is exhausted."""

    def __init__(self, reset_at: int | None = None, status_code: int | None = None) -> None:
        self.reset_at = reset_at
        message = "GitHub API rate limit exceeded"
        if reset_at is not None:
            message += f", resets at {datetime.fromtimestamp(reset_at).isoformat()}"
        super().__init__(message, status_code)


def parse_repo_ref(ref: str) -> tuple[str, str]:
    """Extract (owner, repo) from "owner/repo" or a GitHub URL.

    Handles:
      - owner/repo
      - https://github.com/owner/repo(.git)
      - git@github.com:owner/repo.git

    Raises:
        ValueError: If the reference cannot be parsed
    """
    value = ref.strip().rstrip("/")
    if value.endswith(".git"):
        value = value[:-4]

    if value.startswith("git@"):
        _, _, value = value.partition(":")
    elif "://" in value:
        value = value.split("://", 1)[1]
        value = value.split("/", 1)[1] if "/" in value else ""

    parts = [p for p in value.split("/") if p]
    if len(parts) != 2:
        raise ValueError(f"Cannot parse repository reference: {ref!r} (expected owner/repo)")
    return parts[0], parts[1]


class GitHubClient:
    """Thin wrapper around the GitHub REST API.

    Usage:
        with GitHubClient(token=token) as client:
            info = client.get_repo("octocat", "hello-world")
            tree = client.get_tree("octocat", "hello-world", info.default_branch)
    """

    def __init__(
        self,
        token: str | None = None,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        max_pages: int = DEFAULT_MAX_PAGES,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Personal access token (falls back to GITHUB_TOKEN)
            api_base: API base URL (GitHub Enterprise: https://host/api/v3)
            timeout: Per-request timeout in seconds
            max_pages: Page cap for paginated endpoints
            transport: Custom transport (tests use httpx.MockTransport)
        """
        resolved_token = token or os.environ.get("GITHUB_TOKEN")
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "repolyzer",
        }
        if resolved_token:
            headers["Authorization"] = f"Bearer {resolved_token}"

        self.max_pages = max_pages
        self.authenticated = bool(resolved_token)
        self._client = httpx.Client(
            base_url=api_base.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # =========================================================================
    # Endpoints
    # =========================================================================

    def get_repo(self, owner: str, repo: str) -> RepoInfo:
        """Fetch repository metadata."""
        data = self._get_json(f"/repos/{owner}/{repo}")
        return RepoInfo.from_api(data)

    def get_commits(
        self,
        owner: str,
        repo: str,
        since: datetime | None = None,
    ) -> list[Commit]:
        """Fetch commits on the default branch, newest first.

        Args:
            owner: Repository owner
            repo: Repository name
            since: Only commits after this time
        """
        params: dict[str, Any] = {}
        if since is not None:
            params["since"] = since.isoformat()
        items = self._get_paginated(f"/repos/{owner}/{repo}/commits", params)
        return [Commit.from_api(item) for item in items]

    def get_contributors(self, owner: str, repo: str) -> list[Contributor]:
        """Fetch contributors in descending commit order."""
        items = self._get_paginated(f"/repos/{owner}/{repo}/contributors")
        return [Contributor.from_api(item) for item in items]

    def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Fetch language name to byte count."""
        data = self._get_json(f"/repos/{owner}/{repo}/languages")
        return {str(name): int(size) for name, size in data.items()}

    def get_tree(self, owner: str, repo: str, branch: str) -> list[TreeEntry]:
        """Fetch the recursive tree listing of ``branch``."""
        data = self._get_json(
            f"/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}",
            params={"recursive": "1"},
        )
        if data.get("truncated"):
            logger.warning("Tree listing for %s/%s is truncated by the API", owner, repo)
        return [
            TreeEntry(path=item["path"], type=item.get("type", "blob"))
            for item in data.get("tree", [])
            if item.get("path")
        ]

    def get_file_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch a file's content, base64-encoded as returned by the API.

        Raises:
            GitHubError: If the request fails or the path is not a base64 file
        """
        data = self._get_json(f"/repos/{owner}/{repo}/contents/{quote(path)}")
        if not isinstance(data, dict) or data.get("encoding") != "base64":
            raise GitHubError(f"Unexpected content payload for {path}")
        return data.get("content", "")

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """Issue a GET and map failures to GitHubError subclasses."""
        try:
            response = self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise GitHubError(f"Request to {url} failed: {e}") from e

        if response.is_success:
            return response

        status = response.status_code
        if status == 404:
            raise NotFoundError(f"Not found: {url}", status)
        if status == 429 or (
            status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            reset = response.headers.get("X-RateLimit-Reset")
            raise RateLimitError(int(reset) if reset and reset.isdigit() else None, status)

        try:
            detail = response.json().get("message", "")
        except ValueError:
            detail = response.text[:200]
        raise GitHubError(f"GET {url} failed: {detail}".rstrip(": "), status)

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self._request(url, params)
        try:
            return response.json()
        except ValueError as e:
            raise GitHubError(f"Invalid JSON from {url}") from e

    def _get_paginated(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Collect items from a paginated endpoint.

        Follows ``Link: <...>; rel="next"`` headers, stopping after
        ``max_pages`` pages.
        """
        url: str | None = path
        page_params: dict[str, Any] | None = {**(params or {}), "per_page": PER_PAGE}
        items: list[dict[str, Any]] = []
        pages = 0

        while url and pages < self.max_pages:
            response = self._request(url, page_params)
            pages += 1

            # 204: empty repository (contributors endpoint)
            if response.status_code == 204:
                break
            try:
                page = response.json()
            except ValueError as e:
                raise GitHubError(f"Invalid JSON from {url}") from e
            if not isinstance(page, list):
                raise GitHubError(f"Expected a list from {url}")
            items.extend(page)

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            page_params = None

        if url and pages >= self.max_pages:
            logger.debug("Stopped paginating %s after %d pages", path, pages)

        return items
