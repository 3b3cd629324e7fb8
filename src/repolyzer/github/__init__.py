"""GitHub API access."""

from repolyzer.github.client import (
    GitHubClient,
    GitHubError,
    NotFoundError,
    RateLimitError,
    parse_repo_ref,
)

__all__ = [
    "GitHubClient",
    "GitHubError",
    "NotFoundError",
    "RateLimitError",
    "parse_repo_ref",
]
