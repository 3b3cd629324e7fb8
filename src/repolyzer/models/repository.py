"""Remote repository entities.

Plain records decoded from GitHub REST API payloads:
- RepoInfo: Repository metadata (stars, issues, creation date, ...)
- Commit: Single commit on the default branch
- Contributor: Contributor login with commit count
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp such as "2024-01-15T12:00:00Z"

    Returns:
        Aware datetime, or None when missing or unparseable
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class RepoInfo:
    """Repository metadata.

    Attributes:
        full_name: "owner/name"
        description: Repository description (may be empty)
        stars: Stargazer count
        forks: Fork count
        open_issues: Open issue count (GitHub includes open pull requests)
        created_at: Creation timestamp
        pushed_at: Last push timestamp
        default_branch: Default branch name
        html_url: Web URL
    """

    full_name: str
    description: str = ""
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    created_at: datetime | None = None
    pushed_at: datetime | None = None
    default_branch: str = "main"
    html_url: str = ""

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/", 1)[-1]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepoInfo":
        """Create from a ``GET /repos/{owner}/{repo}`` payload."""
        return cls(
            full_name=data.get("full_name") or "",
            description=data.get("description") or "",
            stars=int(data.get("stargazers_count") or 0),
            forks=int(data.get("forks_count") or 0),
            open_issues=int(data.get("open_issues_count") or 0),
            created_at=parse_timestamp(data.get("created_at")),
            pushed_at=parse_timestamp(data.get("pushed_at")),
            default_branch=data.get("default_branch") or "main",
            html_url=data.get("html_url") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "full_name": self.full_name,
            "description": self.description,
            "stars": self.stars,
            "forks": self.forks,
            "open_issues": self.open_issues,
            "created_at": self.created_at.strftime("%Y-%m-%d") if self.created_at else None,
            "last_push": self.pushed_at.strftime("%Y-%m-%d") if self.pushed_at else None,
            "default_branch": self.default_branch,
            "url": self.html_url,
        }


@dataclass(frozen=True)
class Commit:
    """Single commit.

    Attributes:
        sha: Commit SHA
        author: Author login, falling back to the git author name
        date: Author date
    """

    sha: str
    author: str = ""
    date: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Commit":
        """Create from one item of ``GET /repos/{owner}/{repo}/commits``."""
        commit = data.get("commit") or {}
        git_author = commit.get("author") or {}
        login = (data.get("author") or {}).get("login")
        return cls(
            sha=data.get("sha") or "",
            author=login or git_author.get("name") or "",
            date=parse_timestamp(git_author.get("date")),
        )


@dataclass(frozen=True)
class Contributor:
    """Contributor with their commit count on the default branch."""

    login: str
    commits: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Contributor":
        """Create from one item of ``GET /repos/{owner}/{repo}/contributors``."""
        return cls(
            login=data.get("login") or data.get("name") or "",
            commits=int(data.get("contributions") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"login": self.login, "commits": self.commits}
