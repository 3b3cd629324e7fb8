"""Test fixtures for repolyzer.

Provides sample manifests, an in-memory content fetcher for the aggregator,
and in-memory GitHub REST APIs served through httpx.MockTransport, so the
client, pipeline and CLI run end to end without network access.
"""

import base64
import json
import threading
import time
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from repolyzer.github import GitHubClient

# Reference time used by fixtures that need dated data
NOW = datetime(2026, 10, 1, 12, 0, 0, tzinfo=UTC)

PACKAGE_JSON = json.dumps(
    {
        "name": "web",
        "version": "1.0.0",
        "dependencies": {"react": "^18.2.0", "express": " ^4.18.0 "},
        "devDependencies": {"jest": "^29.0.0"},
        "peerDependencies": {"react-dom": ">=18"},
    },
    indent=2,
)

GO_MOD = """module github.com/octocat/hello-world

go 1.21

require github.com/spf13/cobra v1.7.0

require (
    github.com/gin-gonic/gin v1.9.0
    // tooling
    golang.org/x/text v0.12.0 // indirect
)
"""

REQUIREMENTS_TXT = """# Production dependencies
flask==2.3.0
sqlalchemy>=2.0
requests

-e git+https://github.com/user/repo.git#egg=package
"""

CARGO_TOML = """[package]
name = "hello"
version = "0.1.0"

[dependencies]
serde = "1.0"
tokio = { version = "1", features = ["full"] }

[dev-dependencies]
mockall = "0.11"
"""

GEMFILE = """source "https://rubygems.org"

gem "rails", "~> 7.0"
gem 'pry'
# gem "commented"
"""

DEFAULT_FILES: dict[str, str] = {
    "package.json": PACKAGE_JSON,
    "backend/go.mod": GO_MOD,
    "requirements.txt": REQUIREMENTS_TXT,
    "crates/hello/Cargo.toml": CARGO_TOML,
    "Gemfile": GEMFILE,
    "yarn.lock": "# yarn lockfile v1\n",
    "README.md": "# hello\n",
}


def encode_content(text: str | bytes) -> str:
    """Base64-encode like the contents API does (wrapped at 60 columns)."""
    raw = text.encode("utf-8") if isinstance(text, str) else text
    encoded = base64.b64encode(raw).decode("ascii")
    return "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60)) + "\n"


def tree_payload(paths: list[str]) -> list[dict[str, str]]:
    """Build a recursive tree listing (directories first, then blobs)."""
    directories: dict[str, None] = {}
    for path in paths:
        parts = path.split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            directories.setdefault("/".join(parts[:depth]), None)
    entries = [{"path": d, "type": "tree"} for d in directories]
    entries += [{"path": p, "type": "blob"} for p in paths]
    return entries


class FakeFetcher:
    """In-memory content fetcher returning base64 payloads.

    Attributes:
        files: Path to plain-text content
        errors: Path to the exception raised when fetching it
        raw: Path to a raw payload returned as-is (possibly invalid or not text)
        delays: Path to seconds slept before answering
        calls: Paths fetched, in call order
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        errors: dict[str, Exception] | None = None,
        raw: dict[str, Any] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.files = files or {}
        self.errors = errors or {}
        self.raw = raw or {}
        self.delays = delays or {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def get_file_content(self, owner: str, repo: str, path: str) -> str:
        with self._lock:
            self.calls.append(path)
        if path in self.delays:
            time.sleep(self.delays[path])
        if path in self.errors:
            raise self.errors[path]
        if path in self.raw:
            return self.raw[path]
        if path not in self.files:
            raise FileNotFoundError(path)
        return encode_content(self.files[path])


class FakeGitHubAPI:
    """In-memory GitHub REST API for one repository.

    Attributes:
        files: Path to file content served by the contents endpoint
        fail_paths: Paths whose contents request returns HTTP 500
        broken_paths: Paths whose contents are not valid base64
        failing_endpoints: Endpoint names ("repo", "commits", "contributors",
            "languages", "tree") answered with HTTP 500
        requests: Every request received, in order
    """

    def __init__(
        self,
        owner: str = "octocat",
        repo: str = "hello-world",
        files: dict[str, str] | None = None,
        commits: list[dict[str, Any]] | None = None,
        contributors: list[dict[str, Any]] | None = None,
        languages: dict[str, int] | None = None,
        repo_data: dict[str, Any] | None = None,
        fail_paths: set[str] | None = None,
        broken_paths: set[str] | None = None,
        failing_endpoints: set[str] | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.files = DEFAULT_FILES if files is None else files
        self.commits = sample_commits(30) if commits is None else commits
        self.contributors = sample_contributors() if contributors is None else contributors
        self.languages = (
            {"Python": 6000, "Go": 3000, "Ruby": 1000} if languages is None else languages
        )
        self.repo_data = repo_data or sample_repo_data(owner, repo)
        self.fail_paths = fail_paths or set()
        self.broken_paths = broken_paths or set()
        self.failing_endpoints = failing_endpoints or set()
        self.requests: list[httpx.Request] = []

    @property
    def prefix(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == self.prefix:
            return self._respond("repo", self.repo_data)
        if path == f"{self.prefix}/commits":
            return self._respond("commits", self.commits)
        if path == f"{self.prefix}/contributors":
            return self._respond("contributors", self.contributors)
        if path == f"{self.prefix}/languages":
            return self._respond("languages", self.languages)
        if path.startswith(f"{self.prefix}/git/trees/"):
            tree = {"sha": "abc123", "tree": tree_payload(list(self.files)), "truncated": False}
            return self._respond("tree", tree)
        if path.startswith(f"{self.prefix}/contents/"):
            return self._contents(path.removeprefix(f"{self.prefix}/contents/"))

        return httpx.Response(404, json={"message": "Not Found"})

    def client(self, **kwargs: Any) -> GitHubClient:
        """Create a GitHubClient wired to this fake API."""
        return GitHubClient(token="test-token", transport=httpx.MockTransport(self.handler), **kwargs)

    def content_requests(self) -> list[str]:
        """Paths requested from the contents endpoint."""
        marker = f"{self.prefix}/contents/"
        return [r.url.path.removeprefix(marker) for r in self.requests if marker in r.url.path]

    def _respond(self, endpoint: str, payload: Any) -> httpx.Response:
        if endpoint in self.failing_endpoints:
            return httpx.Response(500, json={"message": "Server Error"})
        return httpx.Response(200, json=payload)

    def _contents(self, file_path: str) -> httpx.Response:
        if file_path in self.fail_paths:
            return httpx.Response(500, json={"message": "Server Error"})
        if file_path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        if file_path in self.broken_paths:
            content = "!!! not base64 !!!"
        else:
            content = encode_content(self.files[file_path])
        return httpx.Response(
            200,
            json={"path": file_path, "type": "file", "encoding": "base64", "content": content},
        )


class FakeGitHubHost:
    """Several FakeGitHubAPI repositories behind a single transport."""

    def __init__(self, *apis: FakeGitHubAPI) -> None:
        self.apis = apis

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        for api in self.apis:
            if path == api.prefix or path.startswith(f"{api.prefix}/"):
                return api.handler(request)
        return httpx.Response(404, json={"message": "Not Found"})

    def client(self, **kwargs: Any) -> GitHubClient:
        """Create a GitHubClient wired to every repository on this host."""
        return GitHubClient(token="test-token", transport=httpx.MockTransport(self.handler), **kwargs)


def sample_repo_data(owner: str = "octocat", repo: str = "hello-world") -> dict[str, Any]:
    """Repository payload as returned by GET /repos/{owner}/{repo}."""
    return {
        "full_name": f"{owner}/{repo}",
        "description": "My first repository",
        "stargazers_count": 1500,
        "forks_count": 320,
        "open_issues_count": 10,
        "created_at": "2019-03-01T09:00:00Z",
        "pushed_at": "2026-09-30T18:30:00Z",
        "default_branch": "main",
        "html_url": f"https://github.com/{owner}/{repo}",
    }


def sample_commits(count: int, start: datetime = NOW) -> list[dict[str, Any]]:
    """Commit payloads, one per day going back from ``start``."""
    authors = ["alice", "bob", "carol"]
    return [
        {
            "sha": f"{i:040x}",
            "author": {"login": authors[i % len(authors)]},
            "commit": {
                "author": {
                    "name": authors[i % len(authors)].title(),
                    "date": (start - timedelta(days=i)).isoformat().replace("+00:00", "Z"),
                }
            },
        }
        for i in range(count)
    ]


def sample_contributors() -> list[dict[str, Any]]:
    """Contributor payloads in descending contribution order."""
    return [
        {"login": "alice", "contributions": 120},
        {"login": "bob", "contributions": 60},
        {"login": "carol", "contributions": 40},
        {"login": "dave", "contributions": 20},
    ]
