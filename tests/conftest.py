"""Shared pytest fixtures for repolyzer tests.

Fixtures are organized by category:
- Snapshot fixtures: Repository metadata, commits, contributors, trees
- API fixtures: Mocked GitHub REST API (httpx.MockTransport)
- Result fixtures: Pre-built analysis results for testing renderers
"""

import logging
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from repolyzer.models import (
    AnalysisError,
    AnalysisResult,
    AnalysisStatus,
    BusRisk,
    Commit,
    Contributor,
    Dependency,
    DependencyFile,
    DependencyReport,
    DependencyType,
    Ecosystem,
    MaturityLevel,
    MetricsSnapshot,
    RepoInfo,
    TreeEntry,
)
from repolyzer.utils.logging import ROOT_LOGGER
from tests.fixtures import NOW, FakeGitHubAPI

# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Restore the package logger after tests that configure logging."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# =============================================================================
# Snapshot Fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for metric calculations."""
    return NOW


@pytest.fixture
def repo_info() -> RepoInfo:
    """Repository metadata for a six-year-old project."""
    return RepoInfo(
        full_name="octocat/hello-world",
        description="My first repository",
        stars=1500,
        forks=320,
        open_issues=10,
        created_at=NOW - timedelta(days=6 * 365),
        pushed_at=NOW - timedelta(days=1),
        default_branch="main",
        html_url="https://github.com/octocat/hello-world",
    )


@pytest.fixture
def recent_commits() -> list[Commit]:
    """Thirty commits, one per day before the reference time."""
    return [
        Commit(sha=f"{i:040x}", author="alice", date=NOW - timedelta(days=i))
        for i in range(30)
    ]


@pytest.fixture
def contributors() -> list[Contributor]:
    """Contributors in descending commit order."""
    return [
        Contributor(login="alice", commits=120),
        Contributor(login="bob", commits=60),
        Contributor(login="carol", commits=40),
        Contributor(login="dave", commits=20),
    ]


@pytest.fixture
def sample_tree() -> list[TreeEntry]:
    """Tree listing with manifests in three ecosystems and a lock file."""
    return [
        TreeEntry("backend", "tree"),
        TreeEntry("package.json"),
        TreeEntry("backend/go.mod"),
        TreeEntry("backend/go.sum"),
        TreeEntry("requirements.txt"),
        TreeEntry("README.md"),
    ]


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def fake_api() -> FakeGitHubAPI:
    """Mocked GitHub API serving the default sample repository."""
    return FakeGitHubAPI()


# =============================================================================
# Result Fixtures
# =============================================================================


@pytest.fixture
def sample_report() -> DependencyReport:
    """Dependency report spanning two ecosystems."""
    files = [
        DependencyFile(
            path="package.json",
            ecosystem=Ecosystem.NPM,
            dependencies=(
                Dependency("express", "^4.18.0"),
                Dependency("jest", "^29.0.0", DependencyType.DEV),
            ),
        ),
        DependencyFile(
            path="requirements.txt",
            ecosystem=Ecosystem.PYTHON,
            dependencies=(Dependency("flask", "==2.3.0"), Dependency("weird|name", ">=1")),
        ),
    ]
    return DependencyReport.build(files, has_lock_file=True)


@pytest.fixture
def sample_result(
    repo_info: RepoInfo,
    recent_commits: list[Commit],
    contributors: list[Contributor],
    sample_report: DependencyReport,
) -> AnalysisResult:
    """Completed analysis result for renderer tests."""
    return AnalysisResult(
        owner="octocat",
        repo="hello-world",
        timestamp=datetime(2026, 10, 1, 12, 0, tzinfo=UTC),
        status=AnalysisStatus.COMPLETED,
        repo_info=repo_info,
        commits=recent_commits,
        contributors=contributors,
        languages={"Python": 7500, "Go": 2500},
        dependencies=sample_report,
        metrics=MetricsSnapshot(
            health_score=58,
            bus_factor=2,
            bus_risk=BusRisk.MEDIUM,
            maturity_score=88,
            maturity_level=MaturityLevel.MATURE,
        ),
        errors=[AnalysisError(component="languages", message="Server Error (HTTP 500)")],
    )
