"""Analysis result entities.

This module contains entities related to a full analysis run:
- AnalysisStatus: Lifecycle state of a run
- AnalysisError: Non-fatal errors encountered during analysis
- AnalysisResult: Snapshot data plus the derived dependency report and metrics
- ComparisonResult: Two analysis results reported side by side
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from repolyzer.models.dependency import DependencyReport, TreeEntry
from repolyzer.models.metrics import MetricsSnapshot
from repolyzer.models.repository import Commit, Contributor, RepoInfo


class AnalysisStatus(Enum):
    """Status of an analysis operation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class AnalysisError:
    """Non-fatal error encountered during analysis.

    Attributes:
        component: Component that failed (repo, commits, contributors, languages,
            tree, dependencies, metrics)
        message: Error description
        recoverable: Whether analysis continued after this error
    """

    component: str
    message: str
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "recoverable": self.recoverable,
        }


@dataclass
class AnalysisResult:
    """Aggregated data for one analyzed repository.

    Raw collections are populated by the fetch stage; ``dependencies`` and
    ``metrics`` by the two derived pipelines.

    Attributes:
        owner: Repository owner
        repo: Repository name
        timestamp: Analysis execution timestamp (UTC)
        status: Current analysis status
        repo_info: Repository metadata (None if the metadata fetch failed)
        commits: Commits within the analysis window
        contributors: Contributors in descending commit order
        languages: Language name to byte count
        tree: Recursive tree listing of the default branch
        dependencies: Manifest-level dependency inventory
        metrics: Derived scores
        errors: Non-fatal errors encountered during analysis
    """

    owner: str
    repo: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: AnalysisStatus = AnalysisStatus.PENDING
    repo_info: RepoInfo | None = None
    commits: list[Commit] = field(default_factory=list)
    contributors: list[Contributor] = field(default_factory=list)
    languages: dict[str, int] = field(default_factory=dict)
    tree: list[TreeEntry] = field(default_factory=list)
    dependencies: DependencyReport = field(default_factory=DependencyReport)
    metrics: MetricsSnapshot = field(default_factory=MetricsSnapshot)
    errors: list[AnalysisError] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        if self.repo_info and self.repo_info.full_name:
            return self.repo_info.full_name
        return f"{self.owner}/{self.repo}"

    def add_error(self, error: AnalysisError) -> None:
        """Add an analysis error."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Check if any errors were recorded."""
        return len(self.errors) > 0

    def get_errors_by_component(self, component: str) -> list[AnalysisError]:
        """Get errors for a specific component."""
        return [e for e in self.errors if e.component == component]

    def top_contributors(self, limit: int = 10) -> list[Contributor]:
        """Return the first ``limit`` contributors."""
        return self.contributors[:limit]

    def language_shares(self) -> list[tuple[str, float]]:
        """Return (language, percent of bytes) pairs, largest first."""
        total = sum(self.languages.values())
        if total <= 0:
            return []
        ordered = sorted(self.languages.items(), key=lambda item: (-item[1], item[0]))
        return [(name, size / total * 100) for name, size in ordered]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for template rendering and export."""
        return {
            "full_name": self.full_name,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "repository": self.repo_info.to_dict() if self.repo_info else None,
            "metrics": self.metrics.to_dict(),
            "languages": dict(self.languages),
            "top_contributors": [c.to_dict() for c in self.top_contributors()],
            "commit_count_1y": len(self.commits),
            "contributor_count": len(self.contributors),
            "dependencies": self.dependencies.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class ComparisonResult:
    """Two repositories analyzed with the same settings.

    Attributes:
        first: Result for the first repository given
        second: Result for the second repository given
    """

    first: AnalysisResult
    second: AnalysisResult

    @property
    def results(self) -> tuple[AnalysisResult, AnalysisResult]:
        return self.first, self.second

    def has_errors(self) -> bool:
        """Check if either run recorded errors."""
        return self.first.has_errors() or self.second.has_errors()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export, one entry per repository."""
        return {"repositories": [result.to_dict() for result in self.results]}
