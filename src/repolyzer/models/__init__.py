"""Repolyzer data models.

This module exports all core entities used throughout the application:
- Dependency, DependencyFile, DependencyReport: Manifest inventory
- TreeEntry: Repository tree listing entry
- RepoInfo, Commit, Contributor: Remote repository data
- MetricsSnapshot: Derived scores
- AnalysisResult, AnalysisError: Aggregated run output
- ComparisonResult: Two results side by side
"""

from repolyzer.models.analysis import (
    AnalysisError,
    AnalysisResult,
    AnalysisStatus,
    ComparisonResult,
)
from repolyzer.models.dependency import (
    ANY_VERSION,
    Dependency,
    DependencyFile,
    DependencyReport,
    DependencyType,
    Ecosystem,
    ManifestCandidate,
    TreeEntry,
)
from repolyzer.models.metrics import BusRisk, MaturityLevel, MetricsSnapshot
from repolyzer.models.repository import Commit, Contributor, RepoInfo

__all__ = [
    "ANY_VERSION",
    "AnalysisError",
    "AnalysisResult",
    "AnalysisStatus",
    "BusRisk",
    "Commit",
    "ComparisonResult",
    "Contributor",
    "Dependency",
    "DependencyFile",
    "DependencyReport",
    "DependencyType",
    "Ecosystem",
    "ManifestCandidate",
    "MaturityLevel",
    "MetricsSnapshot",
    "RepoInfo",
    "TreeEntry",
]
