"""Repolyzer analyzers - pure analysis over a fetched repository snapshot.

Analyzers:
- Detector: Manifest and lock file detection from a tree listing
- Parsers: Per-ecosystem manifest parsers (npm, go, python, rust, ruby)
- DependencyAggregator: Fetches, parses and merges manifests into a report
- Metrics: Health score, bus factor and maturity
"""

from repolyzer.analyzers.dependency import ContentFetcher, DependencyAggregator
from repolyzer.analyzers.detector import (
    LOCK_FILES,
    MANIFEST_FILES,
    find_dependency_files,
    has_lock_file,
)
from repolyzer.analyzers.metrics import MetricsPolicy, compute_metrics
from repolyzer.analyzers.parsers import PARSERS, parse_manifest

__all__ = [
    "LOCK_FILES",
    "MANIFEST_FILES",
    "PARSERS",
    "ContentFetcher",
    "DependencyAggregator",
    "MetricsPolicy",
    "compute_metrics",
    "find_dependency_files",
    "has_lock_file",
    "parse_manifest",
]
