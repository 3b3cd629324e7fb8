"""Dependency inventory entities.

This module contains the value objects produced by the manifest pipeline:
- Ecosystem: Package ecosystem tag (npm, go, python, rust, ruby)
- DependencyType: Declared role of a dependency (production, dev, peer, indirect)
- Dependency: Single declared dependency
- DependencyFile: Parse result for one manifest
- DependencyReport: Aggregate across all manifests in a tree snapshot
- TreeEntry: One entry of a repository tree listing

All entities are frozen; sequences are tuples so a report can be shared
between pipeline stages without copying.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Ecosystem(Enum):
    """Package ecosystem recognized by the manifest detector."""

    NPM = "npm"
    GO = "go"
    PYTHON = "python"
    RUST = "rust"
    RUBY = "ruby"


class DependencyType(Enum):
    """Role a dependency is declared with."""

    PRODUCTION = "production"
    DEV = "dev"
    PEER = "peer"
    INDIRECT = "indirect"


# Version recorded when a manifest declares no constraint
ANY_VERSION = "*"


@dataclass(frozen=True)
class Dependency:
    """Single declared dependency.

    Attributes:
        name: Package or module name (never empty)
        version: Constraint string exactly as declared, or "*" when absent
        type: Declared role
    """

    name: str
    version: str = ANY_VERSION
    type: DependencyType = DependencyType.PRODUCTION

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Dependency name must not be empty")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class DependencyFile:
    """Dependencies parsed from a single manifest.

    Attributes:
        path: Full repository path of the manifest
        ecosystem: Ecosystem of the parser that produced the result
        dependencies: Parsed dependencies in parser order
    """

    path: str
    ecosystem: Ecosystem
    dependencies: tuple[Dependency, ...] = ()

    @property
    def count(self) -> int:
        """Number of dependencies declared in this manifest."""
        return len(self.dependencies)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "ecosystem": self.ecosystem.value,
            "dependencies": [dep.to_dict() for dep in self.dependencies],
            "count": self.count,
        }


@dataclass(frozen=True)
class DependencyReport:
    """Cross-ecosystem dependency inventory for one tree snapshot.

    Use ``DependencyReport.build`` rather than the constructor so the derived
    fields stay consistent with ``files``.

    Attributes:
        files: Manifests that yielded at least one dependency, in tree order
        total_deps: Sum of ``count`` over ``files``
        ecosystems_seen: Distinct ecosystem tags in first-seen order
        has_lock_file: Whether any known lock file exists in the tree
    """

    files: tuple[DependencyFile, ...] = ()
    total_deps: int = 0
    ecosystems_seen: tuple[str, ...] = ()
    has_lock_file: bool = False

    @classmethod
    def build(
        cls,
        files: list[DependencyFile] | tuple[DependencyFile, ...],
        has_lock_file: bool,
    ) -> "DependencyReport":
        """Assemble a report, dropping manifests without dependencies.

        Args:
            files: Parsed manifests in tree order
            has_lock_file: Lock file flag computed from the tree

        Returns:
            DependencyReport with derived totals
        """
        kept = tuple(f for f in files if f.count > 0)

        # dict keys keep insertion order, so this doubles as an ordered set
        seen: dict[str, None] = {}
        for dep_file in kept:
            seen.setdefault(dep_file.ecosystem.value, None)

        return cls(
            files=kept,
            total_deps=sum(f.count for f in kept),
            ecosystems_seen=tuple(seen),
            has_lock_file=has_lock_file,
        )

    def dependencies_by_type(self) -> dict[str, int]:
        """Count dependencies per declared type across all files."""
        counts: dict[str, int] = {t.value: 0 for t in DependencyType}
        for dep_file in self.files:
            for dep in dep_file.dependencies:
                counts[dep.type.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "files": [f.to_dict() for f in self.files],
            "total_deps": self.total_deps,
            "ecosystems_seen": list(self.ecosystems_seen),
            "has_lock_file": self.has_lock_file,
        }


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a repository tree listing.

    Attributes:
        path: Full path from the repository root (not a basename)
        type: "blob" for files, "tree" for directories
    """

    path: str
    type: str = "blob"

    @property
    def basename(self) -> str:
        """Final path segment."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


@dataclass(frozen=True)
class ManifestCandidate:
    """A tree entry recognized as a dependency manifest."""

    path: str
    ecosystem: Ecosystem
