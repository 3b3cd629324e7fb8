"""Derived repository metrics: health score, bus factor and maturity.

Pure functions over pre-fetched data; no network or file access. Every
function is total: empty commit or contributor collections yield the floor
values (score 0, bus factor 0, risk high) instead of raising.

Scoring (default MetricsPolicy):

Health score (0-100)
    activity   40 * min(recent_commits / 100, 1)
    diversity  30 * min(active_contributors / 10, 1)
    issues     30 * recent_commits / (recent_commits + open_issues)
               (0 when there were no recent commits)

Bus factor
    Smallest number of top contributors whose commits reach 50% of the total.
    Risk: high <= 1 < medium <= 3 < low.

Maturity score (0-100)
    age        50 * min(age_years / 5, 1)
    lock file  15 if any lock file is present
    languages  15 * min(language_count / 5, 1)
    manifests  20 * min(manifest_ecosystems / 2, 1)
    Levels: nascent < 25 <= growing < 50 <= established < 75 <= mature.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from datetime import UTC, datetime, timedelta
from typing import Any

from repolyzer.analyzers.detector import find_dependency_files, has_lock_file
from repolyzer.models.dependency import TreeEntry
from repolyzer.models.metrics import BusRisk, MaturityLevel, MetricsSnapshot
from repolyzer.models.repository import Commit, Contributor, RepoInfo

DAYS_PER_YEAR = 365.25


def coerce_number(value: Any, kind: type, name: str) -> Any:
    """Convert a configuration value to ``kind`` (int or float).

    Numeric strings are accepted since ${VAR} substitution always yields text.

    Raises:
        ValueError: If the value is not a finite number of the right kind
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{name} must be a number (got {value!r})")
    try:
        number = float(value)
    except (OverflowError, ValueError):
        raise ValueError(f"{name} must be a number (got {value!r})") from None
    if not math.isfinite(number):
        raise ValueError(f"{name} must be finite (got {value!r})")
    if kind is int:
        if not number.is_integer():
            raise ValueError(f"{name} must be an integer (got {value!r})")
        return int(number)
    return number


@dataclass(frozen=True)
class MetricsPolicy:
    """Tunable weights and thresholds for the metrics engine.

    Weights within each composite sum to 100.
    """

    commit_window_days: int = 365

    activity_weight: float = 40.0
    activity_target_commits: int = 100
    diversity_weight: float = 30.0
    diversity_target_contributors: int = 10
    issues_weight: float = 30.0

    bus_threshold: float = 0.5
    bus_medium_max: int = 3

    age_weight: float = 50.0
    age_target_years: float = 5.0
    lock_file_weight: float = 15.0
    language_weight: float = 15.0
    language_target: int = 5
    manifest_weight: float = 20.0
    manifest_target: int = 2

    growing_threshold: int = 25
    established_threshold: int = 50
    mature_threshold: int = 75

    def __post_init__(self) -> None:
        """Validate policy values."""
        if not 0 < self.bus_threshold <= 1:
            raise ValueError(f"bus_threshold must be in (0, 1] (got {self.bus_threshold})")
        if self.bus_medium_max < 1:
            raise ValueError(f"bus_medium_max must be at least 1 (got {self.bus_medium_max})")
        if not (
            0 < self.growing_threshold < self.established_threshold < self.mature_threshold <= 100
        ):
            raise ValueError("Maturity thresholds must be ascending within (0, 100]")
        for name in (
            "commit_window_days",
            "activity_target_commits",
            "diversity_target_contributors",
            "age_target_years",
            "language_target",
            "manifest_target",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetricsPolicy":
        """Create a policy overriding defaults with known keys from ``data``.

        Values are converted to the type of the field they override.

        Raises:
            ValueError: If ``data`` contains unknown keys or non-numeric values
        """
        kinds = {f.name: type(f.default) for f in fields(cls)}
        unknown = set(data) - set(kinds)
        if unknown:
            raise ValueError(f"Unknown metrics settings: {sorted(map(str, unknown))}")
        return cls(**{key: coerce_number(value, kinds[key], key) for key, value in data.items()})


DEFAULT_POLICY = MetricsPolicy()


def _clamp_score(value: float) -> int:
    return max(0, min(100, round(value)))


def _ratio(value: float, target: float) -> float:
    return min(max(value, 0) / target, 1.0)


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now


# =========================================================================
# Health score
# =========================================================================


def count_recent_commits(
    commits: Sequence[Commit],
    now: datetime | None = None,
    window_days: int = DEFAULT_POLICY.commit_window_days,
) -> int:
    """Count commits dated within ``window_days`` before ``now``.

    Undated commits are not counted.
    """
    cutoff = _now(now) - timedelta(days=window_days)
    return sum(1 for c in commits if c.date is not None and c.date >= cutoff)


def calculate_health_score(
    commits: Sequence[Commit],
    contributors: Sequence[Contributor],
    repo: RepoInfo | None = None,
    now: datetime | None = None,
    policy: MetricsPolicy = DEFAULT_POLICY,
) -> int:
    """Composite of recent activity, issue responsiveness and contributor diversity.

    Args:
        commits: Commit history (only the recent window counts)
        contributors: Contributors with commit counts
        repo: Repository metadata, for the open issue count
        now: Reference time (default: current UTC time)
        policy: Weights and targets

    Returns:
        Score in [0, 100]
    """
    recent = count_recent_commits(commits, now, policy.commit_window_days)
    active = sum(1 for c in contributors if c.commits > 0)
    open_issues = max(repo.open_issues, 0) if repo else 0

    activity = policy.activity_weight * _ratio(recent, policy.activity_target_commits)
    diversity = policy.diversity_weight * _ratio(active, policy.diversity_target_contributors)
    issues = policy.issues_weight * recent / (recent + open_issues) if recent else 0.0

    return _clamp_score(activity + diversity + issues)


# =========================================================================
# Bus factor
# =========================================================================


def calculate_bus_factor(
    contributors: Sequence[Contributor],
    threshold: float = DEFAULT_POLICY.bus_threshold,
) -> int:
    """Minimum number of top contributors covering ``threshold`` of all commits.

    Contributors are ranked by commit count, descending; ties keep input order.

    Returns:
        Bus factor (0 when there are no commits)
    """
    ranked = sorted(
        (c for c in contributors if c.commits > 0),
        key=lambda c: c.commits,
        reverse=True,
    )
    total = sum(c.commits for c in ranked)
    if total == 0:
        return 0

    target = threshold * total
    covered = 0
    for count, contributor in enumerate(ranked, start=1):
        covered += contributor.commits
        if covered >= target:
            return count
    return len(ranked)


def bus_risk(bus_factor: int, policy: MetricsPolicy = DEFAULT_POLICY) -> BusRisk:
    """Risk label for a bus factor; never lower for a smaller bus factor."""
    if bus_factor <= 1:
        return BusRisk.HIGH
    if bus_factor <= policy.bus_medium_max:
        return BusRisk.MEDIUM
    return BusRisk.LOW


# =========================================================================
# Maturity
# =========================================================================


def repository_age_years(repo: RepoInfo | None, now: datetime | None = None) -> float:
    """Years since repository creation (0 when unknown)."""
    if repo is None or repo.created_at is None:
        return 0.0
    age = _now(now) - repo.created_at
    return max(age.total_seconds(), 0.0) / (DAYS_PER_YEAR * 86400)


def maturity_level(score: int, policy: MetricsPolicy = DEFAULT_POLICY) -> MaturityLevel:
    """Map a maturity score to its band."""
    if score >= policy.mature_threshold:
        return MaturityLevel.MATURE
    if score >= policy.established_threshold:
        return MaturityLevel.ESTABLISHED
    if score >= policy.growing_threshold:
        return MaturityLevel.GROWING
    return MaturityLevel.NASCENT


def calculate_maturity(
    repo: RepoInfo | None,
    lock_file: bool,
    languages: Mapping[str, int],
    manifest_ecosystems: int,
    now: datetime | None = None,
    policy: MetricsPolicy = DEFAULT_POLICY,
) -> tuple[int, MaturityLevel]:
    """Combine age, lock file hygiene and breadth into a maturity score.

    Args:
        repo: Repository metadata, for the creation date
        lock_file: Whether the tree contains a lock file
        languages: Language name to byte count
        manifest_ecosystems: Distinct ecosystems with a manifest in the tree
        now: Reference time
        policy: Weights and thresholds

    Returns:
        (score in [0, 100], level)
    """
    language_count = sum(1 for size in languages.values() if size > 0)

    score = _clamp_score(
        policy.age_weight * _ratio(repository_age_years(repo, now), policy.age_target_years)
        + (policy.lock_file_weight if lock_file else 0.0)
        + policy.language_weight * _ratio(language_count, policy.language_target)
        + policy.manifest_weight * _ratio(manifest_ecosystems, policy.manifest_target)
    )
    return score, maturity_level(score, policy)


# =========================================================================
# Snapshot
# =========================================================================


def compute_metrics(
    commits: Sequence[Commit],
    contributors: Sequence[Contributor],
    repo: RepoInfo | None = None,
    languages: Mapping[str, int] | None = None,
    tree: Sequence[TreeEntry] = (),
    now: datetime | None = None,
    policy: MetricsPolicy = DEFAULT_POLICY,
) -> MetricsSnapshot:
    """Compute every derived metric for one repository snapshot.

    Lock file presence and manifest breadth are read from the tree listing
    directly, so this never waits on the dependency pipeline.
    """
    bus_factor = calculate_bus_factor(contributors, policy.bus_threshold)
    manifest_ecosystems = len({c.ecosystem for c in find_dependency_files(tree)})
    maturity_score, level = calculate_maturity(
        repo,
        has_lock_file(tree),
        languages or {},
        manifest_ecosystems,
        now,
        policy,
    )

    return MetricsSnapshot(
        health_score=calculate_health_score(commits, contributors, repo, now, policy),
        bus_factor=bus_factor,
        bus_risk=bus_risk(bus_factor, policy),
        maturity_score=maturity_score,
        maturity_level=level,
    )
