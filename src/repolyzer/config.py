"""Repolyzer configuration system.

Configuration is YAML-based with minimal CLI overrides (--output, --format).
Supports environment variable substitution (${VAR}) in config files, which is
the recommended way to supply the GitHub token.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.repolyzer/config.yaml
3. ./repolyzer.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from repolyzer.analyzers.metrics import MetricsPolicy, coerce_number
from repolyzer.github.client import DEFAULT_API_BASE, DEFAULT_MAX_PAGES, DEFAULT_TIMEOUT

VALID_FORMATS = frozenset({"markdown", "json"})

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class GitHubConfig:
    """GitHub API access.

    Attributes:
        token: Personal access token (None: fall back to GITHUB_TOKEN, then anonymous)
        api_base: API base URL
        timeout: Per-request timeout in seconds
        max_pages: Page cap for paginated endpoints (commits, contributors)
    """

    token: str | None = None
    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT
    max_pages: int = DEFAULT_MAX_PAGES

    def __post_init__(self) -> None:
        """Validate GitHub configuration."""
        if self.timeout <= 0:
            raise ValueError(f"github.timeout must be positive (got {self.timeout})")
        if self.max_pages < 1:
            raise ValueError(f"github.max_pages must be at least 1 (got {self.max_pages})")


@dataclass
class AnalysisConfig:
    """Analysis run settings.

    Attributes:
        max_workers: Concurrent manifest fetches
        timeout: Overall deadline in seconds for manifest fetches (None: no limit)
        commit_window_days: History window for commit activity
    """

    max_workers: int = 4
    timeout: float | None = 120.0
    commit_window_days: int = 365

    def __post_init__(self) -> None:
        """Validate analysis configuration."""
        if self.max_workers < 1:
            raise ValueError(f"analysis.max_workers must be at least 1 (got {self.max_workers})")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"analysis.timeout must be positive (got {self.timeout})")
        if self.commit_window_days < 1:
            raise ValueError(
                f"analysis.commit_window_days must be at least 1 (got {self.commit_window_days})"
            )


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        path: Output file path (None: print to stdout)
        format: Output format (markdown, json)
    """

    path: str | None = None
    format: str = "markdown"

    def __post_init__(self) -> None:
        """Validate output format."""
        if self.format not in VALID_FORMATS:
            raise ValueError(
                f"Invalid output format: {self.format}. Valid: {sorted(VALID_FORMATS)}"
            )


@dataclass
class RepolyzerConfig:
    """Top-level repolyzer configuration.

    Attributes:
        github: API access settings
        analysis: Concurrency and window settings
        metrics: Metric weights and thresholds
        output: Output path and format
    """

    github: GitHubConfig = field(default_factory=GitHubConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    metrics: MetricsPolicy = field(default_factory=MetricsPolicy)
    output: OutputConfig = field(default_factory=OutputConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax, e.g. ``token: "${GITHUB_TOKEN}"``.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_RE.sub(replace_var, value)

    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.repolyzer/config.yaml
    2. ./repolyzer.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".repolyzer" / "config.yaml",
        start_path / "repolyzer.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def _number(section: dict[str, Any], key: str, kind: type, default: Any, prefix: str) -> Any:
    if key not in section:
        return default
    return coerce_number(section[key], kind, f"{prefix}.{key}")


def _text(section: dict[str, Any], key: str, default: str | None, prefix: str) -> str | None:
    value = section.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{prefix}.{key} must be a string (got {value!r})")
    return value


def load_config_from_dict(data: dict[str, Any]) -> RepolyzerConfig:
    """Load configuration from a dictionary.

    Numeric settings accept numbers or numeric strings; anything else is
    rejected rather than passed through.

    Args:
        data: Configuration dictionary

    Returns:
        RepolyzerConfig instance

    Raises:
        ValueError: If a value is invalid or an env var is missing
    """
    data = substitute_env_vars(data)

    config = RepolyzerConfig()

    if "github" in data:
        github_data = _section(data, "github")
        config.github = GitHubConfig(
            token=_text(github_data, "token", None, "github") or None,
            api_base=_text(github_data, "api_base", config.github.api_base, "github")
            or config.github.api_base,
            timeout=_number(github_data, "timeout", float, config.github.timeout, "github"),
            max_pages=_number(github_data, "max_pages", int, config.github.max_pages, "github"),
        )

    if "analysis" in data:
        analysis_data = _section(data, "analysis")
        timeout = analysis_data.get("timeout", config.analysis.timeout)
        config.analysis = AnalysisConfig(
            max_workers=_number(
                analysis_data, "max_workers", int, config.analysis.max_workers, "analysis"
            ),
            timeout=(
                coerce_number(timeout, float, "analysis.timeout") if timeout is not None else None
            ),
            commit_window_days=_number(
                analysis_data,
                "commit_window_days",
                int,
                config.analysis.commit_window_days,
                "analysis",
            ),
        )

    # The commit window is configured once and shared by the fetch stage and the
    # health score
    metrics_data = dict(_section(data, "metrics")) if "metrics" in data else {}
    metrics_data.setdefault("commit_window_days", config.analysis.commit_window_days)
    config.metrics = MetricsPolicy.from_dict(metrics_data)

    if "output" in data:
        output_data = _section(data, "output")
        config.output = OutputConfig(
            path=_text(output_data, "path", config.output.path, "output"),
            format=_text(output_data, "format", config.output.format, "output") or "",
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> RepolyzerConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        RepolyzerConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
        ValueError: If the file is not valid YAML or holds invalid settings
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {found_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {found_path}")
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = RepolyzerConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Repolyzer Configuration

# GitHub API access
github:
  # token: "${GITHUB_TOKEN}"   # Falls back to the GITHUB_TOKEN env var
  api_base: "https://api.github.com"
  timeout: 30        # Per-request timeout (seconds)
  max_pages: 10      # Page cap for commits / contributors (100 items per page)

# Analysis settings
analysis:
  max_workers: 4           # Concurrent manifest fetches
  timeout: 120             # Deadline for all manifest fetches (seconds)
  commit_window_days: 365  # Commit activity window

# Metric weights and thresholds (all optional)
# metrics:
#   bus_threshold: 0.5
#   bus_medium_max: 3
#   growing_threshold: 25
#   established_threshold: 50
#   mature_threshold: 75

# Output settings
output:
  format: "markdown"  # markdown, json
  # path: "reports/REPORT.md"
'''
