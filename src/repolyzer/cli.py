"""Repolyzer CLI interface.

Commands:
- analyze: Full analysis (metadata, metrics, dependencies) with report export
- compare: Two repositories analyzed and reported side by side
- deps: Dependency inventory only
- init: Initialize repolyzer configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from repolyzer import __version__
from repolyzer.config import RepolyzerConfig, create_default_config, load_config
from repolyzer.utils.logging import configure_from_cli, get_logger

if TYPE_CHECKING:
    from repolyzer.github import GitHubClient

app = typer.Typer(
    name="repolyzer",
    help="GitHub repository inventory: dependencies, health, bus factor and maturity",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: RepolyzerConfig | None = None
_logger = get_logger("repolyzer.cli")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"repolyzer {__version__}")
        raise typer.Exit()


def _get_config() -> RepolyzerConfig:
    return _config or RepolyzerConfig()


def _parse_repository(repository: str) -> tuple[str, str]:
    from repolyzer.github import parse_repo_ref

    try:
        return parse_repo_ref(repository)
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _output_format(format: str | None, config: RepolyzerConfig) -> str:
    output_format = format or config.output.format
    if output_format not in {"markdown", "json"}:
        _logger.error(f"Invalid format: {output_format}. Use 'markdown' or 'json'")
        raise typer.Exit(1)
    return output_format


def _create_client(config: RepolyzerConfig) -> "GitHubClient":
    from repolyzer.github import GitHubClient

    client = GitHubClient(
        token=config.github.token,
        api_base=config.github.api_base,
        timeout=config.github.timeout,
        max_pages=config.github.max_pages,
    )
    if not client.authenticated:
        _logger.warning("No GitHub token configured; anonymous requests are heavily rate limited")
    return client


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log lines",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Repolyzer - GitHub repository inventory and health analysis."""
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        _logger.error(f"Invalid config: {e}")
        raise typer.Exit(1)


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    repository: Annotated[
        str,
        typer.Argument(help="Repository as owner/repo or a GitHub URL"),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (overrides config; default: stdout)",
        ),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: markdown, json",
        ),
    ] = None,
    skip_dependencies: Annotated[
        bool,
        typer.Option(
            "--skip-dependencies",
            help="Skip manifest fetching and parsing",
        ),
    ] = False,
    skip_metrics: Annotated[
        bool,
        typer.Option(
            "--skip-metrics",
            help="Skip health, bus factor and maturity computation",
        ),
    ] = False,
) -> None:
    """Analyze a repository and export a report.

    Exit codes:
        0: Report generated
        1: Repository could not be analyzed
        2: Report generated with warnings (some data could not be fetched)
    """
    from repolyzer.models import AnalysisStatus
    from repolyzer.pipeline import AnalysisPipeline, PipelineOptions
    from repolyzer.templates import ReportRenderer

    config = _get_config()
    owner, repo = _parse_repository(repository)

    output_format = _output_format(format, config)
    output_path = output or (Path(config.output.path) if config.output.path else None)

    options = PipelineOptions(
        skip_dependencies=skip_dependencies,
        skip_metrics=skip_metrics,
    )

    with _create_client(config) as client:
        result = AnalysisPipeline(client, config).run(owner, repo, options)

    if result.status is AnalysisStatus.FAILED:
        for error in result.errors:
            _logger.error(f"[{error.component}] {error.message}")
        raise typer.Exit(1)

    renderer = ReportRenderer()
    if output_path is not None:
        written = renderer.render_to_file(result, output_path, output_format)
        typer.echo(f"Report written to: {written}")
    else:
        typer.echo(renderer.render(result, output_format), nl=False)

    if result.errors:
        _logger.warning(f"Encountered {len(result.errors)} error(s)")
        raise typer.Exit(2)


# =============================================================================
# compare command
# =============================================================================


@app.command()
def compare(
    first: Annotated[
        str,
        typer.Argument(help="First repository as owner/repo or a GitHub URL"),
    ],
    second: Annotated[
        str,
        typer.Argument(help="Second repository as owner/repo or a GitHub URL"),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (default: stdout)",
        ),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: markdown, json",
        ),
    ] = None,
    skip_dependencies: Annotated[
        bool,
        typer.Option(
            "--skip-dependencies",
            help="Skip manifest fetching and parsing",
        ),
    ] = False,
) -> None:
    """Analyze two repositories and report their metrics side by side.

    Exit codes:
        0: Comparison generated
        1: Either repository could not be analyzed
        2: Comparison generated with warnings
    """
    from repolyzer.models import AnalysisStatus, ComparisonResult
    from repolyzer.pipeline import AnalysisPipeline, PipelineOptions
    from repolyzer.templates import ReportRenderer

    config = _get_config()
    refs = [_parse_repository(first), _parse_repository(second)]
    output_format = _output_format(format, config)

    options = PipelineOptions(skip_dependencies=skip_dependencies)

    with _create_client(config) as client:
        pipeline = AnalysisPipeline(client, config)
        results = [pipeline.run(owner, repo, options) for owner, repo in refs]

    failed = [result for result in results if result.status is AnalysisStatus.FAILED]
    for result in failed:
        for error in result.errors:
            _logger.error(f"{result.full_name} [{error.component}] {error.message}")
    if failed:
        raise typer.Exit(1)

    comparison = ComparisonResult(*results)
    renderer = ReportRenderer()
    content = renderer.render_comparison(comparison, output_format)
    if output is not None:
        renderer.write(content, output)
        typer.echo(f"Comparison written to: {output}")
    else:
        typer.echo(content, nl=False)

    if comparison.has_errors():
        errors = sum(len(result.errors) for result in results)
        _logger.warning(f"Encountered {errors} error(s)")
        raise typer.Exit(2)


# =============================================================================
# deps command
# =============================================================================


@app.command()
def deps(
    repository: Annotated[
        str,
        typer.Argument(help="Repository as owner/repo or a GitHub URL"),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the dependency report as JSON",
        ),
    ] = False,
) -> None:
    """List dependencies declared in the repository's manifests."""
    from repolyzer.analyzers import DependencyAggregator
    from repolyzer.github import GitHubError

    config = _get_config()
    owner, repo = _parse_repository(repository)

    with _create_client(config) as client:
        try:
            info = client.get_repo(owner, repo)
            tree = client.get_tree(owner, repo, info.default_branch)
        except GitHubError as e:
            _logger.error(f"Failed to fetch {owner}/{repo}: {e}")
            raise typer.Exit(1)

        aggregator = DependencyAggregator(
            client,
            max_workers=config.analysis.max_workers,
            timeout=config.analysis.timeout,
        )
        report = aggregator.analyze(owner, repo, info.default_branch, tree)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not report.files:
        typer.echo("No dependencies found")
    for dep_file in report.files:
        typer.echo(f"\n{dep_file.path} ({dep_file.ecosystem.value}, {dep_file.count})")
        for dep in dep_file.dependencies:
            typer.echo(f"  {dep.name} {dep.version} [{dep.type.value}]")

    typer.echo(
        f"\nTotal: {report.total_deps} dependencies"
        f" | Ecosystems: {', '.join(report.ecosystems_seen) or 'none'}"
        f" | Lock file: {'yes' if report.has_lock_file else 'no'}"
    )


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize repolyzer configuration in ./.repolyzer/config.yaml."""
    config_dir = Path(".repolyzer")
    config_dir.mkdir(exist_ok=True)
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")
    typer.echo(f"Repolyzer configuration initialized: {config_file}")


if __name__ == "__main__":
    app()
