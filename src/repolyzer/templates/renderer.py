"""Report renderer for analysis results.

Renders an AnalysisResult to Markdown (Jinja2 package template) or JSON, and a
ComparisonResult to a side-by-side Markdown table or JSON.
Apart from the export timestamp, output depends only on the result, so the
same snapshot always renders identically.
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from repolyzer.models.analysis import AnalysisResult, AnalysisStatus, ComparisonResult
from repolyzer.renderers.filters import escape_table_cell, format_percent, pluralize

logger = logging.getLogger(__name__)

MARKDOWN_TEMPLATE = "REPORT.md.j2"
COMPARISON_TEMPLATE = "COMPARE.md.j2"
TOP_CONTRIBUTORS = 10

COMPARISON_LABELS = (
    "Health Score",
    "Bus Factor",
    "Maturity",
    "Stars",
    "Forks",
    "Open Issues",
    "Commits (1 year)",
    "Contributors",
    "Dependencies",
    "Ecosystems",
    "Lock File",
    "Top Language",
)


def format_datetime(dt: datetime | str | None) -> str:
    """Format datetime for display in reports.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC")


def comparison_column(result: AnalysisResult) -> list[str]:
    """Cell values for one repository, in COMPARISON_LABELS order."""
    info = result.repo_info
    metrics = result.metrics
    report = result.dependencies
    shares = result.language_shares()
    return [
        f"{metrics.health_score}/100",
        f"{metrics.bus_factor} ({metrics.bus_risk.value})",
        f"{metrics.maturity_level.value} ({metrics.maturity_score})",
        str(info.stars) if info else "N/A",
        str(info.forks) if info else "N/A",
        str(info.open_issues) if info else "N/A",
        str(len(result.commits)),
        str(len(result.contributors)),
        str(report.total_deps),
        ", ".join(report.ecosystems_seen) or "N/A",
        "yes" if report.has_lock_file else "no",
        f"{shares[0][0]} ({format_percent(shares[0][1])})" if shares else "N/A",
    ]


class ReportRenderer:
    """Renders analysis results to Markdown or JSON.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render_markdown(result)
        renderer.render_to_file(result, Path("REPORT.json"), "json")
    """

    def __init__(self) -> None:
        """Initialize the Jinja2 environment with package templates."""
        self._env = Environment(
            loader=PackageLoader("repolyzer", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["format_percent"] = format_percent
        self._env.filters["escape_table_cell"] = escape_table_cell
        self._env.filters["pluralize"] = pluralize

    def render_markdown(
        self,
        result: AnalysisResult,
        exported_at: datetime | None = None,
    ) -> str:
        """Render analysis result to Markdown.

        Args:
            result: Analysis result from the pipeline
            exported_at: Export timestamp (default: now)

        Returns:
            Rendered Markdown string
        """
        template = self._env.get_template(MARKDOWN_TEMPLATE)
        context = self._build_context(result, exported_at or datetime.now(UTC))

        rendered = template.render(**context)
        logger.debug("Rendered Markdown report (%d characters)", len(rendered))
        return rendered

    def render_json(
        self,
        result: AnalysisResult,
        exported_at: datetime | None = None,
    ) -> str:
        """Render analysis result to indented JSON.

        Args:
            result: Analysis result from the pipeline
            exported_at: Export timestamp (default: now)

        Returns:
            JSON document string
        """
        exported_at = exported_at or datetime.now(UTC)
        data = result.to_dict()
        export: dict[str, Any] = {
            "exported_at": exported_at.isoformat(),
            "repository": data["repository"],
            "metrics": data["metrics"],
            "languages": data["languages"],
            "top_contributors": data["top_contributors"][:TOP_CONTRIBUTORS],
            "commit_count_1y": data["commit_count_1y"],
            "dependencies": data["dependencies"],
            "status": data["status"],
            "errors": data["errors"],
        }
        return json.dumps(export, indent=2) + "\n"

    def render(self, result: AnalysisResult, output_format: str = "markdown") -> str:
        """Render in the given format ("markdown" or "json")."""
        if output_format == "markdown":
            return self.render_markdown(result)
        if output_format == "json":
            return self.render_json(result)
        raise ValueError(f"Unsupported output format: {output_format}")

    def render_to_file(
        self,
        result: AnalysisResult,
        output_path: Path,
        output_format: str = "markdown",
    ) -> Path:
        """Render analysis result and write to file.

        Args:
            result: Analysis result from the pipeline
            output_path: Path to write output file
            output_format: "markdown" or "json"

        Returns:
            Path to written file
        """
        self.write(self.render(result, output_format), output_path)
        logger.info("Wrote %s report to %s", output_format, output_path)

        return output_path

    def render_comparison_markdown(
        self,
        comparison: ComparisonResult,
        exported_at: datetime | None = None,
    ) -> str:
        """Render two analysis results as a side-by-side Markdown table.

        Metric cells of a failed run are shown as N/A.
        """
        template = self._env.get_template(COMPARISON_TEMPLATE)
        columns = [
            comparison_column(result)
            if result.status is not AnalysisStatus.FAILED
            else ["N/A"] * len(COMPARISON_LABELS)
            for result in comparison.results
        ]
        rendered = template.render(
            names=[result.full_name for result in comparison.results],
            exported_at=exported_at or datetime.now(UTC),
            rows=list(zip(COMPARISON_LABELS, *columns, strict=True)),
            errors=[
                (result.full_name, error.to_dict())
                for result in comparison.results
                for error in result.errors
            ],
        )
        logger.debug("Rendered comparison (%d characters)", len(rendered))
        return rendered

    def render_comparison_json(
        self,
        comparison: ComparisonResult,
        exported_at: datetime | None = None,
    ) -> str:
        """Render two analysis results as one JSON document.

        Each entry of ``repositories`` has the shape of AnalysisResult.to_dict().
        """
        exported_at = exported_at or datetime.now(UTC)
        export: dict[str, Any] = {"exported_at": exported_at.isoformat(), **comparison.to_dict()}
        return json.dumps(export, indent=2) + "\n"

    def render_comparison(
        self, comparison: ComparisonResult, output_format: str = "markdown"
    ) -> str:
        """Render a comparison in the given format ("markdown" or "json")."""
        if output_format == "markdown":
            return self.render_comparison_markdown(comparison)
        if output_format == "json":
            return self.render_comparison_json(comparison)
        raise ValueError(f"Unsupported output format: {output_format}")

    def write(self, content: str, output_path: Path) -> Path:
        """Write rendered content, creating parent directories."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        return output_path

    def _build_context(self, result: AnalysisResult, exported_at: datetime) -> dict[str, Any]:
        """Build the template rendering context."""
        data = result.to_dict()
        return {
            "full_name": result.full_name,
            "exported_at": exported_at,
            "repository": data["repository"],
            "metrics": data["metrics"] if result.status is not AnalysisStatus.FAILED else None,
            "commit_count": data["commit_count_1y"],
            "contributor_count": data["contributor_count"],
            "languages": result.language_shares(),
            "top_contributors": data["top_contributors"][:TOP_CONTRIBUTORS],
            "dependencies": data["dependencies"] if result.dependencies.files else None,
            "dependency_types": {
                dep_type: count
                for dep_type, count in result.dependencies.dependencies_by_type().items()
                if count
            },
            "errors": data["errors"],
        }
