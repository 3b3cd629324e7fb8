"""Analysis pipeline orchestrator.

One run is a single logical request:

1. Fetch repository metadata (required)
2. Fetch commits in the activity window, contributors, languages and the
   recursive tree (each optional; failures are recorded and the stage yields
   an empty collection)
3. Run the dependency aggregation and the metrics engine concurrently over
   that immutable snapshot
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from typing import TypeVar

from repolyzer.analyzers.dependency import DependencyAggregator
from repolyzer.analyzers.metrics import compute_metrics
from repolyzer.config import RepolyzerConfig
from repolyzer.github.client import GitHubClient, GitHubError
from repolyzer.models.analysis import AnalysisError, AnalysisResult, AnalysisStatus
from repolyzer.models.dependency import DependencyReport
from repolyzer.models.metrics import MetricsSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PipelineOptions:
    """Options for controlling pipeline execution.

    Attributes:
        skip_dependencies: Skip manifest fetching and parsing
        skip_metrics: Skip metric computation
    """

    skip_dependencies: bool = False
    skip_metrics: bool = False


class AnalysisPipeline:
    """Fetches a repository snapshot and derives the dependency report and metrics.

    Usage:
        with GitHubClient(token=token) as client:
            pipeline = AnalysisPipeline(client, config)
            result = pipeline.run("octocat", "hello-world")
    """

    def __init__(
        self,
        client: GitHubClient,
        config: RepolyzerConfig | None = None,
    ) -> None:
        """Initialize the analysis pipeline.

        Args:
            client: GitHub API client (also the manifest content fetcher)
            config: Repolyzer configuration (uses defaults if None)
        """
        self.client = client
        self.config = config or RepolyzerConfig()
        self._aggregator = DependencyAggregator(
            client,
            max_workers=self.config.analysis.max_workers,
            timeout=self.config.analysis.timeout,
        )

    def run(
        self,
        owner: str,
        repo: str,
        options: PipelineOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AnalysisResult:
        """Execute the full analysis pipeline.

        Args:
            owner: Repository owner
            repo: Repository name
            options: Pipeline execution options
            cancel_event: Optional signal to abandon in-flight manifest fetches

        Returns:
            AnalysisResult; status is FAILED only when metadata could not be fetched
        """
        options = options or PipelineOptions()
        result = AnalysisResult(owner=owner, repo=repo, status=AnalysisStatus.RUNNING)

        logger.info("Starting analysis of %s/%s", owner, repo)

        # Stage 1: Repository metadata
        try:
            result.repo_info = self.client.get_repo(owner, repo)
        except GitHubError as e:
            logger.error("Failed to fetch repository %s/%s: %s", owner, repo, e)
            result.add_error(AnalysisError(component="repo", message=str(e), recoverable=False))
            result.status = AnalysisStatus.FAILED
            return result

        # Stage 2: Snapshot collections
        since = result.timestamp - timedelta(days=self.config.analysis.commit_window_days)
        branch = result.repo_info.default_branch

        result.commits = self._fetch(
            result, "commits", lambda: self.client.get_commits(owner, repo, since=since), []
        )
        result.contributors = self._fetch(
            result, "contributors", lambda: self.client.get_contributors(owner, repo), []
        )
        result.languages = self._fetch(
            result, "languages", lambda: self.client.get_languages(owner, repo), {}
        )
        if not options.skip_dependencies or not options.skip_metrics:
            result.tree = self._fetch(
                result, "tree", lambda: self.client.get_tree(owner, repo, branch), []
            )

        logger.info(
            "Fetched %d commits, %d contributors, %d languages, %d tree entries",
            len(result.commits),
            len(result.contributors),
            len(result.languages),
            len(result.tree),
        )

        # Stage 3: Derived pipelines, independent of each other
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="repolyzer-stage") as executor:
            deps_future = (
                None
                if options.skip_dependencies
                else executor.submit(
                    self._aggregator.analyze, owner, repo, branch, result.tree, cancel_event
                )
            )
            metrics_future = (
                None
                if options.skip_metrics
                else executor.submit(
                    compute_metrics,
                    result.commits,
                    result.contributors,
                    result.repo_info,
                    result.languages,
                    result.tree,
                    result.timestamp,
                    self.config.metrics,
                )
            )

            if deps_future is not None:
                result.dependencies = self._collect(
                    result, "dependencies", deps_future.result, DependencyReport()
                )
            if metrics_future is not None:
                result.metrics = self._collect(
                    result, "metrics", metrics_future.result, MetricsSnapshot()
                )

        result.status = AnalysisStatus.COMPLETED
        logger.info(
            "Analysis complete: %s (%d errors)",
            result.status.value,
            len(result.errors),
            extra={
                "extra_data": {
                    "repository": result.full_name,
                    "status": result.status.value,
                    "errors": len(result.errors),
                }
            },
        )
        return result

    def _fetch(
        self,
        result: AnalysisResult,
        component: str,
        fetch: Callable[[], T],
        default: T,
    ) -> T:
        """Run an optional fetch, recording a recoverable error on failure."""
        try:
            return fetch()
        except GitHubError as e:
            logger.warning("Could not fetch %s: %s", component, e)
            result.add_error(AnalysisError(component=component, message=str(e)))
            return default

    def _collect(
        self,
        result: AnalysisResult,
        component: str,
        get: Callable[[], T],
        default: T,
    ) -> T:
        """Collect a derived stage result without letting it abort the run."""
        try:
            return get()
        except Exception as e:
            logger.warning("%s stage failed: %s", component.capitalize(), e)
            result.add_error(AnalysisError(component=component, message=str(e)))
            return default
