"""Dependency aggregation across all manifests in a repository tree.

The aggregator selects manifests from a pre-fetched tree listing, fetches each
one through a content-fetch collaborator, decodes and parses it, and merges
the results into a single DependencyReport.

Failure policy: a manifest whose fetch, base64 decoding or parsing fails is
skipped without retry; a manifest that parses to zero dependencies is dropped.
Neither case is reported as an error, and neither aborts the run.
"""

import base64
import binascii
import logging
import threading
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Protocol

from repolyzer.analyzers.detector import find_dependency_files, has_lock_file
from repolyzer.analyzers.parsers import parse_manifest
from repolyzer.models.dependency import (
    DependencyFile,
    DependencyReport,
    ManifestCandidate,
    TreeEntry,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

# Upper bound on a single wait() so a cancellation event is noticed promptly
_POLL_INTERVAL = 0.1


class ContentFetcher(Protocol):
    """Collaborator returning a file's content base64-encoded."""

    def get_file_content(self, owner: str, repo: str, path: str) -> str: ...


def decode_content(content: str) -> bytes:
    """Decode base64 file content as returned by the contents API.

    GitHub wraps the payload at 60 columns, so line breaks are removed before
    strict decoding.

    Raises:
        TypeError: If the content is not a string
        ValueError: If the content is not valid base64
    """
    if not isinstance(content, str):
        raise TypeError(f"Expected base64 text, got {type(content).__name__}")
    compact = "".join(content.split())
    try:
        return base64.b64decode(compact, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 content: {e}") from e


class DependencyAggregator:
    """Builds a DependencyReport from a tree listing.

    Manifest fetches are independent and run on a bounded thread pool. The
    report lists files in tree order regardless of completion order.

    Usage:
        aggregator = DependencyAggregator(client, max_workers=4, timeout=60)
        report = aggregator.analyze("octocat", "hello-world", "main", tree)
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: float | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            fetcher: Content-fetch collaborator (e.g. GitHubClient)
            max_workers: Maximum concurrent manifest fetches
            timeout: Overall deadline in seconds for all fetches (None: no limit)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1 (got {max_workers})")
        self.fetcher = fetcher
        self.max_workers = max_workers
        self.timeout = timeout

    def analyze(
        self,
        owner: str,
        repo: str,
        branch: str,
        tree: Sequence[TreeEntry],
        cancel_event: threading.Event | None = None,
    ) -> DependencyReport:
        """Fetch, decode and parse every manifest in ``tree``.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Branch the tree was listed from
            tree: Tree listing in API order
            cancel_event: Optional signal; when set, in-flight fetches are
                abandoned and the manifests completed so far are reported

        Returns:
            DependencyReport (possibly partial)
        """
        candidates = find_dependency_files(tree)
        lock_file = has_lock_file(tree)

        logger.debug(
            "Found %d manifest(s) in %s/%s@%s", len(candidates), owner, repo, branch
        )

        parsed = self._process_all(owner, repo, candidates, cancel_event)
        files = [dep_file for dep_file in parsed if dep_file is not None]
        report = DependencyReport.build(files, has_lock_file=lock_file)

        logger.info(
            "Parsed %d manifest(s): %d dependencies across %s",
            len(report.files),
            report.total_deps,
            ", ".join(report.ecosystems_seen) or "no ecosystems",
            extra={
                "extra_data": {
                    "repository": f"{owner}/{repo}",
                    "manifests": len(report.files),
                    "total_deps": report.total_deps,
                }
            },
        )
        return report

    def _process_all(
        self,
        owner: str,
        repo: str,
        candidates: list[ManifestCandidate],
        cancel_event: threading.Event | None,
    ) -> list[DependencyFile | None]:
        """Run fetch-decode-parse units concurrently.

        Returns:
            One slot per candidate, in candidate order; None for skipped or
            unfinished manifests
        """
        results: list[DependencyFile | None] = [None] * len(candidates)
        if not candidates:
            return results

        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(candidates)),
            thread_name_prefix="repolyzer-manifest",
        )
        futures: dict[Future[DependencyFile | None], int] = {
            executor.submit(self._process_one, owner, repo, candidate): index
            for index, candidate in enumerate(candidates)
        }
        pending = set(futures)

        try:
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    logger.warning(
                        "Dependency analysis cancelled; %d manifest(s) unfinished",
                        len(pending),
                    )
                    break

                wait_for = _POLL_INTERVAL if cancel_event is not None else None
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        logger.warning(
                            "Dependency analysis timed out after %ss; %d manifest(s) unfinished",
                            self.timeout,
                            len(pending),
                        )
                        break
                    wait_for = remaining if wait_for is None else min(wait_for, remaining)

                done, pending = wait(pending, timeout=wait_for, return_when=FIRST_COMPLETED)
                for future in done:
                    candidate = candidates[futures[future]]
                    try:
                        results[futures[future]] = future.result()
                    except Exception as e:
                        logger.debug("Skipping %s: %s", candidate.path, e)
        finally:
            executor.shutdown(wait=not pending, cancel_futures=True)

        return results

    def _process_one(
        self,
        owner: str,
        repo: str,
        candidate: ManifestCandidate,
    ) -> DependencyFile | None:
        """Fetch, decode and parse a single manifest."""
        try:
            content = self.fetcher.get_file_content(owner, repo, candidate.path)
        except Exception as e:
            logger.debug("Skipping %s: fetch failed: %s", candidate.path, e)
            return None

        try:
            raw = decode_content(content)
        except (TypeError, ValueError) as e:
            logger.debug("Skipping %s: %s", candidate.path, e)
            return None

        deps, ecosystem = parse_manifest(candidate.ecosystem, raw)
        if not deps:
            logger.debug("Dropping %s: no dependencies parsed", candidate.path)
            return None

        logger.debug("Parsed %s: %d %s dependencies", candidate.path, len(deps), ecosystem.value)
        return DependencyFile(path=candidate.path, ecosystem=ecosystem, dependencies=tuple(deps))
