"""Run bookkeeping shared by both pipelines."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger

from catalogsync.models.run import FailureSample, PipelineKind, RunSummary

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from catalogsync.clients.github import GitHubClient
    from catalogsync.models.run import ValidationResult


@dataclass
class RunTracker:
    """Collects stage counts and failures while a pipeline runs."""

    kind: PipelineKind
    dry_run: bool = False
    now: datetime = field(default_factory=lambda: datetime.now(UTC))
    failures: list[FailureSample] = field(default_factory=list)
    _started: float = field(default_factory=time.monotonic, repr=False)

    def __post_init__(self) -> None:
        self.summary = RunSummary(kind=self.kind, dry_run=self.dry_run, timestamp=self.now)

    def add_fetch_failures(self, failures: Mapping[tuple[str, str], str]) -> None:
        for (repo, path), reason in failures.items():
            self.failures.append(FailureSample(stage="fetch", item=f"{repo}/{path}", errors=[reason]))

    def add_validation_failures(self, results: Iterable[ValidationResult]) -> None:
        for result in results:
            if not result.valid:
                self.failures.append(
                    FailureSample(stage="validate", item=f"{result.repo}/{result.path}", errors=result.errors)
                )

    def finish(self, github: GitHubClient, sample_size: int) -> RunSummary:
        """Fill in failure samples, timings and the rate-limit share; return the summary."""

        summary = self.summary
        summary.failed_count = len(self.failures)
        summary.errors = self.failures[:sample_size]
        summary.rate_limited_pct = round(github.monitor.rate_limited_percent, 2)
        summary.duration_ms = int((time.monotonic() - self._started) * 1000)
        logger.info(
            "{} run finished in {}ms: {} discovered, {} validated, +{} ~{} -{} ({} total), {} failed",
            self.kind,
            summary.duration_ms,
            summary.discovered,
            summary.validated,
            summary.added,
            summary.updated,
            summary.removed,
            summary.total,
            summary.failed_count,
        )
        return summary


def unknown_star_repos(repos: Iterable[str], stars: Mapping[str, int | None]) -> set[str]:
    """Repositories whose star fetch failed; their state is unknown this run."""

    return {repo for repo in repos if stars.get(repo) is None}
