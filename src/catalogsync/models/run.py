"""Per-item validation results and per-run reports."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Literal

from pydantic import BaseModel, Field

from catalogsync.models.records import MarketplaceRecord, SkillRecord  # noqa: TC001

PipelineKind = Literal["marketplaces", "skills"]


class ValidationResult(BaseModel):
    """Outcome of validating one candidate file."""

    repo: str
    path: str
    valid: bool
    record: MarketplaceRecord | SkillRecord | None = None
    errors: list[str] = Field(default_factory=list)


class MergeResult(BaseModel):
    """Counts returned by a reconcile."""

    added: int = 0
    updated: int = 0
    removed: int = 0
    total: int = 0


class FailureSample(BaseModel):
    """One failed item as reported to operators."""

    stage: Literal["fetch", "validate"]
    item: str
    errors: list[str]


class RunSummary(BaseModel):
    """What a pipeline run did, stage by stage."""

    kind: PipelineKind
    discovered: int = 0
    repos: int = 0
    quality_repos: int = 0
    fetched: int = 0
    validated: int = 0
    added: int = 0
    updated: int = 0
    removed: int = 0
    total: int = 0
    failed_count: int = 0
    errors: list[FailureSample] = Field(default_factory=list)
    skill_repos: MergeResult | None = None
    rate_limited_pct: float = 0.0
    dry_run: bool = False
    duration_ms: int = 0
    timestamp: datetime

    def apply_merge(self, result: MergeResult) -> None:
        self.added = result.added
        self.updated = result.updated
        self.removed = result.removed
        self.total = result.total
