"""Pydantic models."""

from .catalog import (
    CandidateContent,
    ContentResult,
    DiscoveryHit,
    Found,
    Inaccessible,
    NotFound,
    RepoMetadata,
    SearchPage,
)
from .records import CatalogRecord, MarketplaceRecord, PluginRecord, SkillRecord, SkillRepoRecord
from .run import FailureSample, MergeResult, RunSummary, ValidationResult

__all__ = [
    "CandidateContent",
    "CatalogRecord",
    "ContentResult",
    "DiscoveryHit",
    "FailureSample",
    "Found",
    "Inaccessible",
    "MarketplaceRecord",
    "MergeResult",
    "NotFound",
    "PluginRecord",
    "RepoMetadata",
    "RunSummary",
    "SearchPage",
    "SkillRecord",
    "SkillRepoRecord",
    "ValidationResult",
]
