"""Star-threshold quality gate, applied before any content is fetched."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from catalogsync.models.catalog import DiscoveryHit

DEFAULT_THRESHOLD = 5


def passes_quality(repo: str, stars: Mapping[str, int | None], threshold: int = DEFAULT_THRESHOLD) -> bool:
    """A repository passes when its star count (missing counts as zero) reaches ``threshold``."""

    return (stars.get(repo) or 0) >= threshold


def quality_repos(
    repos: Sequence[str], stars: Mapping[str, int | None], threshold: int = DEFAULT_THRESHOLD
) -> list[str]:
    return [repo for repo in repos if passes_quality(repo, stars, threshold)]


def apply_quality_gate(
    hits: Sequence[DiscoveryHit], stars: Mapping[str, int | None], threshold: int = DEFAULT_THRESHOLD
) -> list[DiscoveryHit]:
    """Keep hits whose repository passes the gate, in input order."""

    return [hit for hit in hits if passes_quality(hit.repo, stars, threshold)]
