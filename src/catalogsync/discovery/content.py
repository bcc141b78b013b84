"""Fetch candidate file contents with a fixed main/master branch fallback."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from catalogsync.clients.executor import settle_all, with_retry
from catalogsync.models.catalog import CandidateContent, Found

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.clients.github import GitHubClient
    from catalogsync.models.catalog import ContentResult, DiscoveryHit
    from catalogsync.settings import Settings

DEFAULT_BRANCH = "main"
ALTERNATE_BRANCHES = {"main": "master", "master": "main"}


@dataclass
class FetchOutcome:
    """Contents that were fetched plus what happened to the rest."""

    contents: list[CandidateContent] = field(default_factory=list)
    failures: dict[tuple[str, str], str] = field(default_factory=dict)
    # Hits whose fetch raised (rate limit exhausted): state unknown, not pruned.
    unresolved: set[tuple[str, str]] = field(default_factory=set)


async def _get_file(github: GitHubClient, repo: str, path: str, ref: str, settings: Settings | None) -> ContentResult:
    if settings is None:
        return await github.get_file(repo, path, ref=ref)
    return await with_retry(
        lambda: github.get_file(repo, path, ref=ref),
        max_retries=settings.content_max_retries,
        base_delay=settings.content_retry_base_delay,
        max_delay=settings.content_retry_max_delay,
        label=f"{repo}/{path}@{ref}",
    )


async def fetch_file(
    github: GitHubClient,
    repo: str,
    path: str,
    branch: str = DEFAULT_BRANCH,
    *,
    settings: Settings | None = None,
) -> ContentResult:
    """Fetch ``path`` from ``branch``, trying the other conventional branch once on failure."""

    result = await _get_file(github, repo, path, branch, settings)
    if isinstance(result, Found):
        return result

    alternate = ALTERNATE_BRANCHES.get(branch)
    if alternate is None:
        return result

    fallback = await _get_file(github, repo, path, alternate, settings)
    if not isinstance(fallback, Found):
        logger.debug("Skipping {}/{}: not accessible on {} or {} ({})", repo, path, branch, alternate, fallback.reason)
    return fallback


async def fetch_candidates(
    github: GitHubClient,
    hits: Sequence[DiscoveryHit],
    *,
    settings: Settings | None = None,
) -> FetchOutcome:
    """Fetch every hit concurrently; failures are recorded per item, never raised."""

    async def _fetch(hit: DiscoveryHit) -> ContentResult:
        return await fetch_file(github, hit.repo, hit.path, settings=settings)

    outcome = FetchOutcome()
    for settled in await settle_all(hits, _fetch):
        hit = settled.item
        if settled.error is not None:
            logger.warning("Fetching {}/{} failed: {}", hit.repo, hit.path, settled.error)
            outcome.failures[hit.key] = f"Could not fetch {hit.path} from {hit.repo}: {settled.error}"
            outcome.unresolved.add(hit.key)
            continue

        result = settled.value
        if isinstance(result, Found):
            outcome.contents.append(CandidateContent(repo=hit.repo, path=hit.path, text=result.text))
        elif result is not None:
            outcome.failures[hit.key] = f"Could not fetch {hit.path} from {hit.repo}: {result.reason}"

    logger.info("Fetched {}/{} files", len(outcome.contents), len(hits))
    return outcome
