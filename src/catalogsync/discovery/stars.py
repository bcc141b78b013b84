"""GitHub star counts, fetched per repository under their own pacing."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from loguru import logger

from catalogsync.clients.executor import batch_execute, with_retry
from catalogsync.errors import CatalogSyncError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.clients.github import GitHubClient
    from catalogsync.settings import Settings

type StarMap = dict[str, int | None]


async def fetch_stars(github: GitHubClient, repo: str, settings: Settings) -> int | None:
    """Return the repository's star count, or None if it could not be fetched."""

    try:
        metadata = await with_retry(
            lambda: github.get_repo(repo),
            max_retries=settings.stars_max_retries,
            base_delay=settings.stars_retry_base_delay,
            max_delay=settings.stars_retry_max_delay,
            label=f"stars for {repo}",
        )
    except (CatalogSyncError, httpx.HTTPError) as exc:
        logger.error("Could not fetch stars for {}: {}", repo, exc)
        return None

    if metadata is None:
        logger.error("Could not fetch stars for {}: repository not accessible", repo)
        return None
    return metadata.stargazers_count


async def batch_fetch_stars(github: GitHubClient, repos: Sequence[str], settings: Settings) -> StarMap:
    """Fetch stars for every repository, ``concurrency`` at a time with a pause between batches."""

    async def _one(repo: str) -> int | None:
        return await fetch_stars(github, repo, settings)

    settled = await batch_execute(
        repos,
        _one,
        concurrency=settings.stars_concurrency,
        delay_between_batches=settings.stars_batch_delay,
    )

    star_map: StarMap = {}
    for outcome in settled:
        if outcome.error is not None:
            logger.error("Failed to fetch stars for {}: {}", outcome.item, outcome.error)
        star_map[outcome.item] = outcome.value

    fetched = sum(1 for stars in star_map.values() if stars is not None)
    logger.info("Fetched stars for {}/{} repos", fetched, len(repos))
    return star_map
