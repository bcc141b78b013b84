"""Code-search discovery of marketplace and skill marker files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.clients.github import GitHubClient
    from catalogsync.models.catalog import DiscoveryHit

MARKETPLACE_QUERIES = ("filename:marketplace.json path:.claude-plugin",)
SKILL_QUERIES = (
    "filename:SKILL.md path:skills",
    "filename:SKILL.md path:.claude/skills",
)

# GitHub serves at most 1000 results per query (10 pages x 100).
DEFAULT_PER_PAGE = 100
DEFAULT_MAX_PAGES = 10


async def _search_one_query(
    github: GitHubClient,
    query: str,
    *,
    per_page: int,
    max_pages: int,
) -> list[DiscoveryHit]:
    """Page through one query until it runs dry, reaches total_count or the result window."""

    hits: list[DiscoveryHit] = []
    total_count = 0
    for page in range(1, max_pages + 1):
        result = await github.search_code(query, page=page, per_page=per_page)
        if page == 1:
            total_count = result.total_count
            logger.info("Query {!r}: GitHub reports {} total results", query, total_count)

        hits.extend(result.items)

        if len(result.items) < per_page:
            break
        if len(hits) >= total_count:
            break
    else:
        if len(hits) < total_count:
            logger.info(
                "Query {!r}: stopped at the {}-page result window ({} of {} results)",
                query,
                max_pages,
                len(hits),
                total_count,
            )

    return hits


def dedupe_hits(hits: Sequence[DiscoveryHit]) -> list[DiscoveryHit]:
    """Drop repeated ``(repo, path)`` pairs, keeping first-seen order."""

    seen: set[tuple[str, str]] = set()
    unique: list[DiscoveryHit] = []
    for hit in hits:
        if hit.key in seen:
            continue
        seen.add(hit.key)
        unique.append(hit)
    return unique


def unique_repos(hits: Sequence[DiscoveryHit]) -> list[str]:
    """Distinct repositories among hits, in first-seen order."""

    return list(dict.fromkeys(hit.repo for hit in hits))


async def search_code_files(
    github: GitHubClient,
    queries: Sequence[str],
    *,
    per_page: int = DEFAULT_PER_PAGE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[DiscoveryHit]:
    """Run every query variant and return deduplicated hits.

    Rate-limit responses are not retried here: they propagate as
    :class:`~catalogsync.errors.RateLimitedError` and abort the run.
    """

    all_hits: list[DiscoveryHit] = []
    for query in queries:
        all_hits.extend(await _search_one_query(github, query, per_page=per_page, max_pages=max_pages))

    unique = dedupe_hits(all_hits)
    logger.info("Found {} marker files on GitHub (deduped from {})", len(unique), len(all_hits))
    return unique
