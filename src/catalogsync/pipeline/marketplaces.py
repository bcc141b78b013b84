"""Marketplace pipeline: search, star gate, fetch, validate, reconcile."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003

from loguru import logger
from prefect import flow

from catalogsync.clients.github import GitHubClient  # noqa: TC001
from catalogsync.discovery.content import fetch_candidates
from catalogsync.discovery.quality import apply_quality_gate, quality_repos
from catalogsync.discovery.search import MARKETPLACE_QUERIES, search_code_files, unique_repos
from catalogsync.discovery.stars import batch_fetch_stars
from catalogsync.errors import StoreError
from catalogsync.models.records import MarketplaceRecord
from catalogsync.models.run import RunSummary  # noqa: TC001
from catalogsync.pipeline.report import RunTracker, unknown_star_repos
from catalogsync.settings import Settings  # noqa: TC001
from catalogsync.storage.records import RecordStore, plan_reconcile, reconcile
from catalogsync.validation.marketplace import validate_marketplaces


@flow(name="catalogsync-marketplaces", timeout_seconds=1800, validate_parameters=False)
async def run_marketplace_pipeline(
    settings: Settings,
    github: GitHubClient,
    store: RecordStore,
    *,
    quality_threshold: int | None = None,
    dry_run: bool = False,
    limit: int | None = None,
    queries: Sequence[str] = MARKETPLACE_QUERIES,
) -> RunSummary:
    """Discover marketplaces and reconcile them into ``marketplaces.json``.

    Search failures (missing credentials, rate limits) abort the run.  A
    failed write raises :class:`StoreError` carrying the computed summary.
    """

    threshold = settings.quality_threshold if quality_threshold is None else quality_threshold
    tracker = RunTracker(kind="marketplaces", dry_run=dry_run)
    summary = tracker.summary

    hits = await search_code_files(
        github, queries, per_page=settings.search_per_page, max_pages=settings.search_max_pages
    )
    summary.discovered = len(hits)
    if limit is not None:
        kept = set(unique_repos(hits)[:limit])
        hits = [hit for hit in hits if hit.repo in kept]

    repos = unique_repos(hits)
    summary.repos = len(repos)
    stars = await batch_fetch_stars(github, repos, settings)
    summary.quality_repos = len(quality_repos(repos, stars, threshold))
    gated = apply_quality_gate(hits, stars, threshold)
    logger.info("{} of {} repos have at least {} stars", summary.quality_repos, len(repos), threshold)

    fetched = await fetch_candidates(github, gated, settings=settings)
    summary.fetched = len(fetched.contents)
    tracker.add_fetch_failures(fetched.failures)

    results, unresolved = await validate_marketplaces(github, fetched.contents, settings=settings, now=tracker.now)
    tracker.add_validation_failures(results)

    records: list[MarketplaceRecord] = []
    for result in results:
        if not result.valid or not isinstance(result.record, MarketplaceRecord):
            continue
        record = result.record
        record.stars = stars.get(record.repo)
        record.stars_fetched_at = tracker.now if record.stars is not None else None
        records.append(record)
    summary.validated = len(records)

    unknown = unknown_star_repos(repos, stars)
    unknown.update(repo for repo, _ in fetched.unresolved)
    unknown.update(repo for repo, _ in unresolved)
    scope = {repo for repo in repos if repo not in unknown}
    if unknown:
        logger.warning("Leaving {} repos with unknown state out of the prune scope", len(unknown))

    try:
        if dry_run:
            merge = plan_reconcile(store, MarketplaceRecord, records, scope, now=tracker.now)
        else:
            merge = reconcile(store, MarketplaceRecord, records, scope, now=tracker.now)
    except StoreError as exc:
        exc.summary = tracker.finish(github, settings.error_sample_size)
        raise

    summary.apply_merge(merge)
    return tracker.finish(github, settings.error_sample_size)
