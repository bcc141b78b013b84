"""Skills pipeline: search, star gate, fetch, validate, aggregate, reconcile."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003

from loguru import logger
from prefect import flow

from catalogsync.clients.github import GitHubClient  # noqa: TC001
from catalogsync.discovery.content import fetch_candidates
from catalogsync.discovery.quality import apply_quality_gate, quality_repos
from catalogsync.discovery.search import SKILL_QUERIES, search_code_files, unique_repos
from catalogsync.discovery.stars import batch_fetch_stars
from catalogsync.errors import StoreError
from catalogsync.models.records import SkillRecord, SkillRepoRecord
from catalogsync.models.run import RunSummary  # noqa: TC001
from catalogsync.pipeline.aggregate import aggregate_skill_repos
from catalogsync.pipeline.report import RunTracker, unknown_star_repos
from catalogsync.settings import Settings  # noqa: TC001
from catalogsync.storage.records import RecordStore, plan_reconcile, reconcile
from catalogsync.utils.parsing import skill_id
from catalogsync.validation.skill import validate_skills


@flow(name="catalogsync-skills", timeout_seconds=1800, validate_parameters=False)
async def run_skills_pipeline(
    settings: Settings,
    github: GitHubClient,
    store: RecordStore,
    *,
    quality_threshold: int | None = None,
    dry_run: bool = False,
    limit: int | None = None,
    queries: Sequence[str] = SKILL_QUERIES,
) -> RunSummary:
    """Discover skills, reconcile ``skills.json`` and then ``skill-repos.json``.

    ``limit`` caps the number of repositories; every hit of a kept repo is
    processed.
    """

    threshold = settings.quality_threshold if quality_threshold is None else quality_threshold
    tracker = RunTracker(kind="skills", dry_run=dry_run)
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
    logger.info("{} skill files in {} repos with at least {} stars", len(gated), summary.quality_repos, threshold)

    fetched = await fetch_candidates(github, gated, settings=settings)
    summary.fetched = len(fetched.contents)
    tracker.add_fetch_failures(fetched.failures)

    results = validate_skills(fetched.contents, stars, now=tracker.now)
    tracker.add_validation_failures(results)
    skills = [result.record for result in results if result.valid and isinstance(result.record, SkillRecord)]
    summary.validated = len(skills)
    logger.info("Validated {}/{} skills", len(skills), len(fetched.contents))

    skill_repos = aggregate_skill_repos(skills, stars, now=tracker.now)

    star_unknown = unknown_star_repos(repos, stars)
    skill_scope = {
        skill_id(hit.repo, hit.path)
        for hit in hits
        if hit.repo not in star_unknown and hit.key not in fetched.unresolved
    }
    unknown_repos = star_unknown | {repo for repo, _ in fetched.unresolved}
    repo_scope = {repo for repo in repos if repo not in unknown_repos}

    merge_fn = plan_reconcile if dry_run else reconcile
    try:
        skills_merge = merge_fn(store, SkillRecord, skills, skill_scope, now=tracker.now)
        summary.apply_merge(skills_merge)
        summary.skill_repos = merge_fn(store, SkillRepoRecord, skill_repos, repo_scope, now=tracker.now)
    except StoreError as exc:
        exc.summary = tracker.finish(github, settings.error_sample_size)
        raise

    return tracker.finish(github, settings.error_sample_size)
