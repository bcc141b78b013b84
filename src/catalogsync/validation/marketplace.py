"""Validate ``.claude-plugin/marketplace.json`` candidates."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from catalogsync.clients.executor import settle_all, with_retry
from catalogsync.models.records import MarketplaceRecord
from catalogsync.models.run import ValidationResult
from catalogsync.utils.parsing import repo_to_slug
from catalogsync.validation.plugins import DEFAULT_CATEGORY, aggregate_plugin_keywords, extract_plugins
from catalogsync.validation.schemas import MarketplaceManifest, format_validation_errors

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.clients.github import GitHubClient
    from catalogsync.models.catalog import CandidateContent, RepoMetadata
    from catalogsync.settings import Settings


def _invalid(content: CandidateContent, *errors: str) -> ValidationResult:
    return ValidationResult(repo=content.repo, path=content.path, valid=False, errors=list(errors))


def collect_categories(manifest: MarketplaceManifest) -> list[str]:
    """Lowercased plugin categories in first-seen order, ``["community"]`` when none are set."""

    categories: list[str] = []
    for plugin in manifest.plugins:
        if plugin.category:
            category = plugin.category.lower()
            if category not in categories:
                categories.append(category)
    return categories or [DEFAULT_CATEGORY]


def check_plugins(manifest: MarketplaceManifest) -> list[str]:
    return [
        f"Plugin {plugin.name or 'unknown'} missing required fields"
        for plugin in manifest.plugins
        if not plugin.name or not plugin.source_path
    ]


async def _repo_metadata(github: GitHubClient, repo: str, settings: Settings | None) -> RepoMetadata | None:
    if settings is None:
        return await github.get_repo(repo)
    return await with_retry(
        lambda: github.get_repo(repo),
        max_retries=settings.content_max_retries,
        base_delay=settings.content_retry_base_delay,
        max_delay=settings.content_retry_max_delay,
        label=f"metadata for {repo}",
    )


async def validate_marketplace(
    github: GitHubClient,
    content: CandidateContent,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> ValidationResult:
    """Check one marketplace document and build its record.

    A rate limit that outlasts its retries while checking the repository
    propagates; the caller treats that candidate as unresolved.
    """

    try:
        document = json.loads(content.text)
    except json.JSONDecodeError:
        return _invalid(content, "Invalid JSON format")

    try:
        manifest = MarketplaceManifest.model_validate(document)
    except ValidationError as exc:
        return _invalid(content, f"Invalid marketplace.json schema: {format_validation_errors(exc)}")

    metadata = await _repo_metadata(github, content.repo, settings)
    if metadata is None or metadata.private:
        return _invalid(content, f"Repository {content.repo} is not publicly accessible")

    description = manifest.description or (manifest.metadata.description if manifest.metadata else None)
    if not description:
        description = metadata.description or ""

    plugin_errors = check_plugins(manifest)
    if plugin_errors:
        return _invalid(content, *plugin_errors)

    now = now or datetime.now(UTC)
    plugins = extract_plugins(content.repo, manifest)
    record = MarketplaceRecord(
        repo=content.repo,
        slug=repo_to_slug(content.repo),
        description=description,
        plugin_count=len(manifest.plugins),
        categories=collect_categories(manifest),
        plugin_keywords=aggregate_plugin_keywords(plugins),
        discovered_at=now,
        last_updated=now,
        origin="auto",
    )
    return ValidationResult(repo=content.repo, path=content.path, valid=True, record=record)


async def validate_marketplaces(
    github: GitHubClient,
    contents: Sequence[CandidateContent],
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> tuple[list[ValidationResult], set[tuple[str, str]]]:
    """Validate every document concurrently.

    Returns the results of the documents that settled plus the keys of those
    whose validation raised.
    """

    async def _validate(content: CandidateContent) -> ValidationResult:
        return await validate_marketplace(github, content, settings=settings, now=now)

    results: list[ValidationResult] = []
    unresolved: set[tuple[str, str]] = set()
    for settled in await settle_all(contents, _validate):
        content = settled.item
        if settled.error is not None:
            logger.warning("Validation of {} raised: {}", content.repo, settled.error)
            unresolved.add((content.repo, content.path))
            results.append(_invalid(content, f"Validation failed for {content.repo}: {settled.error}"))
            continue
        results.append(settled.value)

    valid = sum(1 for result in results if result.valid)
    logger.info("Validated {}/{} marketplaces", valid, len(contents))
    return results, unresolved
