"""catalogsync CLI."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import typer
from filelock import FileLock, Timeout
from loguru import logger
from rich.console import Console
from rich.table import Table

from catalogsync.clients.github import GitHubClient
from catalogsync.clients.http import create_http_client, request_context
from catalogsync.errors import CatalogSyncError, StoreError
from catalogsync.models.records import MarketplaceRecord, SkillRecord, SkillRepoRecord
from catalogsync.pipeline.marketplaces import run_marketplace_pipeline
from catalogsync.pipeline.skills import run_skills_pipeline
from catalogsync.settings import Settings
from catalogsync.storage.blob import create_blob_store
from catalogsync.storage.records import RecordStore

if TYPE_CHECKING:
    from catalogsync.models.records import CatalogRecord
    from catalogsync.models.run import RunSummary

PipelineName = Literal["marketplaces", "skills"]

app = typer.Typer(help="Discover Claude Code plugin marketplaces and skills on GitHub")
console = Console()

LIMIT_OPTION = typer.Option(None, "--limit", min=1, help="Process at most N repositories from search")
DRY_RUN_OPTION = typer.Option(False, "--dry-run", help="Run every stage but do not write records")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")
MIN_STARS_OPTION = typer.Option(None, "--min-stars", min=0, help="Star threshold for the quality gate")
DATA_DIR_OPTION = typer.Option(None, "--data-dir", help="Directory of the local record store")
QUERY_OPTION = typer.Option(None, "--query", "-q", help="Code search query to run instead of the defaults (repeatable)")

TOP_MODELS: dict[str, type[CatalogRecord]] = {
    "marketplaces": MarketplaceRecord,
    "skills": SkillRecord,
    "skill-repos": SkillRepoRecord,
}


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def _settings_from_args(data_dir: Path | None = None, min_stars: int | None = None) -> Settings:
    settings = Settings()
    if data_dir is not None:
        settings.data_dir = data_dir
    if min_stars is not None:
        settings.quality_threshold = min_stars
    return settings


async def _run_pipelines(
    settings: Settings,
    names: list[PipelineName],
    *,
    limit: int | None,
    dry_run: bool,
    queries: list[str] | None = None,
) -> tuple[list[RunSummary], list[str]]:
    store = RecordStore(create_blob_store(settings))
    ctx = request_context(settings)
    summaries: list[RunSummary] = []
    failures: list[str] = []

    async with await create_http_client(settings) as client:
        github = GitHubClient(client, ctx)
        for name in names:
            pipeline = run_marketplace_pipeline if name == "marketplaces" else run_skills_pipeline
            options: dict[str, Any] = {"dry_run": dry_run, "limit": limit}
            if queries:
                options["queries"] = queries
            try:
                summaries.append(await pipeline.fn(settings, github, store, **options))
            except StoreError as exc:
                logger.error("{} run could not persist its records: {}", name, exc)
                if exc.summary is not None:
                    summaries.append(exc.summary)
                failures.append(f"{name}: {exc}")
            except CatalogSyncError as exc:
                logger.error("{} run failed: {}", name, exc)
                failures.append(f"{name}: {exc}")

    return summaries, failures


def _print_summary(summary: RunSummary) -> None:
    title = f"{summary.kind} run" + (" (dry run)" if summary.dry_run else "")
    table = Table(title=title)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for key in ("discovered", "repos", "quality_repos", "fetched", "validated", "added", "updated", "removed", "total"):
        table.add_row(key, str(getattr(summary, key)))
    if summary.skill_repos is not None:
        repos = summary.skill_repos
        table.add_row("skill_repos", f"+{repos.added} ~{repos.updated} -{repos.removed} ({repos.total} total)")
    table.add_row("failed", str(summary.failed_count))
    table.add_row("rate_limited_pct", f"{summary.rate_limited_pct:.1f}")
    table.add_row("duration_ms", str(summary.duration_ms))
    console.print(table)

    for sample in summary.errors:
        console.print(f"[yellow]{sample.stage}[/yellow] {sample.item}: {'; '.join(sample.errors)}")


def _execute(
    names: list[PipelineName],
    *,
    limit: int | None,
    dry_run: bool,
    settings: Settings,
    queries: list[str] | None = None,
) -> None:
    def _run() -> tuple[list[RunSummary], list[str]]:
        return asyncio.run(_run_pipelines(settings, names, limit=limit, dry_run=dry_run, queries=queries))

    try:
        if settings.store_backend == "local":
            lock_path = settings.data_dir / ".catalogsync.lock"
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            with FileLock(str(lock_path), timeout=10):
                summaries, failures = _run()
        else:
            summaries, failures = _run()
    except Timeout:
        console.print("[red]Another catalogsync run holds the data directory lock.[/red]")
        raise typer.Exit(code=1) from None
    except CatalogSyncError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    for summary in summaries:
        _print_summary(summary)
    if failures:
        for failure in failures:
            console.print(f"[red]{failure}[/red]")
        raise typer.Exit(code=1)


@app.command("marketplaces")
def marketplaces(
    limit: int | None = LIMIT_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    verbose: bool = VERBOSE_OPTION,
    min_stars: int | None = MIN_STARS_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
    query: list[str] | None = QUERY_OPTION,
) -> None:
    """Discover and reconcile plugin marketplaces."""

    _configure_logging(verbose)
    _execute(
        ["marketplaces"],
        limit=limit,
        dry_run=dry_run,
        settings=_settings_from_args(data_dir, min_stars),
        queries=query,
    )


@app.command("skills")
def skills(
    limit: int | None = LIMIT_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    verbose: bool = VERBOSE_OPTION,
    min_stars: int | None = MIN_STARS_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
    query: list[str] | None = QUERY_OPTION,
) -> None:
    """Discover and reconcile skills and their repository summaries."""

    _configure_logging(verbose)
    _execute(
        ["skills"], limit=limit, dry_run=dry_run, settings=_settings_from_args(data_dir, min_stars), queries=query
    )


@app.command("all")
def run_all(
    limit: int | None = LIMIT_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    verbose: bool = VERBOSE_OPTION,
    min_stars: int | None = MIN_STARS_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Run the marketplace pipeline, then the skills pipeline."""

    _configure_logging(verbose)
    _execute(
        ["marketplaces", "skills"], limit=limit, dry_run=dry_run, settings=_settings_from_args(data_dir, min_stars)
    )


@app.command("top")
def top(
    kind: str = typer.Argument("marketplaces", help="marketplaces, skills or skill-repos"),
    count: int = typer.Option(10, "--count", "-n", min=1),
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Show the most-starred stored records."""

    model = TOP_MODELS.get(kind)
    if model is None:
        raise typer.BadParameter(f"Unknown record kind {kind!r}; expected one of {', '.join(TOP_MODELS)}")

    settings = _settings_from_args(data_dir)
    try:
        records = RecordStore(create_blob_store(settings)).read(model)
    except CatalogSyncError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    ranked = sorted(records, key=lambda record: record.stars or 0, reverse=True)[:count]
    table = Table(title=f"Top {len(ranked)} {kind} by stars")
    table.add_column("Key")
    table.add_column("Stars", justify="right")
    table.add_column("Description")
    for record in ranked:
        stars = "-" if record.stars is None else str(record.stars)
        table.add_row(record.key, stars, record.description)
    console.print(table)


if __name__ == "__main__":
    app()
