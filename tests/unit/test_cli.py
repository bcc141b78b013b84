"""Tests for CLI module."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from catalogsync.cli import _settings_from_args, app
from catalogsync.errors import StoreError
from catalogsync.models.records import MarketplaceRecord, SkillRepoRecord
from catalogsync.models.run import FailureSample, MergeResult, RunSummary
from catalogsync.storage.blob import LocalBlobStore
from catalogsync.storage.records import RecordStore
from tests.factories import make_marketplace, make_skill_repo

runner = CliRunner()


def _summary(kind: str = "marketplaces", **overrides) -> RunSummary:
    defaults = {"kind": kind, "discovered": 3, "validated": 1, "added": 1, "total": 1, "timestamp": datetime.now(UTC)}
    defaults.update(overrides)
    return RunSummary(**defaults)


def test_settings_from_args_defaults() -> None:
    s = _settings_from_args()
    assert s.data_dir == Path("./data")
    assert s.quality_threshold == 5


def test_settings_from_args_overrides(tmp_path: Path) -> None:
    s = _settings_from_args(data_dir=tmp_path, min_stars=0)
    assert s.data_dir == tmp_path
    assert s.quality_threshold == 0


def test_marketplaces_command_prints_summary(tmp_path: Path) -> None:
    summary = _summary(errors=[FailureSample(stage="validate", item="o/r/x.json", errors=["Invalid JSON format"])])
    mock_run = AsyncMock(return_value=([summary], []))

    with patch("catalogsync.cli._run_pipelines", mock_run):
        result = runner.invoke(app, ["marketplaces", "--data-dir", str(tmp_path), "--limit", "5", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "marketplaces run" in result.output
    assert "Invalid JSON format" in result.output
    args, kwargs = mock_run.call_args
    assert args[1] == ["marketplaces"]
    assert kwargs["limit"] == 5
    assert kwargs["dry_run"] is True
    assert not kwargs["queries"]
    assert (tmp_path / ".catalogsync.lock").exists()


def test_query_option_is_repeatable(tmp_path: Path) -> None:
    mock_run = AsyncMock(return_value=([_summary("skills")], []))

    with patch("catalogsync.cli._run_pipelines", mock_run):
        result = runner.invoke(
            app, ["skills", "--data-dir", str(tmp_path), "--query", "filename:SKILL.md", "-q", "path:skills"]
        )

    assert result.exit_code == 0, result.output
    assert list(mock_run.call_args.kwargs["queries"]) == ["filename:SKILL.md", "path:skills"]


def test_all_command_runs_both_pipelines(tmp_path: Path) -> None:
    skills_summary = _summary("skills", skill_repos=MergeResult(added=1, total=1))
    mock_run = AsyncMock(return_value=([_summary(), skills_summary], []))

    with patch("catalogsync.cli._run_pipelines", mock_run):
        result = runner.invoke(app, ["all", "--data-dir", str(tmp_path), "--min-stars", "10"])

    assert result.exit_code == 0, result.output
    settings, names = mock_run.call_args.args
    assert names == ["marketplaces", "skills"]
    assert settings.quality_threshold == 10
    assert "skill_repos" in result.output


def test_pipeline_failure_exits_nonzero(tmp_path: Path) -> None:
    mock_run = AsyncMock(return_value=([], ["skills: GitHub API rate limit exceeded (HTTP 403)"]))

    with patch("catalogsync.cli._run_pipelines", mock_run):
        result = runner.invoke(app, ["skills", "--data-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "rate limit" in result.output


def test_store_error_exits_nonzero(tmp_path: Path) -> None:
    mock_run = AsyncMock(side_effect=StoreError("Could not write skills.json"))

    with patch("catalogsync.cli._run_pipelines", mock_run):
        result = runner.invoke(app, ["skills", "--data-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "Could not write" in result.output


def test_missing_token_exits_nonzero(tmp_path: Path) -> None:
    result = runner.invoke(app, ["marketplaces", "--data-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "GITHUB_TOKEN" in result.output


def test_top_lists_by_stars(tmp_path: Path) -> None:
    store = RecordStore(LocalBlobStore(tmp_path))
    store.write(
        MarketplaceRecord,
        [
            make_marketplace("low/stars", stars=1),
            make_marketplace("high/stars", stars=99),
            make_marketplace("no/stars"),
        ],
    )

    result = runner.invoke(app, ["top", "marketplaces", "--data-dir", str(tmp_path), "-n", "2"])

    assert result.exit_code == 0, result.output
    assert result.output.index("high/stars") < result.output.index("low/stars")
    assert "no/stars" not in result.output


def test_top_skill_repos(tmp_path: Path) -> None:
    RecordStore(LocalBlobStore(tmp_path)).write(SkillRepoRecord, [make_skill_repo("o/r", stars=5)])

    result = runner.invoke(app, ["top", "skill-repos", "--data-dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "o/r" in result.output


@pytest.mark.parametrize("kind", ["plugins", "everything"])
def test_top_rejects_unknown_kind(tmp_path: Path, kind: str) -> None:
    result = runner.invoke(app, ["top", kind, "--data-dir", str(tmp_path)])
    assert result.exit_code != 0
