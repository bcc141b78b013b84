"""Tests for code search, content fetch and star lookups."""

from __future__ import annotations

import pytest

from catalogsync.discovery.content import fetch_candidates, fetch_file
from catalogsync.discovery.search import (
    MARKETPLACE_QUERIES,
    SKILL_QUERIES,
    dedupe_hits,
    search_code_files,
    unique_repos,
)
from catalogsync.discovery.stars import batch_fetch_stars, fetch_stars
from catalogsync.errors import ConfigurationError, RateLimitedError
from catalogsync.models.catalog import Found, Inaccessible, NotFound
from catalogsync.settings import Settings
from tests.factories import FakeGitHubAPI, github_client, make_hit


def test_queries() -> None:
    assert MARKETPLACE_QUERIES == ("filename:marketplace.json path:.claude-plugin",)
    assert SKILL_QUERIES == ("filename:SKILL.md path:skills", "filename:SKILL.md path:.claude/skills")


def test_dedupe_hits_keeps_first_seen_order() -> None:
    hits = [make_hit("a/x", "p"), make_hit("b/y", "p"), make_hit("a/x", "p"), make_hit("a/x", "q")]
    assert [hit.key for hit in dedupe_hits(hits)] == [("a/x", "p"), ("b/y", "p"), ("a/x", "q")]
    assert unique_repos(hits) == ["a/x", "b/y"]


@pytest.mark.asyncio
async def test_search_pages_until_short_page(settings: Settings, github_api: FakeGitHubAPI) -> None:
    hits = [(f"o/r{i}", "SKILL.md") for i in range(5)]
    github_api.add_search("q", hits, total_count=50)

    async with github_client(settings, github_api) as github:
        result = await search_code_files(github, ["q"], per_page=2, max_pages=10)

    assert len(result) == 5
    assert len(github_api.paths("/search/code")) == 3


@pytest.mark.asyncio
async def test_search_stops_at_total_count(settings: Settings, github_api: FakeGitHubAPI) -> None:
    hits = [(f"o/r{i}", "SKILL.md") for i in range(6)]
    github_api.add_search("q", hits, total_count=4)

    async with github_client(settings, github_api) as github:
        result = await search_code_files(github, ["q"], per_page=2, max_pages=10)

    assert len(result) == 4
    assert len(github_api.paths("/search/code")) == 2


@pytest.mark.asyncio
async def test_search_respects_result_window(settings: Settings, github_api: FakeGitHubAPI) -> None:
    hits = [(f"o/r{i}", "SKILL.md") for i in range(30)]
    github_api.add_search("q", hits, total_count=5000)

    async with github_client(settings, github_api) as github:
        result = await search_code_files(github, ["q"], per_page=2, max_pages=3)

    assert len(result) == 6
    assert len(github_api.paths("/search/code")) == 3


@pytest.mark.asyncio
async def test_search_dedupes_across_queries(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_search("one", [("o/r", "skills/a/SKILL.md"), ("o/r", "skills/b/SKILL.md")])
    github_api.add_search("two", [("o/r", "skills/a/SKILL.md"), ("x/y", ".claude/skills/c/SKILL.md")])

    async with github_client(settings, github_api) as github:
        result = await search_code_files(github, ["one", "two"])

    assert [hit.key for hit in result] == [
        ("o/r", "skills/a/SKILL.md"),
        ("o/r", "skills/b/SKILL.md"),
        ("x/y", ".claude/skills/c/SKILL.md"),
    ]


@pytest.mark.asyncio
async def test_search_rate_limit_is_not_retried(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.search_status = 403

    async with github_client(settings, github_api) as github:
        with pytest.raises(RateLimitedError):
            await search_code_files(github, ["q"])

    assert len(github_api.paths("/search/code")) == 1


@pytest.mark.asyncio
async def test_search_without_token_fails_before_network(github_api: FakeGitHubAPI) -> None:
    with pytest.raises(ConfigurationError):
        async with github_client(Settings(), github_api) as github:
            await search_code_files(github, ["q"])

    assert github_api.requests == []


@pytest.mark.asyncio
async def test_fetch_file_prefers_main(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_file("o/r", "SKILL.md", "main text", ref="main")
    github_api.add_file("o/r", "SKILL.md", "master text", ref="master")

    async with github_client(settings, github_api) as github:
        result = await fetch_file(github, "o/r", "SKILL.md")

    assert result == Found(text="main text", ref="main")
    assert len(github_api.paths("/repos/o/r/contents")) == 1


@pytest.mark.asyncio
async def test_fetch_file_falls_back_to_master(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_file("o/r", "SKILL.md", "master text", ref="master")

    async with github_client(settings, github_api) as github:
        result = await fetch_file(github, "o/r", "SKILL.md")

    assert result == Found(text="master text", ref="master")


@pytest.mark.asyncio
async def test_fetch_file_master_falls_back_to_main(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_file("o/r", "SKILL.md", "main text", ref="main")

    async with github_client(settings, github_api) as github:
        result = await fetch_file(github, "o/r", "SKILL.md", branch="master")

    assert result == Found(text="main text", ref="main")


@pytest.mark.asyncio
async def test_fetch_file_missing_everywhere(settings: Settings, github_api: FakeGitHubAPI) -> None:
    async with github_client(settings, github_api) as github:
        result = await fetch_file(github, "o/r", "SKILL.md")

    assert isinstance(result, NotFound)
    assert result.ref == "master"
    assert len(github_api.paths("/repos/o/r/contents")) == 2


@pytest.mark.asyncio
async def test_fetch_candidates_isolates_failures(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_file("a/ok", "SKILL.md", "text")
    github_api.file_statuses[("b/private", "SKILL.md")] = 500
    github_api.file_statuses[("c/limited", "SKILL.md")] = 429
    hits = [make_hit("a/ok", "SKILL.md"), make_hit("b/private", "SKILL.md"), make_hit("c/limited", "SKILL.md")]

    async with github_client(settings, github_api) as github:
        outcome = await fetch_candidates(github, hits, settings=settings)

    assert [(c.repo, c.text) for c in outcome.contents] == [("a/ok", "text")]
    assert set(outcome.failures) == {("b/private", "SKILL.md"), ("c/limited", "SKILL.md")}
    assert outcome.unresolved == {("c/limited", "SKILL.md")}
    # one initial attempt plus content_max_retries retries
    assert len(github_api.paths("/repos/c/limited/contents")) == settings.content_max_retries + 1


@pytest.mark.asyncio
async def test_inaccessible_result_carries_reason(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.file_statuses[("o/r", "SKILL.md")] = 451

    async with github_client(settings, github_api) as github:
        result = await fetch_file(github, "o/r", "SKILL.md")

    assert isinstance(result, Inaccessible)
    assert "451" in result.reason


@pytest.mark.asyncio
async def test_fetch_stars(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_repo("o/r", stars=12)

    async with github_client(settings, github_api) as github:
        assert await fetch_stars(github, "o/r", settings) == 12
        assert await fetch_stars(github, "o/missing", settings) is None


@pytest.mark.asyncio
async def test_fetch_stars_absorbs_rate_limit(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.repo_statuses["o/r"] = 429

    async with github_client(settings, github_api) as github:
        assert await fetch_stars(github, "o/r", settings) is None

    assert len(github_api.paths("/repos/o/r")) == settings.stars_max_retries + 1


@pytest.mark.asyncio
async def test_batch_fetch_stars_maps_every_repo(settings: Settings, github_api: FakeGitHubAPI) -> None:
    github_api.add_repo("a/a", stars=1)
    github_api.add_repo("b/b", stars=0)
    settings.stars_concurrency = 1

    async with github_client(settings, github_api) as github:
        stars = await batch_fetch_stars(github, ["a/a", "b/b", "c/c"], settings)

    assert stars == {"a/a": 1, "b/b": 0, "c/c": None}
