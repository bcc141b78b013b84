"""Roll validated skills up into one record per repository."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from catalogsync.models.records import SkillRecord, SkillRepoRecord
from catalogsync.utils.parsing import repo_to_slug

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def group_by_repo(skills: Iterable[SkillRecord]) -> dict[str, list[SkillRecord]]:
    groups: dict[str, list[SkillRecord]] = {}
    for skill in skills:
        groups.setdefault(skill.repo, []).append(skill)
    return groups


def aggregate_skill_repos(
    skills: Iterable[SkillRecord],
    stars: Mapping[str, int | None] | None = None,
    *,
    now: datetime | None = None,
) -> list[SkillRepoRecord]:
    """One :class:`SkillRepoRecord` per repository, in first-seen order.

    Star counts come from ``stars``; a repository whose fetch failed gets no
    star fields rather than zero.
    """

    stars = stars or {}
    now = now or datetime.now(UTC)

    summaries: list[SkillRepoRecord] = []
    for repo, group in group_by_repo(skills).items():
        repo_stars = stars.get(repo)
        summaries.append(
            SkillRepoRecord(
                repo=repo,
                slug=repo_to_slug(repo),
                description=", ".join(skill.name for skill in group),
                skill_count=len(group),
                stars=repo_stars,
                stars_fetched_at=now if repo_stars is not None else None,
                discovered_at=group[0].discovered_at or now,
                last_updated=now,
                origin="auto",
            )
        )
    return summaries
