"""Validate ``SKILL.md`` candidates."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from catalogsync.models.records import SkillRecord
from catalogsync.models.run import ValidationResult
from catalogsync.utils.parsing import skill_dir, skill_dir_name, skill_id
from catalogsync.validation.frontmatter import parse_frontmatter
from catalogsync.validation.schemas import SkillFrontmatter, format_validation_errors

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from catalogsync.models.catalog import CandidateContent


def install_command(repo: str, path: str) -> str:
    return f"claude skill add {repo}:{skill_dir_name(path)}"


def validate_skill(
    content: CandidateContent,
    stars: int | None = None,
    *,
    now: datetime | None = None,
) -> ValidationResult:
    """Parse and check one SKILL.md. No I/O."""

    frontmatter = parse_frontmatter(content.text)
    if frontmatter is None:
        return ValidationResult(
            repo=content.repo, path=content.path, valid=False, errors=["No valid YAML frontmatter found"]
        )

    try:
        parsed = SkillFrontmatter.model_validate(frontmatter)
    except ValidationError as exc:
        return ValidationResult(
            repo=content.repo,
            path=content.path,
            valid=False,
            errors=[f"Invalid SKILL.md frontmatter: {format_validation_errors(exc)}"],
        )

    now = now or datetime.now(UTC)
    record = SkillRecord(
        id=skill_id(content.repo, content.path),
        name=parsed.name,
        description=parsed.description,
        repo=content.repo,
        repo_slug=content.repo.replace("/", "-"),
        path=skill_dir(content.path),
        license=parsed.license,
        stars=stars,
        install_command=install_command(content.repo, content.path),
        discovered_at=now,
        last_updated=now,
    )
    return ValidationResult(repo=content.repo, path=content.path, valid=True, record=record)


def validate_skills(
    contents: Sequence[CandidateContent],
    stars: Mapping[str, int | None] | None = None,
    *,
    now: datetime | None = None,
) -> list[ValidationResult]:
    stars = stars or {}
    now = now or datetime.now(UTC)
    return [validate_skill(content, stars.get(content.repo), now=now) for content in contents]
