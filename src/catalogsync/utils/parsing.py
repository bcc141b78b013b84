"""Parsing and normalization helpers."""

from __future__ import annotations

import re
from posixpath import dirname

_REPO_PART_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
_NON_SLUG_RE = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUN_RE = re.compile(r"-+")


def split_repo(repo: str) -> tuple[str, str] | None:
    """Split ``owner/name`` into its parts, preserving case.

    Returns None unless the string is exactly two non-empty path segments.
    """

    parts = repo.strip().split("/")
    if len(parts) != 2:
        return None
    owner, name = parts
    if not _REPO_PART_RE.match(owner) or not _REPO_PART_RE.match(name):
        return None
    return owner, name


def repo_to_slug(repo: str) -> str:
    """Convert ``owner/name`` to a URL-safe slug: ``anthropics/claude-code`` -> ``anthropics-claude-code``."""

    return repo.replace("/", "-").lower()


def normalize_plugin_name(name: str) -> str:
    """Lowercase a plugin name and collapse anything outside ``[a-z0-9-]`` to single hyphens."""

    normalized = _NON_SLUG_RE.sub("-", name.lower())
    normalized = _HYPHEN_RUN_RE.sub("-", normalized)
    return normalized.strip("-")


def skill_dir(path: str) -> str:
    """Directory holding a ``SKILL.md``: ``skills/pdf/SKILL.md`` -> ``skills/pdf``."""

    return dirname(path.strip("/"))


def skill_dir_name(path: str) -> str:
    """Name of the directory holding a ``SKILL.md``, ``"unknown"`` for a top-level file."""

    return skill_dir(path).rsplit("/", maxsplit=1)[-1] or "unknown"


def skill_id(repo: str, path: str) -> str:
    """Stable skill key derived from its repository and directory."""

    return f"{repo.replace('/', '-')}/{skill_dir_name(path)}"
