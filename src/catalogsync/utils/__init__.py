"""Utility helpers."""

from .parsing import normalize_plugin_name, repo_to_slug, skill_id, split_repo

__all__ = ["normalize_plugin_name", "repo_to_slug", "skill_id", "split_repo"]
