"""Discovery stages: search, star lookup, quality gate and content fetch."""

from .content import fetch_candidates, fetch_file
from .quality import apply_quality_gate, quality_repos
from .search import MARKETPLACE_QUERIES, SKILL_QUERIES, search_code_files
from .stars import batch_fetch_stars, fetch_stars

__all__ = [
    "MARKETPLACE_QUERIES",
    "SKILL_QUERIES",
    "apply_quality_gate",
    "batch_fetch_stars",
    "fetch_candidates",
    "fetch_file",
    "fetch_stars",
    "quality_repos",
    "search_code_files",
]
