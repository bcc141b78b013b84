"""Pipeline flows."""

from .aggregate import aggregate_skill_repos
from .marketplaces import run_marketplace_pipeline
from .skills import run_skills_pipeline

__all__ = ["aggregate_skill_repos", "run_marketplace_pipeline", "run_skills_pipeline"]
