"""Structural validation of candidate files and record extraction."""

from .frontmatter import parse_frontmatter
from .marketplace import validate_marketplace, validate_marketplaces
from .plugins import aggregate_plugin_keywords, extract_plugins
from .schemas import MarketplaceManifest, PluginEntry, SkillFrontmatter
from .skill import validate_skill, validate_skills

__all__ = [
    "MarketplaceManifest",
    "PluginEntry",
    "SkillFrontmatter",
    "aggregate_plugin_keywords",
    "extract_plugins",
    "parse_frontmatter",
    "validate_marketplace",
    "validate_marketplaces",
    "validate_skill",
    "validate_skills",
]
