"""Structural schemas for the two candidate file formats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class _Lenient(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class PluginSource(_Lenient):
    """Object form of a plugin ``source`` (``{"source": "github", "repo": ...}`` and friends)."""

    source: str | None = None
    path: str | None = None
    repo: str | None = None
    url: str | None = None


class PluginEntry(_Lenient):
    """One entry of a marketplace's ``plugins`` array.

    ``name`` and ``source`` are optional here so that a single broken entry
    is reported by name instead of failing the whole manifest's shape check.
    """

    name: str = ""
    source: str | PluginSource | None = None
    description: str = ""
    version: str | None = None
    author: str | dict[str, Any] | None = None
    homepage: str | None = None
    repository: str | None = None
    license: str | None = None
    keywords: list[str] | None = None
    category: str | None = None
    commands: Any = None
    agents: Any = None
    hooks: Any = None
    mcp_servers: Any = None

    @property
    def source_path(self) -> str:
        if isinstance(self.source, PluginSource):
            return self.source.path or self.source.repo or self.source.url or ""
        return self.source or ""


class ManifestMetadata(_Lenient):
    description: str | None = None
    version: str | None = None
    plugin_root: str | None = None


class MarketplaceManifest(_Lenient):
    """``.claude-plugin/marketplace.json``."""

    name: str = Field(min_length=1)
    owner: dict[str, Any] | None = None
    description: str | None = None
    metadata: ManifestMetadata | None = None
    plugins: list[PluginEntry]


class SkillFrontmatter(BaseModel):
    """Required keys of a SKILL.md metadata block."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    license: str | None = None

    @field_validator("license", mode="before")
    @classmethod
    def _license_as_text(cls, value: Any) -> Any:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


def format_validation_errors(exc: ValidationError) -> str:
    """Render pydantic errors as ``field: message`` pairs on one line."""

    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "root"
        parts.append(f"{location}: {error['msg']}")
    return ", ".join(parts)
