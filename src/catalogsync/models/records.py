"""Persisted catalog records.

The JSON shape is shared with the website that renders the catalog, so
records serialize with its camelCase keys and keep any keys they do not
declare.  Each record knows its unique key and how to absorb a freshly
discovered copy of itself without touching ``discoveredAt`` or ``source``.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any, ClassVar, Literal, Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RecordOrigin = Literal["manual", "auto"]


class CatalogRecord(BaseModel):
    """Base for every record type stored as a whole-collection JSON array."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        str_strip_whitespace=True,
    )

    store_key: ClassVar[str]

    @property
    def key(self) -> str:
        raise NotImplementedError

    def merge_from(self, fresh: Self, now: datetime) -> None:
        """Copy discovery-owned fields of ``fresh`` onto this stored record."""

        raise NotImplementedError

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MarketplaceRecord(CatalogRecord):
    """One ``.claude-plugin/marketplace.json`` repository."""

    store_key: ClassVar[str] = "marketplaces.json"

    repo: str
    slug: str = ""
    description: str = ""
    plugin_count: int = Field(default=0, ge=0)
    categories: list[str] = Field(default_factory=list)
    plugin_keywords: list[str] | None = None
    discovered_at: datetime | None = None
    last_updated: datetime | None = None
    origin: RecordOrigin | None = Field(default=None, alias="source")
    stars: int | None = None
    stars_fetched_at: datetime | None = None

    @property
    def key(self) -> str:
        return self.repo

    def merge_from(self, fresh: Self, now: datetime) -> None:
        self.description = fresh.description
        self.plugin_count = fresh.plugin_count
        self.categories = list(fresh.categories)
        if fresh.plugin_keywords is not None:
            self.plugin_keywords = list(fresh.plugin_keywords)
        self.last_updated = now
        if fresh.stars is not None:
            self.stars = fresh.stars
            self.stars_fetched_at = fresh.stars_fetched_at


class SkillRecord(CatalogRecord):
    """One ``SKILL.md`` file."""

    store_key: ClassVar[str] = "skills.json"

    id: str
    name: str
    description: str
    repo: str
    repo_slug: str = ""
    path: str = ""
    license: str | None = None
    stars: int | None = None
    install_command: str = ""
    discovered_at: datetime | None = None
    last_updated: datetime | None = None

    @property
    def key(self) -> str:
        return self.id

    def merge_from(self, fresh: Self, now: datetime) -> None:
        self.name = fresh.name
        self.description = fresh.description
        self.path = fresh.path
        self.license = fresh.license
        self.install_command = fresh.install_command
        self.last_updated = now
        if fresh.stars is not None:
            self.stars = fresh.stars


class SkillRepoRecord(CatalogRecord):
    """Repository-level summary derived from the skills found in it."""

    store_key: ClassVar[str] = "skill-repos.json"

    repo: str
    slug: str = ""
    description: str = ""
    skill_count: int = Field(default=0, ge=0)
    stars: int | None = None
    stars_fetched_at: datetime | None = None
    discovered_at: datetime | None = None
    last_updated: datetime | None = None
    origin: RecordOrigin | None = Field(default=None, alias="source")

    @property
    def key(self) -> str:
        return self.repo

    def merge_from(self, fresh: Self, now: datetime) -> None:
        self.description = fresh.description
        self.skill_count = fresh.skill_count
        self.last_updated = now
        if fresh.stars is not None:
            self.stars = fresh.stars
            self.stars_fetched_at = fresh.stars_fetched_at


class PluginRecord(BaseModel):
    """Per-plugin view of a marketplace entry, used for keyword aggregation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    version: str | None = None
    author: dict[str, Any] | None = None
    homepage: str | None = None
    repository: str | None = None
    source: str = ""
    marketplace: str
    marketplace_url: str
    category: str = "community"
    license: str | None = None
    keywords: list[str] | None = None
    commands: list[str] | None = None
    agents: list[str] | None = None
    hooks: list[str] | None = None
    mcp_servers: list[str] | None = None
    install_command: str
