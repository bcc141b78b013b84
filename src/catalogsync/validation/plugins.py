"""Per-plugin records and the keyword index built from them."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from catalogsync.models.records import PluginRecord
from catalogsync.utils.parsing import normalize_plugin_name, repo_to_slug

if TYPE_CHECKING:
    from collections.abc import Iterable

    from catalogsync.validation.schemas import MarketplaceManifest, PluginEntry

DEFAULT_CATEGORY = "community"

_NAME_SPLIT_RE = re.compile(r"[-_\s]+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _as_list(value: Any) -> list[str] | None:
    if not value:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)] or None
    return None


def _author(value: str | dict[str, Any] | None) -> dict[str, Any] | None:
    if isinstance(value, str):
        return {"name": value}
    return value


def install_command(plugin_name: str, repo: str) -> str:
    return f"/plugin install {plugin_name}@{repo_to_slug(repo)}"


def extract_plugin(repo: str, entry: PluginEntry) -> PluginRecord:
    slug = repo_to_slug(repo)
    return PluginRecord(
        id=f"{slug}/{normalize_plugin_name(entry.name)}",
        name=entry.name,
        description=entry.description or "",
        version=entry.version,
        author=_author(entry.author),
        homepage=entry.homepage,
        repository=entry.repository,
        source=entry.source_path,
        marketplace=slug,
        marketplace_url=f"https://github.com/{repo}",
        category=entry.category or DEFAULT_CATEGORY,
        license=entry.license,
        keywords=entry.keywords,
        commands=_as_list(entry.commands),
        agents=_as_list(entry.agents),
        hooks=_as_list(entry.hooks),
        mcp_servers=_as_list(entry.mcp_servers),
        install_command=install_command(entry.name, repo),
    )


def extract_plugins(repo: str, manifest: MarketplaceManifest) -> list[PluginRecord]:
    """One :class:`PluginRecord` per manifest entry, in manifest order."""

    return [extract_plugin(repo, entry) for entry in manifest.plugins]


def aggregate_plugin_keywords(plugins: Iterable[PluginRecord]) -> list[str]:
    """Sorted, deduplicated search keywords drawn from every plugin.

    Name words longer than two characters, description words longer than four
    characters once reduced to ``[a-z0-9]``, and every declared keyword.
    """

    keywords: set[str] = set()
    for plugin in plugins:
        for word in _NAME_SPLIT_RE.split(plugin.name):
            normalized = word.lower().strip()
            if len(normalized) > 2:
                keywords.add(normalized)

        for word in plugin.description.split():
            normalized = _NON_ALNUM_RE.sub("", word.lower())
            if len(normalized) > 4:
                keywords.add(normalized)

        for keyword in plugin.keywords or ():
            normalized = keyword.lower().strip()
            if normalized:
                keywords.add(normalized)

    return sorted(keywords)
