"""Typed GitHub REST client: code search, file contents and repository metadata."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger
from pydantic import ValidationError

from catalogsync.errors import RATE_LIMIT_STATUSES, GitHubAPIError, RateLimitedError
from catalogsync.models.catalog import DiscoveryHit, Found, Inaccessible, NotFound, RepoMetadata, SearchPage
from catalogsync.utils.parsing import split_repo

if TYPE_CHECKING:
    from catalogsync.clients.http import RateLimitMonitor, RequestContext
    from catalogsync.models.catalog import ContentResult


def parse_retry_after(headers: httpx.Headers) -> float | None:
    """Return the ``Retry-After`` delay in seconds, if the header holds a number."""

    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return None


class GitHubClient:
    """Thin wrapper over an authenticated ``httpx.AsyncClient``.

    Every request passes through the run's rate limiter.  Responses with
    403/429 raise :class:`RateLimitedError`; whether to retry is left to the
    caller.
    """

    def __init__(self, client: httpx.AsyncClient, ctx: RequestContext) -> None:
        self._client = client
        self._ctx = ctx

    @property
    def monitor(self) -> RateLimitMonitor:
        return self._ctx.monitor

    async def _get(self, path: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        async with self._ctx.get_limiter():
            response = await self._client.get(path, params=params)
        self._ctx.monitor.push_status(response.status_code)
        if response.status_code in RATE_LIMIT_STATUSES:
            retry_after = parse_retry_after(response.headers)
            await response.aclose()
            raise RateLimitedError(response.status_code, retry_after=retry_after)
        return response

    async def search_code(self, query: str, *, page: int = 1, per_page: int = 100) -> SearchPage:
        """Fetch one page of ``/search/code`` results."""

        response = await self._get("/search/code", params={"q": query, "per_page": per_page, "page": page})
        if response.status_code != 200:
            raise GitHubAPIError(response.status_code, f"Code search for {query!r} failed: HTTP {response.status_code}")

        payload = response.json()
        hits: list[DiscoveryHit] = []
        for raw in payload.get("items", []):
            if not isinstance(raw, dict):
                continue
            repository = raw.get("repository") or {}
            full_name = str(repository.get("full_name", "")).strip()
            path = str(raw.get("path", "")).strip()
            if split_repo(full_name) is None or not path:
                continue
            hits.append(DiscoveryHit(repo=full_name, path=path, html_url=str(raw.get("html_url", ""))))

        total_count = payload.get("total_count", 0)
        return SearchPage(total_count=total_count if isinstance(total_count, int) else 0, items=hits)

    async def get_file(self, repo: str, path: str, *, ref: str) -> ContentResult:
        """Fetch one file's decoded text from ``ref``."""

        url = f"/repos/{repo}/contents/{path.lstrip('/')}"
        try:
            response = await self._get(url, params={"ref": ref})
        except httpx.TransportError as exc:
            return Inaccessible(reason=f"transport error: {exc}", ref=ref)

        if response.status_code == 404:
            return NotFound(reason=f"{path} not found on {ref}", ref=ref)
        if response.status_code != 200:
            return Inaccessible(reason=f"HTTP {response.status_code}", ref=ref)

        payload = response.json()
        if not isinstance(payload, dict) or payload.get("type") != "file":
            return NotFound(reason=f"{path} is not a file", ref=ref)

        encoded = payload.get("content")
        if not isinstance(encoded, str):
            return NotFound(reason=f"{path} has no inline content", ref=ref)
        if payload.get("encoding", "base64") != "base64":
            return Found(text=encoded, ref=ref)
        try:
            text = base64.b64decode(encoded).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            return Inaccessible(reason=f"failed to decode base64 content: {exc}", ref=ref)
        return Found(text=text, ref=ref)

    async def get_repo(self, repo: str) -> RepoMetadata | None:
        """Fetch repository metadata; None when the repository is missing or private to us."""

        try:
            response = await self._get(f"/repos/{repo}")
        except httpx.TransportError as exc:
            logger.debug("Repository lookup for {} failed: {}", repo, exc)
            return None

        if response.status_code != 200:
            logger.debug("Repository lookup for {} returned HTTP {}", repo, response.status_code)
            return None
        try:
            return RepoMetadata.model_validate(response.json())
        except (ValidationError, ValueError) as exc:
            logger.warning("Unexpected repository payload for {}: {}", repo, exc)
            return None
