"""HTTP client and request pacing helpers."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter

from catalogsync import __version__
from catalogsync.errors import RATE_LIMIT_STATUSES, ConfigurationError

if TYPE_CHECKING:
    from catalogsync.settings import Settings

GITHUB_API_VERSION = "2022-11-28"


class RateLimitMonitor:
    """Tracks a rolling window of response codes and the share that were rate limited."""

    def __init__(self, window: int = 500) -> None:
        self.window = window
        self._codes: deque[int] = deque(maxlen=window)

    def push_status(self, code: int) -> None:
        self._codes.append(code)

    @property
    def total(self) -> int:
        return len(self._codes)

    @property
    def rate_limited_percent(self) -> float:
        if not self._codes:
            return 0.0
        limited = sum(1 for code in self._codes if code in RATE_LIMIT_STATUSES)
        return limited * 100.0 / len(self._codes)


@dataclass
class RequestContext:
    """Pacing state shared by every GitHub call of a run."""

    limiter: AsyncLimiter
    monitor: RateLimitMonitor = field(default_factory=RateLimitMonitor)
    _limiter_loop_map: dict[int, AsyncLimiter] = field(default_factory=dict, repr=False, compare=False)

    def get_limiter(self) -> AsyncLimiter:
        """Return an AsyncLimiter bound to the current event loop.

        Each event loop gets its own limiter instance to avoid RuntimeWarning
        when a limiter created in one loop is used in another (e.g. Prefect tasks).
        """

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self.limiter

        loop_id = id(loop)
        if loop_id not in self._limiter_loop_map:
            self._limiter_loop_map[loop_id] = AsyncLimiter(self.limiter.max_rate, self.limiter.time_period)
        return self._limiter_loop_map[loop_id]


def request_context(settings: Settings) -> RequestContext:
    """Build the pacing context for one run."""

    return RequestContext(limiter=AsyncLimiter(settings.rate_limit_per_second, 1))


def require_token(settings: Settings) -> str:
    """Return the GitHub token or fail before any request is made."""

    if settings.github_token is None or not settings.github_token.get_secret_value().strip():
        raise ConfigurationError("GITHUB_TOKEN environment variable is required")
    return settings.github_token.get_secret_value().strip()


async def create_http_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create the authenticated GitHub API client with predictable defaults."""

    token = require_token(settings)
    return httpx.AsyncClient(
        base_url=settings.github_api_url,
        transport=transport,
        http2=True,
        timeout=httpx.Timeout(
            connect=5.0,
            read=settings.request_timeout,
            write=10.0,
            pool=10.0,
        ),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=max(5, settings.max_connections // 2),
            keepalive_expiry=30.0,
        ),
        headers={
            "User-Agent": f"catalogsync/{__version__}",
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        },
        follow_redirects=True,
    )
