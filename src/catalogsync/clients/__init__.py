"""Client abstractions."""

from .executor import Settled, batch_execute, settle_all, with_retry
from .github import GitHubClient
from .http import RateLimitMonitor, RequestContext, create_http_client

__all__ = [
    "GitHubClient",
    "RateLimitMonitor",
    "RequestContext",
    "Settled",
    "batch_execute",
    "create_http_client",
    "settle_all",
    "with_retry",
]
