"""Ephemeral models passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DiscoveryHit(BaseModel):
    """A file location returned by code search, not yet fetched or validated."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    repo: str
    path: str
    html_url: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return self.repo, self.path


class CandidateContent(BaseModel):
    """Raw text of one hit that survived the quality gate."""

    model_config = ConfigDict(frozen=True)

    repo: str
    path: str
    text: str


class RepoMetadata(BaseModel):
    """Subset of ``GET /repos/{owner}/{repo}`` the pipeline consumes."""

    model_config = ConfigDict(extra="ignore")

    full_name: str
    description: str | None = None
    stargazers_count: int = Field(default=0, ge=0)
    private: bool = False
    default_branch: str | None = None


class SearchPage(BaseModel):
    """One page of ``GET /search/code``."""

    total_count: int = Field(default=0, ge=0)
    items: list[DiscoveryHit] = Field(default_factory=list)


@dataclass(frozen=True)
class Found:
    """File exists on the requested ref."""

    text: str
    ref: str
    status: Literal["found"] = "found"


@dataclass(frozen=True)
class NotFound:
    """Path missing on the ref, or the path is not a regular file."""

    reason: str
    ref: str
    status: Literal["not_found"] = "not_found"


@dataclass(frozen=True)
class Inaccessible:
    """Repository private, deleted, blocked or erroring."""

    reason: str
    ref: str
    status: Literal["inaccessible"] = "inaccessible"


type ContentResult = Found | NotFound | Inaccessible
