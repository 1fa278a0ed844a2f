"""Pydantic models for the data that flows through the changelog pipeline.

Flow: merge event text -> pull request number -> ChangeRecord (via
FetchResult) -> grouped by Category into a NewRelease -> rendered in
front of the parsed ChangelogDocument.

Key design decisions:
- Records and documents are frozen; nothing downstream edits them
- Existing changelog sections are opaque title/body pairs, never re-parsed
- Category order is the declaration order of the enum
"""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Category(str, Enum):
    """Changelog category for a merged pull request.

    Members are declared in rendering order.
    """

    ADDED = "Added"
    CHANGED = "Changed"
    FIXED = "Fixed"


# ---------------------------------------------------------------------------
# Pull request metadata
# ---------------------------------------------------------------------------


class Author(BaseModel):
    """Who opened the pull request.

    Attributes:
        name: Display name, or the login when the account has no name set
        url: Profile URL
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name or login")
    url: str = Field(..., description="Author profile URL")


class ChangeRecord(BaseModel):
    """A merged pull request as returned by the GraphQL API."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., gt=0, description="Pull request number")
    title: str = Field(..., description="Pull request title")
    url: str = Field(..., description="Canonical pull request URL")
    merged_at: dt.datetime | None = Field(None, description="Merge timestamp")
    body: str = Field("", description="Pull request description")
    additions: int = Field(0, ge=0, description="Lines added")
    deletions: int = Field(0, ge=0, description="Lines deleted")
    author: Author


class FetchResult(BaseModel):
    """Outcome of fetching one pull request.

    Exactly one of ``record`` and ``error`` is set. ``reference`` is the
    number that was asked for, so results stay tied to their input slot.
    """

    reference: int
    record: ChangeRecord | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


# ---------------------------------------------------------------------------
# Changelog document
# ---------------------------------------------------------------------------


class ReleaseSection(BaseModel):
    """An existing ``## ...`` section of the changelog, kept verbatim."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str = ""


class ChangelogDocument(BaseModel):
    """The changelog as it was on disk before this run.

    Attributes:
        preamble: Text above the title, e.g. lint directives
        title: Text of the ``# `` heading
        description: Free text between the title and the first section
        sections: Existing release sections, newest first
    """

    model_config = ConfigDict(frozen=True)

    preamble: str = ""
    title: str = "Changelog"
    description: str = ""
    sections: tuple[ReleaseSection, ...] = ()


class NewRelease(BaseModel):
    """The release section produced by this run."""

    version: str = Field(..., min_length=1, description="Version label")
    date: dt.date
    groups: dict[Category, list[ChangeRecord]] = Field(default_factory=dict)

    def records(self, category: Category) -> list[ChangeRecord]:
        return self.groups.get(category, [])

    @property
    def is_empty(self) -> bool:
        return not any(self.groups.values())


class RepositoryOrigin(BaseModel):
    """Owner and name of the GitHub repository, parsed from a remote URL."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"
