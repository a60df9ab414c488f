"""Shared types and data structures for stash."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stash.core.extract import extract_links, extract_projects, extract_tags

DELETED_TAG = "deleted"


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


class NoteSource(StrEnum):
    """How a note came into existence."""

    QUICK_CAPTURE = "QuickCapture"
    EDITOR = "Editor"
    UI = "UI"


class Note(BaseModel):
    """A single note: frontmatter metadata plus markdown content.

    Frozen; every change produces a new instance via ``model_copy`` so the
    in-memory list only changes when the session reloads from disk.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    links_to: list[str] = Field(default_factory=list)
    created: datetime = Field(default_factory=utc_now)
    updated: datetime | None = None
    source: NoteSource = NoteSource.UI
    content: str = ""

    @field_validator("tags", "projects", "links_to", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("created", "updated")
    @classmethod
    def _naive_as_utc(cls, value):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _blank_title_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_content(
        cls,
        content: str,
        title: str | None = None,
        source: NoteSource = NoteSource.UI,
    ) -> Note:
        """Create a new note whose metadata is derived from its content."""
        return cls(
            title=title,
            tags=extract_tags(content),
            projects=extract_projects(content),
            links_to=extract_links(content),
            source=source,
            content=content,
        )

    @property
    def is_deleted(self) -> bool:
        return DELETED_TAG in self.tags

    @property
    def display_title(self) -> str:
        """Title, falling back to the first non-empty content line."""
        if self.title:
            return self.title
        for line in self.content.splitlines():
            if line.strip():
                text = line.strip()
                return text[:60] + "..." if len(text) > 60 else text
        return "untitled"

    def with_content(
        self,
        content: str,
        title: str | None = None,
        updated: datetime | None = None,
    ) -> Note:
        """Return a copy with new content and re-derived tags, projects and links.

        The soft-delete tag is not part of content and survives the rewrite.
        """
        tags = extract_tags(content)
        if self.is_deleted and DELETED_TAG not in tags:
            tags.append(DELETED_TAG)
        return self.model_copy(
            update={
                "title": title if title and title.strip() else None,
                "content": content,
                "tags": tags,
                "projects": extract_projects(content),
                "links_to": extract_links(content),
                "updated": updated or utc_now(),
            }
        )

    def soft_deleted(self, when: datetime | None = None) -> Note:
        """Return a copy carrying the reserved ``deleted`` tag."""
        tags = list(self.tags)
        if DELETED_TAG not in tags:
            tags.append(DELETED_TAG)
        return self.model_copy(update={"tags": tags, "updated": when or utc_now()})


@dataclass(frozen=True)
class ParsedQuery:
    """A raw query split into free text and tag/project criteria."""

    text: str = ""
    tags: list[str] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)
    exclude_projects: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SearchResult:
    """A note that matched a query, with match annotations for display."""

    note: Note
    score: int
    title_match: bool = False
    snippets: list[str] = field(default_factory=list)
    tag_matches: list[str] = field(default_factory=list)
    project_matches: list[str] = field(default_factory=list)
    path: Path | None = None

    @property
    def match_count(self) -> int:
        return len(self.tag_matches) + len(self.project_matches)
