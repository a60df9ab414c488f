"""Stash core library - notes, queries, settings and AI."""

from stash.core.types import (
    DELETED_TAG,
    Note,
    NoteSource,
    ParsedQuery,
    SearchResult,
)

__all__ = [
    "DELETED_TAG",
    "Note",
    "NoteSource",
    "ParsedQuery",
    "SearchResult",
]
