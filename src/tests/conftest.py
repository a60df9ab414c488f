"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from stash.core.settings import SettingsStore
from stash.core.types import Note, NoteSource
from stash.session import actions
from stash.session.factory import build_session
from stash.vault.notes import NoteRepository

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def notes_dir(tmp_path):
    """Provide an empty notes directory."""
    path = tmp_path / "notes"
    path.mkdir()
    return path


@pytest.fixture
def config_file(tmp_path):
    """Settings file path (not created)."""
    return tmp_path / "config.yaml"


@pytest.fixture
def repo(notes_dir):
    """Note repository over the temp notes directory."""
    return NoteRepository(notes_dir)


@pytest.fixture
def make_note():
    """Factory for notes with content-derived metadata.

    ``age`` is in minutes before BASE_TIME, so larger means older.
    """

    def _make_note(
        content: str,
        *,
        title: str | None = None,
        age: int = 0,
        extra_tags: list[str] | None = None,
        source: NoteSource = NoteSource.UI,
    ) -> Note:
        note = Note.from_content(content, title=title, source=source)
        tags = note.tags + (extra_tags or [])
        return note.model_copy(
            update={"created": BASE_TIME - timedelta(minutes=age), "tags": tags}
        )

    return _make_note


@pytest.fixture
def fake_ai():
    """AI client double: configured, with async rewrite/translate mocks."""
    ai = MagicMock()
    ai.is_configured.return_value = True
    ai.rewrite = AsyncMock(return_value="Rewritten content #rust")
    ai.translate_query = AsyncMock(return_value="#rust")
    return ai


@pytest.fixture
def make_session(repo, config_file, fake_ai):
    """Factory for a session over the temp repository with the given notes saved."""

    def _make_session(*notes: Note, ai=None):
        for note in notes:
            repo.save(note)
        return build_session(
            repository=repo,
            settings_store=SettingsStore(config_file),
            ai=ai if ai is not None else fake_ai,
        )

    return _make_session


@pytest.fixture
def settle():
    """Let background tasks run until one result has been applied to a session."""

    async def _settle(session, attempts: int = 50) -> bool:
        for _ in range(attempts):
            await asyncio.sleep(0)
            if actions.poll_tasks(session):
                return True
        return False

    return _settle
