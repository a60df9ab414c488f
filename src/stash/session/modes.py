"""Session modes and the small enums that live alongside them.

Each mode is its own frozen dataclass carrying only what that mode needs.
Changing mode means assigning a new value, never mutating the old one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from uuid import UUID

from stash.core.types import SearchResult


@dataclass(frozen=True)
class Home:
    pass


@dataclass(frozen=True)
class AddNote:
    pass


@dataclass(frozen=True)
class EditNote:
    note_id: UUID


@dataclass(frozen=True)
class ViewNote:
    note_id: UUID


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Settings:
    pass


@dataclass(frozen=True)
class Search:
    pass


@dataclass(frozen=True)
class TagFilter:
    pass


@dataclass(frozen=True)
class ProjectFilter:
    pass


@dataclass(frozen=True)
class DeleteConfirm:
    note_id: UUID


@dataclass(frozen=True)
class AiRewrite:
    """Rewrite in progress or awaiting accept/reject.

    ``note_id`` is None for an unsaved draft from the add screen.
    """

    note_id: UUID | None = None
    rewritten: str | None = None

    @property
    def is_draft(self) -> bool:
        return self.note_id is None


@dataclass(frozen=True)
class AiCommand:
    """Natural-language search: compose, confirm the generated query, show results."""

    natural_input: str = ""
    generated_query: str | None = None
    results: tuple[SearchResult, ...] | str | None = None
    awaiting_confirmation: bool = False


AppMode = (
    Home
    | AddNote
    | EditNote
    | ViewNote
    | Help
    | Settings
    | Search
    | TagFilter
    | ProjectFilter
    | DeleteConfirm
    | AiRewrite
    | AiCommand
)


class EditorMode(Enum):
    """Sub-mode of the add/edit screens."""

    NAVIGATION = "navigation"
    INSERT = "insert"


class ActiveField(Enum):
    """Which input of the add/edit screens receives typed text."""

    TITLE = "title"
    CONTENT = "content"


class SettingsField(Enum):
    """Focused field of the settings screen, in Tab order."""

    API_KEY = "api_key"
    PROMPT_STYLE = "prompt_style"
    CUSTOM_PROMPT = "custom_prompt"

    def next(self) -> SettingsField:
        members = list(SettingsField)
        return members[(members.index(self) + 1) % len(members)]


class DeletionType(StrEnum):
    SOFT = "soft"
    HARD = "hard"

    def toggled(self) -> DeletionType:
        return DeletionType.HARD if self is DeletionType.SOFT else DeletionType.SOFT


class AiStatus(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class AiState:
    """Lifecycle of the in-flight AI operation, if any."""

    status: AiStatus = AiStatus.IDLE
    message: str | None = None

    @classmethod
    def idle(cls) -> AiState:
        return cls(AiStatus.IDLE)

    @classmethod
    def processing(cls) -> AiState:
        return cls(AiStatus.PROCESSING)

    @classmethod
    def success(cls) -> AiState:
        return cls(AiStatus.SUCCESS)

    @classmethod
    def error(cls, message: str) -> AiState:
        return cls(AiStatus.ERROR, message)

    @property
    def is_processing(self) -> bool:
        return self.status is AiStatus.PROCESSING
