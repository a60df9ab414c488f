"""YAML frontmatter parsing and writing for note files.

A note file is::

    ---
    <yaml mapping>
    ---
    <markdown content>
"""

from typing import Any

import yaml
from pydantic import ValidationError

from stash.core.types import Note

DELIMITER = "---\n"
CLOSING_DELIMITER = "\n---\n"

# Frontmatter keys, in the order they are written
FRONTMATTER_FIELDS = (
    "id",
    "title",
    "tags",
    "projects",
    "links_to",
    "created",
    "updated",
    "source",
)


class NoteFormatError(Exception):
    """Raised when a note file cannot be parsed."""

    pass


class MissingFrontmatterError(NoteFormatError):
    """File does not start with a frontmatter block."""

    pass


class InvalidFrontmatterError(NoteFormatError):
    """Frontmatter block is unterminated or its YAML is unusable."""

    pass


def split_frontmatter(text: str) -> tuple[str, str]:
    """
    Split raw file text into frontmatter YAML and body.

    Args:
        text: Full file content

    Returns:
        (frontmatter_yaml, body)

    Raises:
        MissingFrontmatterError: If the text doesn't start with ``---``
        InvalidFrontmatterError: If the closing delimiter is missing
    """
    text = text.replace("\r\n", "\n")
    if not text.startswith(DELIMITER):
        raise MissingFrontmatterError("missing frontmatter")

    rest = text[len(DELIMITER) :]
    # Empty mapping: "---\n---\n"
    if rest.startswith(DELIMITER):
        return "", rest[len(DELIMITER) :]

    end = rest.find(CLOSING_DELIMITER)
    if end == -1:
        raise InvalidFrontmatterError("invalid frontmatter format")
    return rest[:end], rest[end + len(CLOSING_DELIMITER) :]


def parse_note(text: str) -> Note:
    """
    Parse a note file into a Note.

    Args:
        text: Full note file content including frontmatter

    Returns:
        The parsed Note

    Raises:
        NoteFormatError: On missing/invalid frontmatter or bad field values
    """
    raw_yaml, body = split_frontmatter(text)
    try:
        data = yaml.safe_load(raw_yaml) if raw_yaml.strip() else {}
    except yaml.YAMLError as e:
        raise InvalidFrontmatterError(f"invalid yaml in frontmatter: {e}") from e

    if not isinstance(data, dict):
        raise InvalidFrontmatterError(
            f"frontmatter must be a mapping, got {type(data).__name__}"
        )
    if "id" not in data or "created" not in data:
        raise InvalidFrontmatterError("frontmatter requires id and created")

    fields: dict[str, Any] = {k: data[k] for k in FRONTMATTER_FIELDS if k in data}
    try:
        return Note.model_validate({**fields, "content": body})
    except ValidationError as e:
        raise InvalidFrontmatterError(f"invalid frontmatter values: {e}") from e


def write_note(note: Note) -> str:
    """
    Serialize a note to file text.

    Args:
        note: Note to serialize

    Returns:
        Frontmatter block followed by the content
    """
    data = note.model_dump(mode="json", include=set(FRONTMATTER_FIELDS))
    ordered = {key: data[key] for key in FRONTMATTER_FIELDS}
    frontmatter = yaml.safe_dump(
        ordered, sort_keys=False, allow_unicode=True, default_flow_style=None
    ).strip()
    return f"{DELIMITER}{frontmatter}{CLOSING_DELIMITER}{note.content}"
