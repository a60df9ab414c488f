"""Token scanning shared by the note repository and the query engine.

Note content carries its own metadata inline: ``#tag``, ``+project`` and
``[[link]]``. Everything that needs those tokens goes through here.
"""

import re

TAG_PATTERN = re.compile(r"#(\w+)")
PROJECT_PATTERN = re.compile(r"\+(\w+)")
LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def extract_tags(text: str) -> list[str]:
    """Return ``#tag`` names in order of first appearance, without the marker."""
    return _unique(TAG_PATTERN.findall(text))


def extract_projects(text: str) -> list[str]:
    """Return ``+project`` names in order of first appearance, without the marker."""
    return _unique(PROJECT_PATTERN.findall(text))


def extract_links(text: str) -> list[str]:
    """Return ``[[link]]`` targets in order of first appearance."""
    return _unique(LINK_PATTERN.findall(text))
