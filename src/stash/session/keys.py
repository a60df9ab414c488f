"""Terminal-independent key events consumed by the session handlers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Key(StrEnum):
    CHAR = "char"
    ENTER = "enter"
    ESC = "esc"
    TAB = "tab"
    BACKSPACE = "backspace"
    DELETE = "delete"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    CTRL_C = "ctrl-c"
    PASTE = "paste"


@dataclass(frozen=True)
class KeyEvent:
    """A single key press. ``text`` holds the character (or pasted text)."""

    key: Key
    text: str = ""

    @classmethod
    def char(cls, ch: str) -> KeyEvent:
        return cls(Key.CHAR, ch)

    @classmethod
    def paste(cls, text: str) -> KeyEvent:
        return cls(Key.PASTE, text)

    def is_char(self, *chars: str) -> bool:
        """True for a character press matching one of ``chars``."""
        return self.key is Key.CHAR and self.text in chars


ENTER = KeyEvent(Key.ENTER)
ESC = KeyEvent(Key.ESC)
TAB = KeyEvent(Key.TAB)
BACKSPACE = KeyEvent(Key.BACKSPACE)
DELETE = KeyEvent(Key.DELETE)
UP = KeyEvent(Key.UP)
DOWN = KeyEvent(Key.DOWN)
LEFT = KeyEvent(Key.LEFT)
RIGHT = KeyEvent(Key.RIGHT)
HOME = KeyEvent(Key.HOME)
END = KeyEvent(Key.END)
CTRL_C = KeyEvent(Key.CTRL_C)
