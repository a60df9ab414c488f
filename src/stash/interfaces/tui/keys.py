"""Translate prompt_toolkit key presses into session key events."""

from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys

from stash.session.keys import Key, KeyEvent

_SPECIAL_KEYS = {
    Keys.ControlM: KeyEvent(Key.ENTER),
    Keys.ControlJ: KeyEvent(Key.ENTER),
    Keys.ControlI: KeyEvent(Key.TAB),
    Keys.ControlH: KeyEvent(Key.BACKSPACE),
    Keys.Escape: KeyEvent(Key.ESC),
    Keys.Delete: KeyEvent(Key.DELETE),
    Keys.Up: KeyEvent(Key.UP),
    Keys.Down: KeyEvent(Key.DOWN),
    Keys.Left: KeyEvent(Key.LEFT),
    Keys.Right: KeyEvent(Key.RIGHT),
    Keys.Home: KeyEvent(Key.HOME),
    Keys.End: KeyEvent(Key.END),
    Keys.ControlC: KeyEvent(Key.CTRL_C),
}


def to_key_event(press: KeyPress) -> KeyEvent | None:
    """Map a key press; None for keys the session doesn't use."""
    key = press.key
    if key == Keys.BracketedPaste:
        return KeyEvent.paste(press.data)
    if isinstance(key, Keys):
        return _SPECIAL_KEYS.get(key)
    if len(key) == 1 and key.isprintable():
        return KeyEvent.char(key)
    return None
