"""Interactive session: modes, state, key handlers and actions."""

from stash.session.factory import build_session
from stash.session.handlers import dispatch
from stash.session.keys import Key, KeyEvent
from stash.session.state import Session

__all__ = [
    "Key",
    "KeyEvent",
    "Session",
    "build_session",
    "dispatch",
]
