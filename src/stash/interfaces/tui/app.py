"""Full-screen interactive session.

Each tick: apply a finished background result, redraw, wait up to
INPUT_POLL_SECONDS for one key, dispatch it. AI calls never block the loop.
"""

import asyncio
import logging

from prompt_toolkit.input import create_input
from prompt_toolkit.output import create_output
from rich.console import Console
from rich.live import Live

from stash.core.config import INPUT_POLL_SECONDS
from stash.interfaces.tui.keys import to_key_event
from stash.interfaces.tui.render import render
from stash.session.actions import poll_tasks
from stash.session.handlers import dispatch
from stash.session.keys import KeyEvent
from stash.session.state import Session

logger = logging.getLogger(__name__)


async def run_session(session: Session, console: Console | None = None) -> None:
    """Drive a session until it asks to quit."""
    console = console or Console()
    terminal_input = create_input()
    terminal_output = create_output()
    events: asyncio.Queue[KeyEvent] = asyncio.Queue()

    def queue_presses(presses) -> None:
        for press in presses:
            event = to_key_event(press)
            if event is not None:
                events.put_nowait(event)

    def on_input_ready() -> None:
        queue_presses(terminal_input.read_keys())

    terminal_output.enable_bracketed_paste()
    terminal_output.flush()
    try:
        with (
            terminal_input.raw_mode(),
            terminal_input.attach(on_input_ready),
            Live(
                render(session),
                console=console,
                screen=True,
                auto_refresh=False,
            ) as live,
        ):
            while not session.should_quit:
                poll_tasks(session)
                live.update(render(session), refresh=True)
                try:
                    event = await asyncio.wait_for(events.get(), INPUT_POLL_SECONDS)
                except asyncio.TimeoutError:
                    # A lone Escape is held back until the parser times out
                    queue_presses(terminal_input.flush_keys())
                    continue
                dispatch(session, event)
    finally:
        session.tasks.cancel_all()
        terminal_output.disable_bracketed_paste()
        terminal_output.flush()
        logger.info("Session closed")


def run_interactive(session: Session) -> None:
    """Blocking entry point for the interactive session."""
    asyncio.run(run_session(session))
