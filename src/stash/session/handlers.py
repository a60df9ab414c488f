"""Key dispatch: route each key event to the handler of the active mode."""

import logging

from stash.session import actions
from stash.session.keys import Key, KeyEvent
from stash.session.modes import (
    ActiveField,
    AddNote,
    AiCommand,
    AiRewrite,
    AiStatus,
    DeleteConfirm,
    EditNote,
    EditorMode,
    Help,
    Home,
    ProjectFilter,
    Search,
    Settings,
    SettingsField,
    TagFilter,
    ViewNote,
)
from stash.session.state import Session

logger = logging.getLogger(__name__)


def dispatch(session: Session, event: KeyEvent) -> None:
    """
    Apply one key event to the session.

    The previous status message is cleared first; Ctrl+C quits from anywhere.
    """
    session.status_message = None
    if event.key is Key.CTRL_C:
        session.tasks.cancel_all()
        session.should_quit = True
        return

    match session.mode:
        case Home():
            handle_home(session, event)
        case AddNote() | EditNote():
            handle_editor(session, event)
        case ViewNote():
            handle_view(session, event)
        case Help():
            handle_help(session, event)
        case Settings():
            handle_settings(session, event)
        case Search() | TagFilter() | ProjectFilter():
            handle_filter_input(session, event)
        case DeleteConfirm():
            handle_delete_confirm(session, event)
        case AiRewrite():
            handle_ai_rewrite(session, event)
        case AiCommand():
            handle_ai_command(session, event)


def handle_home(session: Session, event: KeyEvent) -> None:
    match event:
        case KeyEvent(key=Key.CHAR, text="q"):
            session.tasks.cancel_all()
            session.should_quit = True
        case KeyEvent(key=Key.CHAR, text="a"):
            actions.open_add(session)
        case KeyEvent(key=Key.CHAR, text="h"):
            session.mode = Help()
        case KeyEvent(key=Key.CHAR, text="s"):
            actions.open_settings(session)
        case KeyEvent(key=Key.CHAR, text="/"):
            actions.open_filter_input(session, Search())
        case KeyEvent(key=Key.CHAR, text="t"):
            actions.open_filter_input(session, TagFilter())
        case KeyEvent(key=Key.CHAR, text="p"):
            actions.open_filter_input(session, ProjectFilter())
        case KeyEvent(key=Key.CHAR, text="d"):
            actions.open_delete_confirm(session)
        case KeyEvent(key=Key.CHAR, text="c"):
            actions.open_ai_command(session)
        case KeyEvent(key=Key.CHAR, text="x"):
            actions.clear_filters(session)
        case KeyEvent(key=Key.CHAR, text="r"):
            actions.refresh(session)
        case KeyEvent(key=Key.UP) | KeyEvent(key=Key.CHAR, text="k"):
            session.select_previous()
        case KeyEvent(key=Key.DOWN) | KeyEvent(key=Key.CHAR, text="j"):
            session.select_next()
        case KeyEvent(key=Key.ENTER):
            actions.open_view(session)


def _leave_editor(session: Session) -> None:
    session.clear_editor()
    session.mode = Home()


def _edit_title(session: Session, event: KeyEvent) -> None:
    match event:
        case KeyEvent(key=Key.CHAR | Key.PASTE, text=text):
            session.title_input += " ".join(text.splitlines())
        case KeyEvent(key=Key.BACKSPACE):
            session.title_input = session.title_input[:-1]
        case KeyEvent(key=Key.ENTER | Key.TAB | Key.DOWN):
            session.active_field = ActiveField.CONTENT


def _edit_content(session: Session, event: KeyEvent) -> None:
    buffer = session.content
    match event:
        case KeyEvent(key=Key.CHAR | Key.PASTE, text=text):
            buffer.insert(text)
        case KeyEvent(key=Key.ENTER):
            buffer.newline()
        case KeyEvent(key=Key.TAB):
            buffer.insert("    ")
        case KeyEvent(key=Key.BACKSPACE):
            buffer.backspace()
        case KeyEvent(key=Key.DELETE):
            buffer.delete()
        case KeyEvent(key=Key.LEFT):
            buffer.move_left()
        case KeyEvent(key=Key.RIGHT):
            buffer.move_right()
        case KeyEvent(key=Key.UP):
            buffer.move_up()
        case KeyEvent(key=Key.DOWN):
            buffer.move_down()
        case KeyEvent(key=Key.HOME):
            buffer.move_home()
        case KeyEvent(key=Key.END):
            buffer.move_end()
        case _:
            return
    session.refresh_preview()


def handle_editor(session: Session, event: KeyEvent) -> None:
    """Add and edit screens: insert mode edits text, navigation mode takes commands."""
    if session.editor_mode is EditorMode.INSERT:
        if event.key is Key.ESC:
            session.editor_mode = EditorMode.NAVIGATION
        elif session.active_field is ActiveField.TITLE:
            _edit_title(session, event)
        else:
            _edit_content(session, event)
        return

    mode = session.mode
    match event:
        case KeyEvent(key=Key.ESC) | KeyEvent(key=Key.CHAR, text="q"):
            _leave_editor(session)
        case KeyEvent(key=Key.CHAR, text="s"):
            if isinstance(mode, EditNote):
                actions.save_edited_note(session, mode.note_id)
            else:
                actions.save_new_note(session)
        case KeyEvent(key=Key.CHAR, text="r"):
            actions.start_rewrite(
                session, mode.note_id if isinstance(mode, EditNote) else None
            )
        case KeyEvent(key=Key.CHAR, text="i"):
            session.editor_mode = EditorMode.INSERT
        case KeyEvent(key=Key.CHAR, text="t"):
            session.active_field = ActiveField.TITLE
            session.editor_mode = EditorMode.INSERT
        case KeyEvent(key=Key.CHAR, text="c"):
            session.active_field = ActiveField.CONTENT
            session.editor_mode = EditorMode.INSERT


def handle_view(session: Session, event: KeyEvent) -> None:
    mode = session.mode
    match event:
        case KeyEvent(key=Key.ESC) | KeyEvent(key=Key.CHAR, text="q"):
            session.mode = Home()
        case KeyEvent(key=Key.CHAR, text="e"):
            actions.open_edit(session, mode.note_id)
        case KeyEvent(key=Key.CHAR, text="r"):
            actions.start_rewrite(session, mode.note_id)
        case KeyEvent(key=Key.CHAR, text="d"):
            actions.open_delete_confirm(session, mode.note_id)


def handle_help(session: Session, event: KeyEvent) -> None:
    if event.key is Key.ESC or event.is_char("q"):
        session.mode = Home()


def handle_settings(session: Session, event: KeyEvent) -> None:
    field = session.settings_field
    match event:
        case KeyEvent(key=Key.ESC):
            session.api_key_input = ""
            session.mode = Home()
        case KeyEvent(key=Key.TAB):
            session.settings_field = field.next()
        case KeyEvent(key=Key.ENTER):
            actions.save_settings(session)
        case KeyEvent(key=Key.UP) if field is SettingsField.PROMPT_STYLE:
            actions.cycle_prompt_style(session, -1)
        case KeyEvent(key=Key.DOWN) if field is SettingsField.PROMPT_STYLE:
            actions.cycle_prompt_style(session, 1)
        case KeyEvent(key=Key.CHAR | Key.PASTE, text=text):
            text = " ".join(text.splitlines())
            if field is SettingsField.API_KEY:
                session.api_key_input += text.strip()
            elif field is SettingsField.CUSTOM_PROMPT:
                session.custom_prompt_input += text
        case KeyEvent(key=Key.BACKSPACE):
            if field is SettingsField.API_KEY:
                session.api_key_input = session.api_key_input[:-1]
            elif field is SettingsField.CUSTOM_PROMPT:
                session.custom_prompt_input = session.custom_prompt_input[:-1]


_FILTER_BUFFERS = {
    Search: "search_input",
    TagFilter: "tag_input",
    ProjectFilter: "project_input",
}


def handle_filter_input(session: Session, event: KeyEvent) -> None:
    """Single-line input for the search, tag and project filters."""
    attr = _FILTER_BUFFERS[type(session.mode)]
    value = getattr(session, attr)
    match event:
        case KeyEvent(key=Key.ESC):
            session.mode = Home()
        case KeyEvent(key=Key.ENTER):
            actions.commit_filter_input(session)
        case KeyEvent(key=Key.CHAR | Key.PASTE, text=text):
            setattr(session, attr, value + " ".join(text.splitlines()))
        case KeyEvent(key=Key.BACKSPACE):
            setattr(session, attr, value[:-1])


def handle_delete_confirm(session: Session, event: KeyEvent) -> None:
    mode = session.mode
    match event:
        case KeyEvent(key=Key.TAB | Key.UP | Key.DOWN):
            actions.toggle_deletion_type(session)
        case KeyEvent(key=Key.ENTER) | KeyEvent(key=Key.CHAR, text="y"):
            actions.delete_note(session, mode.note_id)
        case KeyEvent(key=Key.ESC) | KeyEvent(key=Key.CHAR, text="n"):
            session.mode = Home()


def handle_ai_rewrite(session: Session, event: KeyEvent) -> None:
    match event:
        case KeyEvent(key=Key.ENTER) if session.ai_state.status is AiStatus.SUCCESS:
            actions.accept_rewrite(session)
        case KeyEvent(key=Key.ESC):
            actions.reject_rewrite(session)


def handle_ai_command(session: Session, event: KeyEvent) -> None:
    """Compose, then confirm the generated query, then apply or dismiss results."""
    mode = session.mode
    if event.key is Key.ESC:
        actions.cancel_ai_command(session)
        return

    if mode.results is not None:
        if event.key is Key.ENTER:
            actions.apply_ai_command_results(session)
        elif event.is_char("n"):
            actions.edit_ai_command(session)
        return

    if mode.awaiting_confirmation:
        if event.key is Key.ENTER or event.is_char("y"):
            actions.confirm_ai_command(session)
        elif event.is_char("n"):
            actions.edit_ai_command(session)
        return

    if session.ai_state.is_processing:
        return

    match event:
        case KeyEvent(key=Key.ENTER):
            actions.submit_ai_command(session)
        case KeyEvent(key=Key.CHAR | Key.PASTE, text=text):
            session.ai_command_input += " ".join(text.splitlines())
        case KeyEvent(key=Key.BACKSPACE):
            session.ai_command_input = session.ai_command_input[:-1]
