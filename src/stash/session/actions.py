"""Session actions: the operations key handlers trigger.

Every action catches collaborator errors and turns them into a status
message; nothing here is allowed to end the session.
"""

import logging
from uuid import UUID

from stash.core import settings as user_settings
from stash.core.query import (
    QueryError,
    SearchArgs,
    parse_search_args,
    project_counts,
    search,
    tag_counts,
)
from stash.core.tasks import TaskBusyError, TaskOutcome, TaskSlot
from stash.core.types import Note, NoteSource, SearchResult
from stash.session.modes import (
    ActiveField,
    AddNote,
    AiCommand,
    AiRewrite,
    AiState,
    DeleteConfirm,
    DeletionType,
    EditNote,
    EditorMode,
    Home,
    ProjectFilter,
    Search,
    Settings,
    SettingsField,
    TagFilter,
    ViewNote,
)
from stash.session.state import Session
from stash.vault.notes import NoteStoreError

logger = logging.getLogger(__name__)

AI_NOT_CONFIGURED = "please configure your ai api key first (press 's' for settings)"


# --- Navigation ---


def open_add(session: Session) -> None:
    session.clear_editor()
    session.editor_mode = EditorMode.INSERT
    session.mode = AddNote()


def open_view(session: Session) -> None:
    note = session.selected_note
    if note is not None:
        session.mode = ViewNote(note.id)


def open_edit(session: Session, note_id: UUID) -> None:
    note = session.visible_note(note_id)
    if note is None:
        session.set_status("note not found")
        return
    session.load_editor(note)
    session.editor_mode = EditorMode.INSERT
    session.mode = EditNote(note.id)
    session.set_status("editing note")


def open_delete_confirm(session: Session, note_id: UUID | None = None) -> None:
    if note_id is None:
        note = session.selected_note
        note_id = note.id if note else None
    if note_id is None or session.visible_note(note_id) is None:
        return
    session.mode = DeleteConfirm(note_id)


def open_settings(session: Session) -> None:
    session.api_key_input = ""
    session.prompt_style_input = session.settings.prompt_style
    session.custom_prompt_input = session.settings.custom_prompt or ""
    session.settings_field = SettingsField.API_KEY
    session.mode = Settings()


def open_filter_input(session: Session, mode: Search | TagFilter | ProjectFilter) -> None:
    match mode:
        case Search():
            session.search_input = session.search_filter or ""
        case TagFilter():
            session.tag_input = session.tag_filter or ""
        case ProjectFilter():
            session.project_input = session.project_filter or ""
    session.mode = mode


def commit_filter_input(session: Session) -> None:
    """Commit the open filter input; an empty buffer clears that filter."""
    match session.mode:
        case Search():
            session.search_filter = session.search_input.strip() or None
            session.search_case_sensitive = False
        case TagFilter():
            session.tag_filter = session.tag_input.strip() or None
        case ProjectFilter():
            session.project_filter = session.project_input.strip() or None
        case _:
            return
    session.apply_filters()
    session.mode = Home()


def refresh(session: Session) -> None:
    try:
        session.reload()
    except (NoteStoreError, OSError) as e:
        session.set_status(f"error loading notes: {e}")
        return
    session.set_status("notes refreshed")


def clear_filters(session: Session) -> None:
    session.clear_filters()
    session.set_status("filters cleared")


# --- Saving ---


def save_new_note(session: Session) -> None:
    if session.content.is_blank():
        session.set_status("cannot save empty note")
        return
    try:
        session.repository.create(
            session.content.text,
            title=session.title_input.strip() or None,
            source=NoteSource.UI,
        )
        session.reload()
    except NoteStoreError as e:
        session.set_status(f"error saving note: {e}")
        return
    session.clear_editor()
    session.mode = Home()
    session.set_status("note saved successfully")


def save_edited_note(session: Session, note_id: UUID) -> None:
    note = session.find_note(note_id)
    if note is None:
        session.mode = Home()
        session.set_status("note not found")
        return
    if session.content.is_blank():
        session.set_status("cannot save empty note")
        return
    updated = note.with_content(session.content.text, title=session.title_input)
    try:
        session.repository.save(updated)
        session.reload()
    except NoteStoreError as e:
        session.mode = Home()
        session.set_status(f"error saving note: {e}")
        return
    session.clear_editor()
    session.mode = ViewNote(note_id)
    session.set_status("note updated successfully")


# --- Deletion ---


def delete_note(session: Session, note_id: UUID) -> None:
    """Soft or hard delete per the session preference, then back to Home."""
    note = session.find_note(note_id)
    session.mode = Home()
    if note is None:
        session.set_status("note not found")
        return

    try:
        if session.deletion_preference is DeletionType.SOFT:
            session.repository.save(note.soft_deleted())
            message = "note moved to trash (soft delete)"
        else:
            session.repository.delete(note_id)
            message = "note permanently deleted"
        session.reload()
    except NoteStoreError as e:
        session.set_status(f"error deleting note: {e}")
        return
    logger.info(f"Deleted note {note_id} ({session.deletion_preference})")
    session.set_status(message)


def toggle_deletion_type(session: Session) -> None:
    session.deletion_preference = session.deletion_preference.toggled()


# --- AI rewrite ---


def start_rewrite(session: Session, note_id: UUID | None) -> None:
    """
    Start rewriting a saved note, or the add-screen draft when note_id is None.

    Nothing changes (besides the status line) when AI isn't configured or a
    rewrite is already running.
    """
    if not session.ai_configured:
        session.set_status(AI_NOT_CONFIGURED)
        return

    if note_id is None:
        if session.content.is_blank():
            session.set_status("cannot rewrite empty content")
            return
        note = Note.from_content(
            session.content.text, title=session.title_input.strip() or None
        )
    else:
        note = session.visible_note(note_id)
        if note is None:
            session.set_status("note not found")
            return

    if session.tasks.is_busy(TaskSlot.REWRITE):
        session.set_status("ai rewrite already in progress")
        return
    try:
        session.tasks.start(TaskSlot.REWRITE, session.ai.rewrite(note))
    except TaskBusyError as e:
        session.set_status(str(e))
        return
    session.ai_state = AiState.processing()
    session.mode = AiRewrite(note_id=note_id)


def accept_rewrite(session: Session) -> None:
    mode = session.mode
    if not isinstance(mode, AiRewrite) or mode.rewritten is None:
        return
    session.ai_state = AiState.idle()

    if mode.is_draft:
        session.content.set_text(mode.rewritten)
        session.refresh_preview()
        session.active_field = ActiveField.CONTENT
        session.editor_mode = EditorMode.NAVIGATION
        session.mode = AddNote()
        session.set_status("draft updated with ai rewrite")
        return

    note = session.find_note(mode.note_id)
    if note is None:
        session.mode = Home()
        session.set_status("note not found")
        return
    try:
        session.repository.save(note.with_content(mode.rewritten, title=note.title))
        session.reload()
    except NoteStoreError as e:
        session.mode = Home()
        session.set_status(f"error saving note: {e}")
        return
    session.mode = ViewNote(note.id)
    session.set_status("note updated with ai rewrite")


def reject_rewrite(session: Session) -> None:
    mode = session.mode
    if not isinstance(mode, AiRewrite):
        return
    cancelled = session.tasks.cancel(TaskSlot.REWRITE)
    session.ai_state = AiState.idle()
    if mode.is_draft:
        session.editor_mode = EditorMode.NAVIGATION
        session.mode = AddNote()
    else:
        session.mode = ViewNote(mode.note_id)
    session.set_status("ai rewrite cancelled" if cancelled else "ai rewrite rejected")


# --- AI command ---


def open_ai_command(session: Session) -> None:
    if not session.ai_configured:
        session.set_status(AI_NOT_CONFIGURED)
        return
    session.ai_command_input = ""
    session.ai_state = AiState.idle()
    session.mode = AiCommand()


def submit_ai_command(session: Session) -> None:
    text = session.ai_command_input.strip()
    if not text:
        session.set_status("please enter a query")
        return
    if session.tasks.is_busy(TaskSlot.COMMAND):
        session.set_status("ai command already in progress")
        return
    session.tasks.start(TaskSlot.COMMAND, session.ai.translate_query(text))
    session.ai_state = AiState.processing()
    session.mode = AiCommand(natural_input=text)


def edit_ai_command(session: Session) -> None:
    """Drop the generated query and go back to composing."""
    mode = session.mode
    if isinstance(mode, AiCommand):
        session.ai_command_input = mode.natural_input
    session.ai_state = AiState.idle()
    session.mode = AiCommand(natural_input=session.ai_command_input)


def cancel_ai_command(session: Session) -> None:
    session.tasks.cancel(TaskSlot.COMMAND)
    session.ai_state = AiState.idle()
    session.ai_command_input = ""
    session.mode = Home()


def format_counts(title: str, marker: str, counts: list[tuple[str, int]]) -> str:
    if not counts:
        return f"no {title} found"
    lines = [f"{title}:"]
    lines += [f"  {marker}{name} ({count})" for name, count in counts]
    return "\n".join(lines)


def run_search_args(session: Session, args: SearchArgs) -> tuple[SearchResult, ...] | str:
    """Execute validated search arguments against the visible notes."""
    visible = [n for n in session.all_notes if not n.is_deleted]
    sections = []
    if args.list_tags:
        sections.append(format_counts("tags", "#", tag_counts(visible)))
    if args.list_projects:
        sections.append(format_counts("projects", "+", project_counts(visible)))
    if sections:
        return "\n\n".join(sections)
    return tuple(
        search(
            visible,
            args.query,
            case_sensitive=args.case_sensitive,
            path_for=session.repository.path_for,
        )
    )


def confirm_ai_command(session: Session) -> None:
    mode = session.mode
    if not isinstance(mode, AiCommand) or not mode.awaiting_confirmation:
        return
    try:
        args = parse_search_args(mode.generated_query or "")
    except QueryError as e:
        session.ai_state = AiState.error(f"rejected query: {e}")
        session.mode = AiCommand(mode.natural_input, mode.generated_query)
        return
    session.mode = AiCommand(
        natural_input=mode.natural_input,
        generated_query=mode.generated_query,
        results=run_search_args(session, args),
    )


def apply_ai_command_results(session: Session) -> None:
    """Use a confirmed search query as the Home search filter."""
    mode = session.mode
    if not isinstance(mode, AiCommand) or mode.results is None:
        return
    session.ai_state = AiState.idle()
    session.ai_command_input = ""
    session.mode = Home()
    if isinstance(mode.results, str):
        return
    args = parse_search_args(mode.generated_query or "")
    session.search_filter = args.query or None
    session.search_case_sensitive = args.case_sensitive
    session.apply_filters()
    suffix = " (case-sensitive)" if args.case_sensitive else ""
    session.set_status(f"search filter: {args.query}{suffix}")


# --- Settings ---


def save_settings(session: Session) -> None:
    entered_key = session.api_key_input.strip()
    updated = session.settings.model_copy(
        update={
            "prompt_style": session.prompt_style_input,
            "custom_prompt": session.custom_prompt_input.strip() or None,
        }
    )
    if entered_key:
        updated = updated.with_api_key(entered_key)
    try:
        session.settings_store.save(updated)
        session.settings = session.settings_store.load()
    except user_settings.SettingsError as e:
        if entered_key:
            session.set_status(f"failed to save api key: {e}")
        else:
            session.set_status(f"failed to save settings: {e}")
        return
    session.ai.update_settings(session.settings)
    session.api_key_input = ""
    session.set_status(
        "api key saved successfully" if entered_key else "settings saved successfully"
    )


def cycle_prompt_style(session: Session, step: int) -> None:
    session.prompt_style_input = user_settings.cycle_style(
        session.prompt_style_input, step
    )


# --- Background results ---


def apply_task_outcome(session: Session, outcome: TaskOutcome) -> None:
    """Fold a finished background operation into the session."""
    mode = session.mode
    match outcome.slot:
        case TaskSlot.REWRITE:
            if not isinstance(mode, AiRewrite):
                logger.debug("Rewrite finished after leaving rewrite mode, ignored")
                return
            if outcome.ok:
                session.ai_state = AiState.success()
                session.mode = AiRewrite(mode.note_id, outcome.value)
            else:
                session.ai_state = AiState.error(outcome.value)
        case TaskSlot.COMMAND:
            if not isinstance(mode, AiCommand):
                logger.debug("Translation finished after leaving command mode, ignored")
                return
            if not outcome.ok:
                session.ai_state = AiState.error(outcome.value)
                return
            try:
                parse_search_args(outcome.value)
            except QueryError as e:
                session.ai_state = AiState.error(
                    f"rejected ai query '{outcome.value}': {e}"
                )
                session.mode = AiCommand(mode.natural_input, outcome.value)
                return
            session.ai_state = AiState.success()
            session.mode = AiCommand(
                natural_input=mode.natural_input,
                generated_query=outcome.value,
                awaiting_confirmation=True,
            )


def poll_tasks(session: Session) -> bool:
    """Apply at most one finished background result. Returns True if one was."""
    outcome = session.tasks.poll()
    if outcome is None:
        return False
    apply_task_outcome(session, outcome)
    return True
