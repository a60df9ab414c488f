"""Rich renderables for each session mode.

Renderers only read the session; they never change it.
"""

from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stash.core.settings import PROMPT_STYLE_NAMES, style_label
from stash.core.types import Note, SearchResult
from stash.session.modes import (
    ActiveField,
    AddNote,
    AiCommand,
    AiRewrite,
    AiStatus,
    DeleteConfirm,
    DeletionType,
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

CURSOR = "▏"

HELP_ROWS = [
    ("Home", "a", "Add a note"),
    ("Home", "enter", "View selected note"),
    ("Home", "j / k, arrows", "Move selection"),
    ("Home", "/", "Search (#tag +project -#tag text)"),
    ("Home", "t / p", "Filter by tag / project"),
    ("Home", "x", "Clear filters"),
    ("Home", "d", "Delete selected note"),
    ("Home", "c", "Ask AI to build a search"),
    ("Home", "r", "Reload notes from disk"),
    ("Home", "s", "Settings"),
    ("Home", "q", "Quit"),
    ("Editor", "esc", "Leave insert mode"),
    ("Editor", "i / t / c", "Insert / edit title / edit content"),
    ("Editor", "s", "Save"),
    ("Editor", "r", "AI rewrite"),
    ("Editor", "q", "Back without saving"),
    ("View", "e / r / d", "Edit / AI rewrite / delete"),
    ("Anywhere", "ctrl+c", "Quit"),
]


def _format_date(note: Note) -> str:
    return note.created.strftime("%Y-%m-%d %H:%M")


def _tags_text(tags: list[str], marker: str, style: str) -> Text:
    return Text(" ".join(f"{marker}{t}" for t in tags), style=style)


def render_header(session: Session) -> RenderableType:
    mode_name = type(session.mode).__name__
    text = Text.assemble(
        ("stash", "bold blue"),
        "  ",
        (mode_name, "cyan"),
        "  ",
        (f"{len(session.notes)}/{len(session.all_notes)} notes", "dim"),
    )
    return Panel(text, border_style="blue")


def render_status(session: Session) -> RenderableType:
    if session.status_message:
        return Panel(Text(session.status_message, style="yellow"), border_style="dim")
    filters = []
    if session.search_filter:
        filters.append(f"search: {session.search_filter}")
    if session.tag_filter:
        filters.append(f"tag: {session.tag_filter}")
    if session.project_filter:
        filters.append(f"project: {session.project_filter}")
    hint = " | ".join(filters) if filters else "h for help, q to quit"
    return Panel(Text(hint, style="dim"), border_style="dim")


def render_note_table(session: Session) -> RenderableType:
    if not session.notes:
        message = (
            "no notes match the current filters (x to clear)"
            if session.has_filters
            else "no notes yet, press 'a' to add one"
        )
        return Text(message, style="dim")

    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Title", ratio=3)
    table.add_column("Tags", ratio=2)
    table.add_column("Projects", ratio=2)
    table.add_column("Created", style="dim", no_wrap=True)
    for i, note in enumerate(session.notes):
        table.add_row(
            note.display_title,
            _tags_text(note.tags, "#", "green"),
            _tags_text(note.projects, "+", "magenta"),
            _format_date(note),
            style="reverse" if i == session.selected else None,
        )
    return table


def render_editor(session: Session) -> RenderableType:
    inserting = session.editor_mode is EditorMode.INSERT
    title_active = session.active_field is ActiveField.TITLE

    title = Text(session.title_input or "", style="bold")
    if inserting and title_active:
        title.append(CURSOR, style="blink")

    content = Text()
    row, col = session.content.cursor
    for i, line in enumerate(session.content.lines):
        if i:
            content.append("\n")
        if inserting and not title_active and i == row:
            content.append(line[:col])
            content.append(CURSOR, style="blink")
            content.append(line[col:])
        else:
            content.append(line)

    heading = "Edit note" if isinstance(session.mode, EditNote) else "New note"
    sub_mode = "-- INSERT --" if inserting else "-- NAVIGATION --"
    hints = (
        "esc: navigation"
        if inserting
        else "s: save  r: ai rewrite  i: insert  t: title  c: content  q: back"
    )
    preview = Text.assemble(
        ("tags: ", "dim"),
        _tags_text(session.preview_tags, "#", "green"),
        ("   projects: ", "dim"),
        _tags_text(session.preview_projects, "+", "magenta"),
    )
    return Group(
        Panel(title, title="Title", border_style="cyan" if title_active else "dim"),
        Panel(
            content,
            title=heading,
            border_style="dim" if title_active else "cyan",
        ),
        preview,
        Text.assemble((sub_mode, "bold"), "  ", (hints, "dim")),
    )


def render_note(note: Note | None) -> RenderableType:
    if note is None:
        return Text("note not found", style="red")
    meta = Text.assemble(
        (f"created {_format_date(note)}", "dim"),
        (
            f"  updated {note.updated.strftime('%Y-%m-%d %H:%M')}"
            if note.updated
            else "",
            "dim",
        ),
        "  ",
        _tags_text(note.tags, "#", "green"),
        " ",
        _tags_text(note.projects, "+", "magenta"),
    )
    return Group(
        Panel(Markdown(note.content or " "), title=note.display_title, border_style="green"),
        meta,
        Text("e: edit  r: ai rewrite  d: delete  q: back", style="dim"),
    )


def render_help() -> RenderableType:
    table = Table(title="Keys", show_header=True, header_style="bold cyan")
    table.add_column("Where", style="dim")
    table.add_column("Key", style="green")
    table.add_column("Action")
    for where, key, action in HELP_ROWS:
        table.add_row(where, key, action)
    return table


def render_settings(session: Session) -> RenderableType:
    focus = session.settings_field

    def field_title(name: str, field: SettingsField) -> str:
        return f"> {name}" if focus is field else name

    key_state = "set" if session.settings.has_api_key else "not set"
    masked = "*" * len(session.api_key_input)
    api_key = Text.assemble((masked or f"(currently {key_state})", "bold"))

    styles = Text()
    for name in PROMPT_STYLE_NAMES:
        selected = name == session.prompt_style_input
        styles.append(
            f"{'(*)' if selected else '( )'} {style_label(name)}\n",
            style="bold cyan" if selected else None,
        )

    return Group(
        Panel(api_key, title=field_title("API key", SettingsField.API_KEY)),
        Panel(styles, title=field_title("Rewrite style", SettingsField.PROMPT_STYLE)),
        Panel(
            Text(session.custom_prompt_input),
            title=field_title("Custom instruction", SettingsField.CUSTOM_PROMPT),
        ),
        Text("tab: next field  up/down: style  enter: save  esc: back", style="dim"),
    )


def render_filter_input(session: Session) -> RenderableType:
    match session.mode:
        case Search():
            label, value = "Search", session.search_input
        case TagFilter():
            label, value = "Tag filter", session.tag_input
        case _:
            label, value = "Project filter", session.project_input
    return Group(
        Panel(Text(value + CURSOR), title=label, border_style="cyan"),
        Text("enter: apply  esc: cancel  (empty clears)", style="dim"),
        render_note_table(session),
    )


def render_delete_confirm(session: Session, note_id) -> RenderableType:
    note = session.find_note(note_id)
    options = Text()
    for kind, label in (
        (DeletionType.SOFT, "soft delete (tag as deleted)"),
        (DeletionType.HARD, "permanently delete file"),
    ):
        chosen = session.deletion_preference is kind
        options.append(
            f"{'>' if chosen else ' '} {label}\n", style="bold red" if chosen else None
        )
    return Panel(
        Group(
            Text(f"Delete '{note.display_title if note else note_id}'?"),
            options,
            Text("tab: toggle  enter/y: confirm  esc/n: cancel", style="dim"),
        ),
        title="Delete",
        border_style="red",
    )


def _render_ai_state(session: Session) -> RenderableType | None:
    match session.ai_state.status:
        case AiStatus.PROCESSING:
            return Text("thinking...", style="bold blue")
        case AiStatus.ERROR:
            return Text(session.ai_state.message or "ai error", style="red")
    return None


def render_ai_rewrite(session: Session, mode: AiRewrite) -> RenderableType:
    state = _render_ai_state(session)
    if mode.rewritten is None:
        body = state or Text("waiting...", style="dim")
        return Group(Panel(body, title="AI rewrite"), Text("esc: cancel", style="dim"))
    return Group(
        Panel(Markdown(mode.rewritten), title="AI rewrite", border_style="green"),
        Text("enter: accept  esc: reject", style="dim"),
    )


def _render_results(results: tuple[SearchResult, ...] | str) -> RenderableType:
    if isinstance(results, str):
        return Text(results)
    if not results:
        return Text("no matching notes", style="dim")
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Score", justify="right", style="dim")
    table.add_column("Note", ratio=2)
    table.add_column("Matches", ratio=3)
    for result in results:
        matches = Text()
        matches.append_text(_tags_text(result.tag_matches, "#", "green"))
        matches.append(" ")
        matches.append_text(_tags_text(result.project_matches, "+", "magenta"))
        for snippet in result.snippets:
            matches.append(f"\n{snippet}", style="dim")
        table.add_row(str(result.score), result.note.display_title, matches)
    return table


def render_ai_command(session: Session, mode: AiCommand) -> RenderableType:
    parts: list[RenderableType] = []
    if mode.natural_input:
        parts.append(Text.assemble(("you asked: ", "dim"), mode.natural_input))
    else:
        parts.append(
            Panel(
                Text(session.ai_command_input + CURSOR),
                title="Describe what you're looking for",
                border_style="cyan",
            )
        )
    if mode.generated_query is not None:
        parts.append(
            Text.assemble(("query: ", "dim"), (mode.generated_query, "bold green"))
        )
    state = _render_ai_state(session)
    if state is not None:
        parts.append(state)
    if mode.results is not None:
        parts.append(_render_results(mode.results))
        parts.append(Text("enter: use as search  n: new query  esc: back", style="dim"))
    elif mode.awaiting_confirmation:
        parts.append(Text("enter/y: run this query  n: edit  esc: cancel", style="dim"))
    elif session.ai_state.status is AiStatus.ERROR and mode.natural_input:
        parts.append(
            Panel(
                Text(session.ai_command_input + CURSOR),
                title="Try again",
                border_style="cyan",
            )
        )
    return Group(*parts)


def render_body(session: Session) -> RenderableType:
    mode = session.mode
    match mode:
        case Home():
            return render_note_table(session)
        case AddNote() | EditNote():
            return render_editor(session)
        case ViewNote(note_id=note_id):
            return render_note(session.find_note(note_id))
        case Help():
            return render_help()
        case Settings():
            return render_settings(session)
        case Search() | TagFilter() | ProjectFilter():
            return render_filter_input(session)
        case DeleteConfirm(note_id=note_id):
            return render_delete_confirm(session, note_id)
        case AiRewrite():
            return render_ai_rewrite(session, mode)
        case AiCommand():
            return render_ai_command(session, mode)
    return Text("")


def render(session: Session) -> RenderableType:
    """Full screen for the current session state."""
    layout = Layout()
    layout.split_column(
        Layout(render_header(session), name="header", size=3),
        Layout(render_body(session), name="body"),
        Layout(render_status(session), name="status", size=3),
    )
    return layout
