"""Query engine: parsing, fuzzy scoring, evaluation and ranking.

Query syntax mixes free text with tag and project tokens::

    #rust +webapp error handling -#old

``#tag``/``+project`` are requirements, ``-#tag``/``-+project`` exclusions,
and whatever is left over is fuzzy-matched against titles and content lines.
"""

import re
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from stash.core.extract import extract_projects
from stash.core.types import Note, ParsedQuery, SearchResult

QUERY_TOKEN_PATTERN = re.compile(r"(-?)([#+])(\w+)")

# Score given to every surviving note when the query has no free text
BASELINE_SCORE = 100

MAX_SNIPPETS = 3

# Fuzzy scoring weights
SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_BOUNDARY_WHITE = BONUS_BOUNDARY + 2
BONUS_NON_WORD = SCORE_MATCH // 2
BONUS_CAMEL = BONUS_BOUNDARY - 1
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

SEARCH_FLAGS = ("--list-tags", "--list-projects", "--case-sensitive")
_UNSAFE_CHARS = set(";|&`$<>\\")


class QueryError(Exception):
    """Raised when a query string is not valid search syntax."""

    pass


# --- Parsing ---


def parse_query(raw: str) -> ParsedQuery:
    """
    Split a raw query into free text and tag/project criteria.

    Args:
        raw: Query string, e.g. ``"#rust -+old error handling"``

    Returns:
        ParsedQuery with duplicates preserved in token order
    """
    tags: list[str] = []
    projects: list[str] = []
    exclude_tags: list[str] = []
    exclude_projects: list[str] = []

    for token in QUERY_TOKEN_PATTERN.finditer(raw):
        negated, marker, word = token.groups()
        match (bool(negated), marker):
            case (False, "#"):
                tags.append(word)
            case (False, "+"):
                projects.append(word)
            case (True, "#"):
                exclude_tags.append(word)
            case (True, "+"):
                exclude_projects.append(word)

    text = " ".join(QUERY_TOKEN_PATTERN.sub(" ", raw).split())
    return ParsedQuery(
        text=text,
        tags=tags,
        projects=projects,
        exclude_tags=exclude_tags,
        exclude_projects=exclude_projects,
    )


def format_query(query: ParsedQuery) -> str:
    """Render a ParsedQuery back into query syntax."""
    parts = [f"#{t}" for t in query.tags]
    parts += [f"+{p}" for p in query.projects]
    parts += [f"-#{t}" for t in query.exclude_tags]
    parts += [f"-+{p}" for p in query.exclude_projects]
    if query.text:
        parts.append(query.text)
    return " ".join(parts)


def parse_allow_list(value: str | None) -> set[str]:
    """Comma-separated allow-list to a lower-cased set; blanks dropped."""
    if not value:
        return set()
    return {item.strip().lower() for item in value.split(",") if item.strip()}


# --- Fuzzy matching ---

_CHAR_WHITE = 0
_CHAR_NON_WORD = 1
_CHAR_LOWER = 2
_CHAR_UPPER = 3
_CHAR_NUMBER = 4


def _char_class(ch: str) -> int:
    if ch.isspace():
        return _CHAR_WHITE
    if ch.isdigit():
        return _CHAR_NUMBER
    if ch.isupper():
        return _CHAR_UPPER
    if ch.isalpha() or ch == "_":
        return _CHAR_LOWER
    return _CHAR_NON_WORD


def _bonus_for(prev_class: int, cur_class: int) -> int:
    if cur_class > _CHAR_NON_WORD:
        if prev_class == _CHAR_WHITE:
            return BONUS_BOUNDARY_WHITE
        if prev_class == _CHAR_NON_WORD:
            return BONUS_BOUNDARY
        if prev_class == _CHAR_LOWER and cur_class == _CHAR_UPPER:
            return BONUS_CAMEL
        if prev_class != _CHAR_NUMBER and cur_class == _CHAR_NUMBER:
            return BONUS_CAMEL
        return 0
    if cur_class == _CHAR_NON_WORD:
        return BONUS_NON_WORD
    return BONUS_BOUNDARY_WHITE


def _fold(text: str) -> str:
    # Per-char lower() so positions line up with the original text
    return "".join(c.lower() if len(c.lower()) == 1 else c for c in text)


def fuzzy_score(pattern: str, text: str, case_sensitive: bool = False) -> int | None:
    """
    Score ``pattern`` as an in-order subsequence of ``text``.

    The tightest window containing the subsequence is found (forward scan for
    the end, backward scan for the start) and scored: every matched char earns
    SCORE_MATCH, word boundaries and consecutive runs earn bonuses, gaps cost.

    Args:
        pattern: Needle; matched literally, spaces included
        text: Haystack
        case_sensitive: Compare exact case when True

    Returns:
        Positive score, or None when ``pattern`` is not a subsequence
    """
    if not pattern or len(pattern) > len(text):
        return None

    needle = pattern if case_sensitive else _fold(pattern)
    haystack = text if case_sensitive else _fold(text)

    idx = 0
    end = -1
    for i, ch in enumerate(haystack):
        if ch == needle[idx]:
            idx += 1
            if idx == len(needle):
                end = i + 1
                break
    if end == -1:
        return None

    idx = len(needle) - 1
    start = 0
    for i in range(end - 1, -1, -1):
        if haystack[i] == needle[idx]:
            idx -= 1
            if idx < 0:
                start = i
                break

    score = 0
    idx = 0
    in_gap = False
    consecutive = 0
    first_bonus = 0
    prev_class = _char_class(text[start - 1]) if start > 0 else _CHAR_WHITE
    for i in range(start, end):
        cur_class = _char_class(text[i])
        if idx < len(needle) and haystack[i] == needle[idx]:
            score += SCORE_MATCH
            bonus = _bonus_for(prev_class, cur_class)
            if consecutive == 0:
                first_bonus = bonus
            else:
                if bonus >= BONUS_BOUNDARY and bonus > first_bonus:
                    first_bonus = bonus
                bonus = max(bonus, first_bonus, BONUS_CONSECUTIVE)
            score += bonus * BONUS_FIRST_CHAR_MULTIPLIER if idx == 0 else bonus
            in_gap = False
            consecutive += 1
            idx += 1
        else:
            score += SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            in_gap = True
            consecutive = 0
            first_bonus = 0
        prev_class = cur_class

    return max(score, 1)


# --- Evaluation and ranking ---


def _note_projects(note: Note) -> list[str]:
    projects = list(note.projects)
    for project in extract_projects(note.content):
        if project not in projects:
            projects.append(project)
    return projects


def _unique_in_order(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        key = value.lower()
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


def evaluate(
    note: Note,
    query: ParsedQuery,
    case_sensitive: bool = False,
    tag_filter: str | None = None,
    project_filter: str | None = None,
    path: Path | None = None,
) -> SearchResult | None:
    """
    Match a single note against a parsed query.

    Args:
        note: Candidate note
        query: Parsed query
        case_sensitive: Case-sensitive fuzzy matching of free text
        tag_filter: Comma-separated tag allow-list
        project_filter: Comma-separated project allow-list
        path: Storage location to attach to the result

    Returns:
        SearchResult, or None if the note is rejected
    """
    note_tags = {t.lower() for t in note.tags}
    note_projects = {p.lower() for p in _note_projects(note)}

    allowed_tags = parse_allow_list(tag_filter)
    if allowed_tags and not (allowed_tags & note_tags):
        return None
    allowed_projects = parse_allow_list(project_filter)
    if allowed_projects and not (allowed_projects & note_projects):
        return None

    if any(t.lower() not in note_tags for t in query.tags):
        return None
    if any(p.lower() not in note_projects for p in query.projects):
        return None
    if any(t.lower() in note_tags for t in query.exclude_tags):
        return None
    if any(p.lower() in note_projects for p in query.exclude_projects):
        return None

    score = 0
    title_match = False
    snippets: list[str] = []
    if query.text:
        if note.title:
            title_score = fuzzy_score(query.text, note.title, case_sensitive)
            if title_score is not None:
                title_match = True
                score = title_score
        for number, line in enumerate(note.content.splitlines(), start=1):
            line_score = fuzzy_score(query.text, line, case_sensitive)
            if line_score is None:
                continue
            score = max(score, line_score)
            if len(snippets) < MAX_SNIPPETS:
                snippets.append(f"Line {number}: {line.strip()}")
    else:
        score = BASELINE_SCORE

    tag_matches = [t for t in _unique_in_order(query.tags) if t.lower() in note_tags]
    project_matches = [
        p for p in _unique_in_order(query.projects) if p.lower() in note_projects
    ]

    if score <= 0 and not tag_matches and not project_matches:
        return None

    return SearchResult(
        note=note,
        score=score,
        title_match=title_match,
        snippets=snippets,
        tag_matches=tag_matches,
        project_matches=project_matches,
        path=path,
    )


def rank(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Sort by (tag+project match count, score) descending; ties keep input order."""
    return sorted(results, key=lambda r: (r.match_count, r.score), reverse=True)


def search(
    notes: Iterable[Note],
    raw_query: str | ParsedQuery,
    case_sensitive: bool = False,
    tag_filter: str | None = None,
    project_filter: str | None = None,
    path_for: Callable[[UUID], Path] | None = None,
) -> list[SearchResult]:
    """
    Parse, evaluate and rank in one call.

    Args:
        notes: Candidate notes, in discovery order
        raw_query: Query string or already-parsed query
        case_sensitive: Case-sensitive fuzzy matching of free text
        tag_filter: Comma-separated tag allow-list
        project_filter: Comma-separated project allow-list
        path_for: Resolves a note id to its storage location

    Returns:
        Ranked results
    """
    query = (
        parse_query(raw_query) if isinstance(raw_query, str) else raw_query
    )
    results = []
    for note in notes:
        result = evaluate(
            note,
            query,
            case_sensitive=case_sensitive,
            tag_filter=tag_filter,
            project_filter=project_filter,
            path=path_for(note.id) if path_for else None,
        )
        if result is not None:
            results.append(result)
    return rank(results)


# --- Discovery ---


def _sorted_counts(counter: Counter) -> list[tuple[str, int]]:
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))


def tag_counts(notes: Iterable[Note]) -> list[tuple[str, int]]:
    """Distinct tags with occurrence counts, by count desc then name asc."""
    counter: Counter = Counter()
    for note in notes:
        counter.update(set(note.tags))
    return _sorted_counts(counter)


def project_counts(notes: Iterable[Note]) -> list[tuple[str, int]]:
    """Distinct projects with occurrence counts, by count desc then name asc."""
    counter: Counter = Counter()
    for note in notes:
        counter.update(set(_note_projects(note)))
    return _sorted_counts(counter)


# --- Session filtering ---


def filter_notes(
    all_notes: Iterable[Note],
    search_filter: str | None = None,
    tag_filter: str | None = None,
    project_filter: str | None = None,
    case_sensitive: bool = False,
) -> list[Note]:
    """
    Compute the visible note list.

    Soft-deleted notes never appear. The search filter is a full query (ranked);
    tag/project filters keep notes with a tag/project containing the text.
    """
    notes = [note for note in all_notes if not note.is_deleted]

    if search_filter:
        results = search(notes, search_filter, case_sensitive)
        notes = [result.note for result in results]

    if tag_filter:
        needle = tag_filter.lower()
        notes = [n for n in notes if any(needle in t.lower() for t in n.tags)]

    if project_filter:
        needle = project_filter.lower()
        notes = [
            n for n in notes if any(needle in p.lower() for p in _note_projects(n))
        ]

    return notes


# --- Validation of untrusted query strings ---


@dataclass(frozen=True)
class SearchArgs:
    """Validated ``search`` arguments: a query plus listing/case flags."""

    query: str = ""
    list_tags: bool = False
    list_projects: bool = False
    case_sensitive: bool = False


def parse_search_args(raw: str) -> SearchArgs:
    """
    Validate a search argument string, such as one produced by the AI.

    Only query text, tag/project tokens and the flags in SEARCH_FLAGS are
    accepted. Nothing here is ever executed.

    Raises:
        QueryError: On unknown options, shell syntax or an empty query
    """
    tokens = raw.split()

    flags: set[str] = set()
    words: list[str] = []
    for token in tokens:
        if token.startswith("--"):
            if token not in SEARCH_FLAGS:
                raise QueryError(f"unsupported option: {token}")
            flags.add(token)
            continue
        if token.startswith("-") and not QUERY_TOKEN_PATTERN.fullmatch(token):
            raise QueryError(f"unsupported option: {token}")
        if any(ch in _UNSAFE_CHARS for ch in token):
            raise QueryError(f"unsupported characters in query: {token}")
        words.append(token)

    args = SearchArgs(
        query=" ".join(words),
        list_tags="--list-tags" in flags,
        list_projects="--list-projects" in flags,
        case_sensitive="--case-sensitive" in flags,
    )
    if not args.query and not (args.list_tags or args.list_projects):
        raise QueryError("empty query")
    return args
