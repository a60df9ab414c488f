"""Unit tests for the query engine."""

import pytest

from stash.core.extract import extract_links, extract_projects, extract_tags
from stash.core.query import (
    BASELINE_SCORE,
    QueryError,
    evaluate,
    filter_notes,
    format_query,
    fuzzy_score,
    parse_query,
    parse_search_args,
    project_counts,
    rank,
    search,
    tag_counts,
)
from stash.core.types import ParsedQuery, SearchResult


class TestExtract:
    """Tests for inline token extraction."""

    def test_extract_tags_in_order_without_duplicates(self):
        """Tags come back in first-appearance order, deduplicated."""
        assert extract_tags("#rust and #async, more #rust") == ["rust", "async"]

    def test_extract_projects(self):
        """Projects are +word tokens."""
        assert extract_projects("work on +webapp and +cli_tool") == ["webapp", "cli_tool"]

    def test_extract_links(self):
        """Links are [[...]] targets."""
        assert extract_links("see [[Rust Notes]] and [[todo]]") == ["Rust Notes", "todo"]

    def test_no_tokens(self):
        """Plain text yields nothing."""
        assert extract_tags("plain text") == []
        assert extract_projects("1 + 1") == []


class TestParseQuery:
    """Tests for parse_query."""

    def test_splits_tokens_and_text(self):
        """Tags, projects and exclusions are pulled out; the rest is text."""
        query = parse_query("#rust +webapp error handling -#old -+legacy")

        assert query.tags == ["rust"]
        assert query.projects == ["webapp"]
        assert query.exclude_tags == ["old"]
        assert query.exclude_projects == ["legacy"]
        assert query.text == "error handling"

    def test_text_whitespace_is_collapsed(self):
        """Removing tokens from the middle leaves single spaces."""
        assert parse_query("error #rust   handling").text == "error handling"

    def test_duplicates_are_kept(self):
        """Repeated tokens stay in the list."""
        assert parse_query("#rust #rust").tags == ["rust", "rust"]

    def test_only_exclusion(self):
        """A lone exclusion has no text and no requirements."""
        query = parse_query("-#old")

        assert query == ParsedQuery(exclude_tags=["old"])

    def test_empty(self):
        """Empty string parses to an empty query."""
        assert parse_query("   ") == ParsedQuery()

    @pytest.mark.parametrize(
        "raw",
        [
            "#rust +webapp error handling",
            "-#old #new",
            "+a +b -+c text",
            "#x #x -#y",
        ],
    )
    def test_reparse_is_idempotent(self, raw):
        """Parsing the re-serialized query gives the same token sets."""
        first = parse_query(raw)
        second = parse_query(format_query(first))

        assert set(second.tags) == set(first.tags)
        assert set(second.projects) == set(first.projects)
        assert set(second.exclude_tags) == set(first.exclude_tags)
        assert set(second.exclude_projects) == set(first.exclude_projects)
        assert second.text == first.text


class TestFuzzyScore:
    """Tests for fuzzy_score."""

    def test_no_match_returns_none(self):
        assert fuzzy_score("xyz", "error handling") is None

    def test_empty_pattern_returns_none(self):
        assert fuzzy_score("", "anything") is None

    def test_subsequence_matches(self):
        """Characters need only appear in order."""
        assert fuzzy_score("ehd", "error handling") > 0

    def test_contiguous_beats_scattered(self):
        """A contiguous match scores higher than a spread-out one."""
        tight = fuzzy_score("handling", "error handling is tricky")
        loose = fuzzy_score("handling", "h a n d l i n g")

        assert tight > loose

    def test_case_insensitive_by_default(self):
        assert fuzzy_score("RUST", "rust is fun") is not None

    def test_case_sensitive(self):
        assert fuzzy_score("RUST", "rust is fun", case_sensitive=True) is None
        assert fuzzy_score("rust", "rust is fun", case_sensitive=True) is not None


class TestEvaluate:
    """Tests for evaluate and search."""

    def test_tag_project_and_text_scenario(self, make_note):
        """Query with tag, project and text finds the matching note and annotates it."""
        note = make_note("Working on +webapp today #rust\nerror handling is tricky")
        other = make_note("#python notes\nnothing relevant")

        results = search([other, note], "#rust +webapp error handling")

        assert len(results) == 1
        result = results[0]
        assert result.note.id == note.id
        assert result.title_match is False
        assert result.tag_matches == ["rust"]
        assert result.project_matches == ["webapp"]
        assert any("error handling is tricky" in s for s in result.snippets)

    def test_exclusion_only_scenario(self, make_note):
        """-#old keeps only notes without the tag, at baseline score."""
        old = make_note("an #old note")
        fresh = make_note("a #new note")

        results = search([old, fresh], "-#old")

        assert [r.note.id for r in results] == [fresh.id]
        assert results[0].score == BASELINE_SCORE

    def test_tag_only_queries_use_baseline(self, make_note):
        """Presence-only queries give baseline score and recorded matches."""
        notes = [
            make_note("#rust one"),
            make_note("#rust +cli two"),
            make_note("#go three"),
        ]

        results = search(notes, "#rust")

        assert len(results) == 2
        for result in results:
            assert result.score == BASELINE_SCORE
            assert result.tag_matches == ["rust"]

    def test_required_tag_is_case_insensitive(self, make_note):
        note = make_note("#Rust stuff")

        assert evaluate(note, parse_query("#rust")) is not None

    def test_missing_required_project_rejects(self, make_note):
        note = make_note("#rust without project")

        assert evaluate(note, parse_query("+webapp")) is None

    def test_excluded_project_rejects(self, make_note):
        note = make_note("+legacy code")

        assert evaluate(note, parse_query("-+legacy")) is None

    def test_title_match_flag(self, make_note):
        note = make_note("body text", title="Meeting notes")

        result = evaluate(note, parse_query("meeting"))

        assert result.title_match is True
        assert result.score > 0

    def test_snippets_are_capped_and_numbered(self, make_note):
        """At most three snippets, formatted with 1-based line numbers."""
        note = make_note("intro\ntodo one\n  todo two  \ntodo three\ntodo four")

        result = evaluate(note, parse_query("todo"))

        assert result.snippets == [
            "Line 2: todo one",
            "Line 3: todo two",
            "Line 4: todo three",
        ]

    def test_no_text_match_and_no_tag_match_rejects(self, make_note):
        note = make_note("completely different")

        assert evaluate(note, parse_query("zzz")) is None

    def test_tag_match_keeps_note_without_text_match(self, make_note):
        """A recorded tag match keeps the note even at score zero."""
        note = make_note("#rust but nothing else")

        result = evaluate(note, parse_query("#rust zzz"))

        assert result is not None
        assert result.score == 0
        assert result.tag_matches == ["rust"]

    def test_tag_allow_list(self, make_note):
        """Comma-separated allow-list must intersect the note's tags."""
        note = make_note("#rust #async")

        assert evaluate(note, parse_query(""), tag_filter="go, Rust") is not None
        assert evaluate(note, parse_query(""), tag_filter="go,python") is None

    def test_project_allow_list(self, make_note):
        note = make_note("+webapp work")

        assert evaluate(note, parse_query(""), project_filter="webapp") is not None
        assert evaluate(note, parse_query(""), project_filter="cli") is None

    def test_path_is_attached(self, make_note, tmp_path):
        note = make_note("#rust")

        results = search([note], "#rust", path_for=lambda note_id: tmp_path / f"{note_id}.md")

        assert results[0].path == tmp_path / f"{note.id}.md"


class TestRank:
    """Tests for rank."""

    def test_orders_by_match_count_then_score(self, make_note):
        a = SearchResult(note=make_note("a"), score=500)
        b = SearchResult(note=make_note("b"), score=10, tag_matches=["x"])
        c = SearchResult(note=make_note("c"), score=50, tag_matches=["x"])

        assert [r.note.content for r in rank([a, b, c])] == ["c", "b", "a"]

    def test_ties_keep_input_order(self, make_note):
        """Equal keys never swap, across repeated runs."""
        results = [SearchResult(note=make_note(str(i)), score=7) for i in range(10)]

        for _ in range(3):
            assert [r.note.content for r in rank(results)] == [str(i) for i in range(10)]


class TestCounts:
    """Tests for tag_counts and project_counts."""

    def test_tag_counts_sorted_by_count_then_name(self, make_note):
        notes = [
            make_note("#b #a"),
            make_note("#b"),
            make_note("#c #a"),
            make_note("#d"),
        ]

        assert tag_counts(notes) == [("a", 2), ("b", 2), ("c", 1), ("d", 1)]

    def test_project_counts_from_content(self, make_note):
        notes = [make_note("+web"), make_note("+web +cli")]

        assert project_counts(notes) == [("web", 2), ("cli", 1)]


class TestFilterNotes:
    """Tests for filter_notes."""

    def test_soft_deleted_always_excluded(self, make_note):
        """Deleted notes vanish from every view but stay in the input."""
        kept = make_note("#rust kept")
        deleted = make_note("#rust gone", extra_tags=["deleted"])
        all_notes = [kept, deleted]

        assert filter_notes(all_notes) == [kept]
        assert filter_notes(all_notes, search_filter="#rust") == [kept]
        assert filter_notes(all_notes, tag_filter="rust") == [kept]
        assert deleted in all_notes

    def test_is_pure(self, make_note):
        """Same inputs, same output."""
        notes = [make_note("#a one +p"), make_note("#b two"), make_note("#a three")]

        first = filter_notes(notes, search_filter="one", tag_filter="a")
        second = filter_notes(notes, search_filter="one", tag_filter="a")

        assert first == second

    def test_tag_filter_is_substring_case_insensitive(self, make_note):
        rust = make_note("#RustLang")
        go = make_note("#golang")

        assert filter_notes([rust, go], tag_filter="rust") == [rust]

    def test_project_filter(self, make_note):
        web = make_note("+webapp")
        cli = make_note("+cli")

        assert filter_notes([web, cli], project_filter="WEB") == [web]


class TestParseSearchArgs:
    """Tests for validating untrusted search argument strings."""

    def test_plain_query(self):
        args = parse_search_args("#rust +webapp error handling")

        assert args.query == "#rust +webapp error handling"
        assert not args.list_tags

    def test_flags(self):
        args = parse_search_args("--case-sensitive Rust")

        assert args.case_sensitive is True
        assert args.query == "Rust"

    def test_list_flag_without_query(self):
        assert parse_search_args("--list-tags").list_tags is True

    def test_exclusions_are_allowed(self):
        assert parse_search_args("#js -#old").query == "#js -#old"

    def test_apostrophes_in_text(self):
        """Quotes are ordinary characters, not shell quoting."""
        args = parse_search_args("#rust rust's borrow checker")

        assert args.query == "#rust rust's borrow checker"

    def test_unbalanced_quote_is_text(self):
        assert parse_search_args('"unterminated').query == '"unterminated'

    @pytest.mark.parametrize(
        "raw",
        [
            "--delete-all",
            "-rf notes",
            "rust; rm -rf ~",
            "$(whoami)",
            "rust | sh",
            "",
        ],
    )
    def test_rejects_anything_else(self, raw):
        with pytest.raises(QueryError):
            parse_search_args(raw)
