"""Tests for the editor text buffer."""

from stash.session.editor import TextBuffer


class TestTextBuffer:
    """Tests for TextBuffer editing and cursor movement."""

    def test_set_text_puts_cursor_at_end(self):
        buffer = TextBuffer("one\ntwo")

        assert buffer.cursor == (1, 3)

    def test_insert_in_middle(self):
        buffer = TextBuffer("held")
        buffer.move_left()
        buffer.move_left()

        buffer.insert("l")

        assert buffer.text == "helld"
        assert buffer.cursor == (0, 3)

    def test_insert_multiline(self):
        buffer = TextBuffer("ab")
        buffer.move_left()

        buffer.insert("1\n2")

        assert buffer.lines == ["a1", "2b"]
        assert buffer.cursor == (1, 1)

    def test_newline_splits_line(self):
        buffer = TextBuffer("abcd")
        buffer.move_left()
        buffer.move_left()

        buffer.newline()

        assert buffer.lines == ["ab", "cd"]
        assert buffer.cursor == (1, 0)

    def test_backspace_joins_lines(self):
        buffer = TextBuffer("ab\ncd")
        buffer.move_home()

        buffer.backspace()

        assert buffer.text == "abcd"
        assert buffer.cursor == (0, 2)

    def test_backspace_at_start_does_nothing(self):
        buffer = TextBuffer()

        buffer.backspace()

        assert buffer.text == ""
        assert buffer.cursor == (0, 0)

    def test_delete_joins_next_line(self):
        buffer = TextBuffer("ab\ncd")
        buffer.move_up()

        buffer.delete()

        assert buffer.text == "abcd"

    def test_vertical_moves_clamp_column(self):
        buffer = TextBuffer("a\nlonger line")

        buffer.move_up()
        assert buffer.cursor == (0, 1)
        buffer.move_down()
        assert buffer.cursor == (1, 1)

    def test_left_and_right_wrap_lines(self):
        buffer = TextBuffer("ab\ncd")
        buffer.move_home()

        buffer.move_left()
        assert buffer.cursor == (0, 2)
        buffer.move_right()
        assert buffer.cursor == (1, 0)

    def test_blank(self):
        assert TextBuffer(" \n\t").is_blank()
        assert not TextBuffer("x").is_blank()

    def test_crlf_normalized(self):
        assert TextBuffer("a\r\nb").lines == ["a", "b"]
