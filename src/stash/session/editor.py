"""Multi-line text buffer used by the note editor."""


class TextBuffer:
    """Lines of text plus a (row, col) cursor."""

    def __init__(self, text: str = ""):
        self.lines: list[str] = [""]
        self.row = 0
        self.col = 0
        self.set_text(text)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def cursor(self) -> tuple[int, int]:
        return self.row, self.col

    def is_blank(self) -> bool:
        return not self.text.strip()

    def set_text(self, text: str) -> None:
        """Replace the contents; cursor goes to the end."""
        self.lines = text.replace("\r\n", "\n").split("\n")
        self.row = len(self.lines) - 1
        self.col = len(self.lines[self.row])

    def clear(self) -> None:
        self.set_text("")

    def insert(self, text: str) -> None:
        """Insert text at the cursor; embedded newlines split lines."""
        for i, chunk in enumerate(text.replace("\r\n", "\n").split("\n")):
            if i:
                self.newline()
            line = self.lines[self.row]
            self.lines[self.row] = line[: self.col] + chunk + line[self.col :]
            self.col += len(chunk)

    def newline(self) -> None:
        line = self.lines[self.row]
        self.lines[self.row] = line[: self.col]
        self.lines.insert(self.row + 1, line[self.col :])
        self.row += 1
        self.col = 0

    def backspace(self) -> None:
        if self.col > 0:
            line = self.lines[self.row]
            self.lines[self.row] = line[: self.col - 1] + line[self.col :]
            self.col -= 1
        elif self.row > 0:
            previous = self.lines[self.row - 1]
            self.col = len(previous)
            self.lines[self.row - 1] = previous + self.lines.pop(self.row)
            self.row -= 1

    def delete(self) -> None:
        line = self.lines[self.row]
        if self.col < len(line):
            self.lines[self.row] = line[: self.col] + line[self.col + 1 :]
        elif self.row < len(self.lines) - 1:
            self.lines[self.row] = line + self.lines.pop(self.row + 1)

    def move_left(self) -> None:
        if self.col > 0:
            self.col -= 1
        elif self.row > 0:
            self.row -= 1
            self.col = len(self.lines[self.row])

    def move_right(self) -> None:
        if self.col < len(self.lines[self.row]):
            self.col += 1
        elif self.row < len(self.lines) - 1:
            self.row += 1
            self.col = 0

    def move_up(self) -> None:
        if self.row > 0:
            self.row -= 1
            self.col = min(self.col, len(self.lines[self.row]))

    def move_down(self) -> None:
        if self.row < len(self.lines) - 1:
            self.row += 1
            self.col = min(self.col, len(self.lines[self.row]))

    def move_home(self) -> None:
        self.col = 0

    def move_end(self) -> None:
        self.col = len(self.lines[self.row])
