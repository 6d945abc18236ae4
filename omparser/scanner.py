"""Character-class scanners over exposition text."""

import re
from typing import Optional, Pattern

from omparser.errors import ErrorKind, ParseError

METRIC_NAME_PATTERN = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
LABEL_NAME_PATTERN = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
UNIT_PATTERN = re.compile(r"[a-zA-Z0-9_:]*")
HELP_PATTERN = re.compile(r"[^\n]*")
TOKEN_PATTERN = re.compile(r"[^ \n]*")


class Scanner:
    """Cursor over ``text[:end]`` that consumes character classes.

    Every scan consumes the longest matching prefix from the current
    position. Scans of classes that need at least one character raise
    ``ParseError`` with ``UNEXPECTED_CHAR`` when nothing matches.
    """

    def __init__(self, text: str, end: Optional[int] = None, pos: int = 0):
        self.text = text
        self.end = len(text) if end is None else end
        self.pos = pos

    def at_end(self) -> bool:
        return self.pos >= self.end

    def peek(self) -> str:
        """Return the current character, or an empty string at the end."""
        if self.at_end():
            return ""
        return self.text[self.pos]

    def startswith(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.pos, self.end)

    def error(self, kind: ErrorKind, message: str, offset: Optional[int] = None) -> ParseError:
        """Build an error at ``offset`` (the current position by default)."""
        return ParseError.at(kind, message, self.text, self.pos if offset is None else offset)

    def describe(self) -> str:
        """Describe the current character for error messages."""
        char = self.peek()
        if char == "":
            return "end of input"
        if char == "\n":
            return "end of line"
        return repr(char)

    def expect(self, char: str, kind: ErrorKind = ErrorKind.UNEXPECTED_CHAR, what: str = "") -> None:
        """Consume ``char`` or fail with ``kind``."""
        if self.peek() != char:
            expected = what or repr(char)
            raise self.error(kind, f"Expected {expected}, found {self.describe()}")
        self.pos += 1

    def scan(self, pattern: Pattern[str]) -> str:
        """Consume the longest prefix matching ``pattern``, possibly empty."""
        match = pattern.match(self.text, self.pos, self.end)
        value = match.group(0) if match else ""
        self.pos += len(value)
        return value

    def _scan_required(self, pattern: Pattern[str], what: str, kind: ErrorKind) -> str:
        value = self.scan(pattern)
        if not value:
            raise self.error(kind, f"Expected {what}, found {self.describe()}")
        return value

    def scan_metric_name(self) -> str:
        return self._scan_required(METRIC_NAME_PATTERN, "metric name", ErrorKind.UNEXPECTED_CHAR)

    def scan_label_name(self, kind: ErrorKind = ErrorKind.UNEXPECTED_CHAR) -> str:
        # Colons are valid in metric names but not in label names.
        return self._scan_required(LABEL_NAME_PATTERN, "label name", kind)

    def scan_unit(self) -> str:
        return self.scan(UNIT_PATTERN)

    def scan_help(self) -> str:
        return self.scan(HELP_PATTERN)

    def scan_token(self) -> str:
        """Consume up to the next space or newline."""
        return self.scan(TOKEN_PATTERN)
