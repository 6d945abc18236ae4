"""Parse errors for the OpenMetrics text format."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Reason a parse failed."""

    UNEXPECTED_CHAR = "unexpected_char"
    INVALID_NUMBER = "invalid_number"
    INVALID_METRIC_TYPE = "invalid_metric_type"
    MISSING_SENTINEL = "missing_sentinel"
    TRAILING_CONTENT = "trailing_content"
    MALFORMED_LABEL_SET = "malformed_label_set"
    DUPLICATE_LABEL = "duplicate_label"
    DUPLICATE_DESCRIPTOR = "duplicate_descriptor"
    DUPLICATE_FAMILY = "duplicate_family"
    DUPLICATE_SAMPLE = "duplicate_sample"
    INVALID_ENCODING = "invalid_encoding"
    # Never produced by user input; signals a bug in family grouping.
    EMPTY_FAMILY = "empty_family"


class ParseError(Exception):
    """A positioned failure to parse an exposition.

    Attributes:
        kind: Reason for the failure
        message: Human readable description
        offset: Character offset into the decoded text
        line: 1-based line number
        column: 1-based column number
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        offset: int = 0,
        line: int = 1,
        column: int = 1,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column

    @classmethod
    def at(cls, kind: ErrorKind, message: str, text: str, offset: int) -> "ParseError":
        """Build an error at an offset, computing its line and column.

        Args:
            kind: Reason for the failure
            message: Human readable description
            text: The text being parsed
            offset: Character offset of the failure

        Returns:
            ParseError with line and column filled in
        """
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        line_start = text.rfind("\n", 0, offset) + 1
        return cls(kind, message, offset=offset, line=line, column=offset - line_start + 1)

    def source_line(self, text: str) -> Optional[str]:
        """Return the line of text the error points into, without its newline."""
        lines = text.split("\n")
        if self.line > len(lines):
            return None
        return lines[self.line - 1]

    def __str__(self) -> str:
        return f"{self.message} (line {self.line}, column {self.column})"

    def __repr__(self) -> str:
        return f"ParseError({self.kind.value!r}, {self.message!r}, offset={self.offset})"
