"""Number, timestamp, escaped string and label set parsers."""

import re
from typing import Optional

from omparser.errors import ErrorKind, ParseError
from omparser.model import Label, LabelSet, Number, NumberKind
from omparser.scanner import Scanner

# Regex patterns for numeric literals, matched against a whole token
REAL_NUMBER_PATTERN = re.compile(r"[+-]?[0-9]+(?:\.[0-9]*)?(?:[eE][+-]?[0-9]+)?")
INFINITY_PATTERN = re.compile(r"(?P<sign>[+-]?)(?:inf|infinity)", re.IGNORECASE)
NAN_PATTERN = re.compile(r"nan", re.IGNORECASE)

# Raw label value content: plain characters, or a backslash optionally
# followed by one of the recognised escape characters.
ESCAPED_STRING_PATTERN = re.compile(r'(?:[^\\"\n]+|\\[\\n"]?)*')
ESCAPE_PATTERN = re.compile(r'\\([\\n"])')
_ESCAPES = {"\\": "\\", "n": "\n", '"': '"'}


def match_number(token: str) -> Optional[Number]:
    """Match a token against the number grammar.

    Tries a real number, then a signed infinity, then an unsigned NaN.

    Args:
        token: Candidate literal like '1.5e-3', '+Inf', 'NaN'

    Returns:
        Number, or None if the token is not a valid number
    """
    if REAL_NUMBER_PATTERN.fullmatch(token):
        return Number(NumberKind.FINITE, token)
    match = INFINITY_PATTERN.fullmatch(token)
    if match:
        kind = NumberKind.NEG_INF if match.group("sign") == "-" else NumberKind.POS_INF
        return Number(kind, token)
    if NAN_PATTERN.fullmatch(token):
        return Number(NumberKind.NAN, token)
    return None


def match_timestamp(token: str) -> Optional[Number]:
    """Match a token against the real number grammar used by timestamps."""
    if REAL_NUMBER_PATTERN.fullmatch(token):
        return Number(NumberKind.FINITE, token)
    return None


def read_number(scanner: Scanner) -> Number:
    """Consume a number token bounded by the next space or newline."""
    start = scanner.pos
    token = scanner.scan_token()
    number = match_number(token)
    if number is None:
        raise scanner.error(ErrorKind.INVALID_NUMBER, f"Invalid number: {token!r}", start)
    return number


def read_timestamp(scanner: Scanner) -> Number:
    """Consume a timestamp token bounded by the next space or newline."""
    start = scanner.pos
    token = scanner.scan_token()
    timestamp = match_timestamp(token)
    if timestamp is None:
        raise scanner.error(ErrorKind.INVALID_NUMBER, f"Invalid timestamp: {token!r}", start)
    return timestamp


def parse_value(text: str) -> Number:
    """Parse a standalone number literal.

    Args:
        text: Value string like '123.45', '+Inf', '-Inf', 'NaN'

    Returns:
        Number

    Raises:
        ParseError: If the text is not a valid number
    """
    number = match_number(text)
    if number is None:
        raise ParseError.at(ErrorKind.INVALID_NUMBER, f"Invalid number: {text!r}", text, 0)
    return number


def decode_escaped(raw: str) -> str:
    """Decode the raw content of a quoted label value.

    ``\\\\``, ``\\n`` and ``\\"`` decode to a backslash, a newline and a
    quote. A backslash before any other character is kept as is.
    """
    return ESCAPE_PATTERN.sub(lambda m: _ESCAPES[m.group(1)], raw)


def read_escaped_string(scanner: Scanner) -> str:
    """Consume label value content up to its closing quote, and decode it."""
    match = ESCAPED_STRING_PATTERN.match(scanner.text, scanner.pos, scanner.end)
    raw = match.group(0) if match else ""
    scanner.pos += len(raw)
    return decode_escaped(raw)


def read_quoted_value(scanner: Scanner) -> str:
    """Consume a double-quoted label value, quotes included, and decode it."""
    scanner.expect('"', ErrorKind.MALFORMED_LABEL_SET, "'\"' opening label value")
    value = read_escaped_string(scanner)

    closing = scanner.peek()
    if closing == "\n":
        raise scanner.error(ErrorKind.UNEXPECTED_CHAR, "Raw newline in label value")
    if closing != '"':
        raise scanner.error(ErrorKind.MALFORMED_LABEL_SET, "Unterminated label value")
    scanner.pos += 1
    return value


def parse_label_set(scanner: Scanner) -> LabelSet:
    """Consume a brace-delimited label set.

    Args:
        scanner: Scanner positioned on the opening brace

    Returns:
        LabelSet in input order

    Raises:
        ParseError: On malformed or duplicate labels
    """
    scanner.expect("{", ErrorKind.MALFORMED_LABEL_SET, "'{'")
    if scanner.peek() == "}":
        scanner.pos += 1
        return LabelSet()

    labels: list[Label] = []
    seen: set[str] = set()
    while True:
        name_start = scanner.pos
        name = scanner.scan_label_name(ErrorKind.MALFORMED_LABEL_SET)
        if name in seen:
            raise scanner.error(
                ErrorKind.DUPLICATE_LABEL, f"Label {name!r} appears twice in a label set", name_start
            )
        seen.add(name)

        scanner.expect("=", ErrorKind.MALFORMED_LABEL_SET, "'=' after label name")
        labels.append(Label(name, read_quoted_value(scanner)))

        separator = scanner.peek()
        if separator == ",":
            scanner.pos += 1
        elif separator == "}":
            scanner.pos += 1
            return LabelSet(tuple(labels))
        elif separator in ("\n", ""):
            raise scanner.error(ErrorKind.MALFORMED_LABEL_SET, "Missing '}' closing label set")
        else:
            raise scanner.error(
                ErrorKind.UNEXPECTED_CHAR,
                f"Expected ',' or '}}' after label value, found {scanner.describe()}",
            )
