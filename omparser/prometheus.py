"""Prometheus text format (version 0.0.4) parser.

The classic Prometheus format shares metric names, label values and
numbers with OpenMetrics but is looser about layout:

- there is no ``# EOF`` sentinel and the last line may lack a newline
- blank lines and free-form ``#`` comments are ignored
- spaces and tabs may pad tokens, and a label set may end with a comma
- timestamps are integer milliseconds

Only ``# HELP`` and ``# TYPE`` descriptors exist. Parsed lines are grouped
into metric families exactly like OpenMetrics lines.
"""

import re
from typing import Optional, Union

from omparser.errors import ErrorKind
from omparser.lines import DescriptorKind, Line, MetricDescriptor, SampleLine
from omparser.literals import match_number, match_timestamp, read_quoted_value
from omparser.model import (
    Document,
    Exemplar,
    Label,
    LabelSet,
    MetricType,
    Number,
    NumberKind,
    Sample,
)
from omparser.parser import FamilyAssembler, decode_exposition
from omparser.scanner import Scanner

BLANK_PATTERN = re.compile(r"[ \t]*")
VALUE_TOKEN_PATTERN = re.compile(r"[^ \t\n]*")
TIMESTAMP_PATTERN = re.compile(r"[+-]?[0-9]+")

PROMETHEUS_TYPES = {
    "counter": MetricType.COUNTER,
    "gauge": MetricType.GAUGE,
    "histogram": MetricType.HISTOGRAM,
    "summary": MetricType.SUMMARY,
    "untyped": MetricType.UNKNOWN,
    "unknown": MetricType.UNKNOWN,
}


def _skip_blanks(scanner: Scanner) -> bool:
    return bool(scanner.scan(BLANK_PATTERN))


def _end_line(scanner: Scanner) -> None:
    _skip_blanks(scanner)
    if not scanner.at_end():
        scanner.expect("\n", what="end of line")


def _read_value(scanner: Scanner) -> Number:
    start = scanner.pos
    token = scanner.scan(VALUE_TOKEN_PATTERN)
    number = match_number(token)
    if number is None:
        raise scanner.error(ErrorKind.INVALID_NUMBER, f"Invalid number: {token!r}", start)
    return number


def _read_timestamp(scanner: Scanner) -> Number:
    start = scanner.pos
    token = scanner.scan(VALUE_TOKEN_PATTERN)
    if not TIMESTAMP_PATTERN.fullmatch(token):
        raise scanner.error(ErrorKind.INVALID_NUMBER, f"Invalid timestamp: {token!r}", start)
    return Number(NumberKind.FINITE, token)


def parse_label_set(scanner: Scanner) -> LabelSet:
    """Consume a label set that may be padded with blanks and end with a comma.

    Args:
        scanner: Scanner positioned on the opening brace

    Returns:
        LabelSet in input order

    Raises:
        ParseError: On malformed or duplicate labels
    """
    scanner.expect("{", ErrorKind.MALFORMED_LABEL_SET, "'{'")
    labels: list[Label] = []
    seen: set[str] = set()
    while True:
        _skip_blanks(scanner)
        if scanner.peek() == "}":
            scanner.pos += 1
            return LabelSet(tuple(labels))

        name_start = scanner.pos
        name = scanner.scan_label_name(ErrorKind.MALFORMED_LABEL_SET)
        if name in seen:
            raise scanner.error(
                ErrorKind.DUPLICATE_LABEL, f"Label {name!r} appears twice in a label set", name_start
            )
        seen.add(name)

        _skip_blanks(scanner)
        scanner.expect("=", ErrorKind.MALFORMED_LABEL_SET, "'=' after label name")
        _skip_blanks(scanner)
        labels.append(Label(name, read_quoted_value(scanner)))

        _skip_blanks(scanner)
        separator = scanner.peek()
        if separator == ",":
            scanner.pos += 1
        elif separator in ("\n", ""):
            raise scanner.error(ErrorKind.MALFORMED_LABEL_SET, "Missing '}' closing label set")
        elif separator != "}":
            raise scanner.error(
                ErrorKind.UNEXPECTED_CHAR,
                f"Expected ',' or '}}' after label value, found {scanner.describe()}",
            )


def parse_comment(scanner: Scanner) -> Optional[MetricDescriptor]:
    """Parse a line starting with ``#``.

    Returns:
        MetricDescriptor for HELP and TYPE lines, None for other comments
    """
    start = scanner.pos
    scanner.pos += 1
    _skip_blanks(scanner)
    keyword = scanner.scan(VALUE_TOKEN_PATTERN)
    if keyword not in ("HELP", "TYPE") or not _skip_blanks(scanner):
        scanner.scan_help()
        _end_line(scanner)
        return None

    metric_name = scanner.scan_metric_name()
    value: Union[MetricType, str]
    if keyword == "HELP":
        kind = DescriptorKind.HELP
        value = scanner.scan_help() if _skip_blanks(scanner) else ""
    else:
        kind = DescriptorKind.TYPE
        if not _skip_blanks(scanner):
            raise scanner.error(
                ErrorKind.UNEXPECTED_CHAR, f"Expected metric type, found {scanner.describe()}"
            )
        type_start = scanner.pos
        token = scanner.scan(VALUE_TOKEN_PATTERN)
        if token not in PROMETHEUS_TYPES:
            raise scanner.error(
                ErrorKind.INVALID_METRIC_TYPE, f"Invalid metric type: {token!r}", type_start
            )
        value = PROMETHEUS_TYPES[token]

    _end_line(scanner)
    return MetricDescriptor(kind=kind, metric_name=metric_name, value=value, offset=start)


def parse_exemplar(scanner: Scanner) -> Exemplar:
    """Parse an exemplar, starting at its ``#``."""
    scanner.pos += 1
    _skip_blanks(scanner)
    labels = parse_label_set(scanner)
    if not _skip_blanks(scanner):
        raise scanner.error(
            ErrorKind.UNEXPECTED_CHAR, f"Expected exemplar value, found {scanner.describe()}"
        )
    value = _read_value(scanner)

    timestamp = None
    if _skip_blanks(scanner) and scanner.peek() not in ("\n", ""):
        start = scanner.pos
        token = scanner.scan(VALUE_TOKEN_PATTERN)
        timestamp = match_timestamp(token)
        if timestamp is None:
            raise scanner.error(ErrorKind.INVALID_NUMBER, f"Invalid timestamp: {token!r}", start)
    return Exemplar(labels=labels, value=value, timestamp=timestamp)


def parse_sample(scanner: Scanner) -> SampleLine:
    """Parse a sample line.

    Grammar: ``name [labels] blanks value [blanks timestamp] [blanks # exemplar]``
    """
    start = scanner.pos
    name = scanner.scan_metric_name()
    gap = _skip_blanks(scanner)
    labels = LabelSet()
    if scanner.peek() == "{":
        labels = parse_label_set(scanner)
        gap = _skip_blanks(scanner)
    if not gap:
        raise scanner.error(
            ErrorKind.UNEXPECTED_CHAR, f"Expected blank before value, found {scanner.describe()}"
        )
    value = _read_value(scanner)

    timestamp = None
    exemplar = None
    gap = _skip_blanks(scanner)
    if gap and scanner.peek() not in ("#", "\n", ""):
        timestamp = _read_timestamp(scanner)
        gap = _skip_blanks(scanner)
    if gap and scanner.peek() == "#":
        exemplar = parse_exemplar(scanner)

    _end_line(scanner)
    sample = Sample(name=name, labels=labels, value=value, timestamp=timestamp, exemplar=exemplar)
    return SampleLine(sample=sample, offset=start)


def parse_line(scanner: Scanner) -> Optional[Line]:
    """Parse one line, returning None for blank lines and comments."""
    _skip_blanks(scanner)
    char = scanner.peek()
    if char == "":
        return None
    if char == "\n":
        scanner.pos += 1
        return None
    if char == "#":
        return parse_comment(scanner)
    return parse_sample(scanner)


def parse_prometheus(exposition: Union[str, bytes]) -> Document:
    """Parse a Prometheus text format exposition.

    Args:
        exposition: Complete exposition, as text or UTF-8 bytes

    Returns:
        Document with metric families in input order

    Raises:
        ParseError: At the first violation found
    """
    text = decode_exposition(exposition)

    scanner = Scanner(text)
    assembler = FamilyAssembler(text)
    while not scanner.at_end():
        line = parse_line(scanner)
        if line is not None:
            assembler.feed(line)
    return assembler.finish()
