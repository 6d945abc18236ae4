"""Parsers for single exposition lines."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from omparser.errors import ErrorKind
from omparser.literals import parse_label_set, read_number, read_timestamp
from omparser.model import Exemplar, LabelSet, MetricType, Sample
from omparser.scanner import Scanner


class DescriptorKind(str, Enum):
    """Keyword of a metric descriptor line."""

    TYPE = "TYPE"
    HELP = "HELP"
    UNIT = "UNIT"


DESCRIPTOR_PREFIXES = {f"# {kind.value} ": kind for kind in DescriptorKind}
EXEMPLAR_PREFIX = " # "

_METRIC_TYPES = {metric_type.value: metric_type for metric_type in MetricType}


@dataclass(frozen=True)
class MetricDescriptor:
    """A parsed ``# TYPE``, ``# HELP`` or ``# UNIT`` line.

    ``value`` is a MetricType for TYPE lines, the help text for HELP lines
    and the unit, possibly empty, for UNIT lines.
    """

    kind: DescriptorKind
    metric_name: str
    value: Union[MetricType, str]
    offset: int


@dataclass(frozen=True)
class SampleLine:
    """A parsed sample line and where it started."""

    sample: Sample
    offset: int


Line = Union[MetricDescriptor, SampleLine]


def classify_descriptor(scanner: Scanner) -> Optional[DescriptorKind]:
    """Return the descriptor keyword the current line starts with, if any."""
    for prefix, kind in DESCRIPTOR_PREFIXES.items():
        if scanner.startswith(prefix):
            return kind
    return None


def parse_line(scanner: Scanner) -> Line:
    """Parse one newline-terminated descriptor or sample line."""
    kind = classify_descriptor(scanner)
    if kind is not None:
        return parse_descriptor(scanner, kind)
    return parse_sample(scanner)


def parse_descriptor(scanner: Scanner, kind: DescriptorKind) -> MetricDescriptor:
    """Parse a metric descriptor line.

    Args:
        scanner: Scanner positioned at the start of the line
        kind: Keyword the line starts with

    Returns:
        MetricDescriptor
    """
    start = scanner.pos
    scanner.pos += len(f"# {kind.value} ")
    metric_name = scanner.scan_metric_name()

    value: Union[MetricType, str]
    if kind is DescriptorKind.TYPE:
        scanner.expect(" ")
        type_start = scanner.pos
        # The whole rest of the line must be one keyword, so
        # "gaugehistogram" can never be read as "gauge".
        token = scanner.scan_help()
        if token not in _METRIC_TYPES:
            raise scanner.error(
                ErrorKind.INVALID_METRIC_TYPE, f"Invalid metric type: {token!r}", type_start
            )
        value = _METRIC_TYPES[token]
    elif kind is DescriptorKind.HELP:
        scanner.expect(" ")
        value = scanner.scan_help()
    else:
        # A UNIT line without unit text still declares an empty unit.
        value = ""
        if scanner.peek() == " ":
            scanner.pos += 1
            value = scanner.scan_unit()

    scanner.expect("\n", what="end of line")
    return MetricDescriptor(kind=kind, metric_name=metric_name, value=value, offset=start)


def parse_exemplar(scanner: Scanner) -> Exemplar:
    """Parse an exemplar, starting at its leading space."""
    scanner.pos += len(EXEMPLAR_PREFIX)
    labels = parse_label_set(scanner)
    scanner.expect(" ")
    value = read_number(scanner)
    timestamp = None
    if scanner.peek() == " ":
        scanner.pos += 1
        timestamp = read_timestamp(scanner)
    return Exemplar(labels=labels, value=value, timestamp=timestamp)


def parse_sample(scanner: Scanner) -> SampleLine:
    """Parse a sample line.

    Grammar: ``name [labels] SP value [SP timestamp] [exemplar] NEWLINE``
    """
    start = scanner.pos
    name = scanner.scan_metric_name()
    labels = parse_label_set(scanner) if scanner.peek() == "{" else LabelSet()
    scanner.expect(" ")
    value = read_number(scanner)

    timestamp = None
    exemplar = None
    if scanner.peek() == " " and not scanner.startswith(EXEMPLAR_PREFIX):
        scanner.pos += 1
        timestamp = read_timestamp(scanner)
    if scanner.startswith(EXEMPLAR_PREFIX):
        exemplar = parse_exemplar(scanner)

    scanner.expect("\n", what="end of line")
    sample = Sample(name=name, labels=labels, value=value, timestamp=timestamp, exemplar=exemplar)
    return SampleLine(sample=sample, offset=start)
