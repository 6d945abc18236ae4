"""OpenMetrics text format parser.

Parsing runs in three steps over a fully buffered exposition:

1. the ``# EOF`` sentinel is located and anything after it is rejected,
2. each line before it is parsed on its own (see ``omparser.lines``),
3. parsed lines are grouped into metric families by name continuity.

A family keeps growing while lines name it: descriptors naming the family
and samples whose name is the family name, or the family name plus a
suffix its type allows (``foo_total`` for a ``foo`` counter). Any other
line starts a new family. Families may not be reopened once closed, and a
family may not repeat a sample name and label set unless the repeat has a
later timestamp.
"""

from typing import Optional, Union

from omparser.errors import ErrorKind, ParseError
from omparser.lines import DescriptorKind, Line, MetricDescriptor, SampleLine, parse_line
from omparser.model import Document, MetricFamily, MetricType, Number, Sample, family_accepts
from omparser.scanner import Scanner

EOF_MARKER = "# EOF"


def decode_exposition(exposition: Union[str, bytes]) -> str:
    """Decode a raw exposition buffer to text.

    Raises:
        ParseError: If bytes are not valid UTF-8
    """
    if isinstance(exposition, str):
        return exposition
    try:
        return exposition.decode("utf-8")
    except UnicodeDecodeError as e:
        prefix = exposition[: e.start].decode("utf-8")
        raise ParseError.at(
            ErrorKind.INVALID_ENCODING,
            f"Invalid UTF-8 at byte {e.start}",
            prefix,
            len(prefix),
        ) from e


def locate_sentinel(text: str) -> int:
    """Find the ``# EOF`` line and check nothing follows it.

    Args:
        text: Decoded exposition

    Returns:
        Offset where the ``# EOF`` line starts, which is where the body ends

    Raises:
        ParseError: MISSING_SENTINEL or TRAILING_CONTENT
    """
    offset = 0
    while True:
        if text.startswith(EOF_MARKER, offset):
            after = offset + len(EOF_MARKER)
            rest = text[after:]
            if rest not in ("", "\n"):
                # Only one newline may follow, and nothing may share the line.
                bad = after + 1 if rest.startswith("\n") else after
                raise ParseError.at(
                    ErrorKind.TRAILING_CONTENT, "Found content after # EOF", text, bad
                )
            return offset
        newline = text.find("\n", offset)
        if newline == -1:
            raise ParseError.at(
                ErrorKind.MISSING_SENTINEL, "Missing # EOF at end of input", text, len(text)
            )
        offset = newline + 1


class _FamilyBuilder:
    """Accumulates the lines of one metric family."""

    def __init__(self, name: str):
        self.name = name
        self.metric_type: Optional[MetricType] = None
        self.help: Optional[str] = None
        self.unit: Optional[str] = None
        self.samples: list[Sample] = []
        self.seen: set[DescriptorKind] = set()
        # Latest timestamp per (sample name, label set); None when untimestamped.
        self.series: dict[tuple[str, frozenset], Optional[Number]] = {}

    def accepts(self, sample_name: str) -> bool:
        return family_accepts(self.name, self.metric_type, sample_name)

    def add_sample(self, line: SampleLine, text: str) -> None:
        """Append a sample, rejecting a repeat of a series already seen.

        A series may repeat only when every sample of it carries a
        timestamp and each timestamp is later than the one before.
        """
        sample = line.sample
        key = (sample.name, frozenset(sample.labels.as_dict().items()))
        if key in self.series:
            previous = self.series[key]
            if (
                previous is None
                or sample.timestamp is None
                or sample.timestamp.as_decimal() <= previous.as_decimal()
            ):
                raise ParseError.at(
                    ErrorKind.DUPLICATE_SAMPLE,
                    f"Sample {sample.name}{sample.labels.to_text()} appears twice "
                    f"in metric family {self.name!r}",
                    text,
                    line.offset,
                )
        self.series[key] = sample.timestamp
        self.samples.append(sample)

    def add_descriptor(self, descriptor: MetricDescriptor, text: str) -> None:
        if descriptor.kind in self.seen:
            raise ParseError.at(
                ErrorKind.DUPLICATE_DESCRIPTOR,
                f"More than one {descriptor.kind.value} line for metric family {self.name!r}",
                text,
                descriptor.offset,
            )
        self.seen.add(descriptor.kind)

        if descriptor.kind is DescriptorKind.TYPE:
            self.metric_type = descriptor.value
        elif descriptor.kind is DescriptorKind.HELP:
            self.help = descriptor.value
        else:
            self.unit = descriptor.value

    def build(self, text: str, offset: int) -> MetricFamily:
        if not self.seen and not self.samples:
            raise ParseError.at(
                ErrorKind.EMPTY_FAMILY,
                f"Internal error: metric family {self.name!r} has no lines",
                text,
                offset,
            )
        return MetricFamily(
            name=self.name,
            metric_type=self.metric_type,
            help=self.help,
            unit=self.unit,
            samples=tuple(self.samples),
        )


class FamilyAssembler:
    """Groups parsed lines into metric families.

    States: no current family (start), a current family, and done once
    ``finish`` is called.
    """

    def __init__(self, text: str):
        self.text = text
        self.families: list[MetricFamily] = []
        self._closed: set[str] = set()
        self._current: Optional[_FamilyBuilder] = None

    def feed(self, line: Line) -> None:
        """Attach a parsed line to the current family or start a new one."""
        if isinstance(line, MetricDescriptor):
            if self._current is None or self._current.name != line.metric_name:
                self._open(line.metric_name, line.offset)
            self._current.add_descriptor(line, self.text)
        else:
            if self._current is None or not self._current.accepts(line.sample.name):
                self._open(line.sample.name, line.offset)
            self._current.add_sample(line, self.text)

    def finish(self) -> Document:
        """Close the last family and return the document."""
        self._close(len(self.text))
        return Document(families=tuple(self.families))

    def _open(self, name: str, offset: int) -> None:
        self._close(offset)
        if name in self._closed:
            raise ParseError.at(
                ErrorKind.DUPLICATE_FAMILY,
                f"Metric family {name!r} appears again after it was finished",
                self.text,
                offset,
            )
        self._current = _FamilyBuilder(name)

    def _close(self, offset: int) -> None:
        if self._current is None:
            return
        self.families.append(self._current.build(self.text, offset))
        self._closed.add(self._current.name)
        self._current = None


def parse_openmetrics(exposition: Union[str, bytes]) -> Document:
    """Parse an OpenMetrics text exposition.

    Args:
        exposition: Complete exposition, as text or UTF-8 bytes

    Returns:
        Document with metric families in input order

    Raises:
        ParseError: At the first violation found
    """
    text = decode_exposition(exposition)
    body_end = locate_sentinel(text)

    scanner = Scanner(text, end=body_end)
    assembler = FamilyAssembler(text)
    while not scanner.at_end():
        assembler.feed(parse_line(scanner))
    return assembler.finish()
