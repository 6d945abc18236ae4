"""Data model for parsed OpenMetrics expositions.

Every object here is immutable and built once during a parse. Each one can
render its canonical exposition text with ``to_text()``, so a parsed
document can be written back out and parsed again to an equal document.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional


class NumberKind(str, Enum):
    """Tag of a numeric literal."""

    FINITE = "finite"
    POS_INF = "+inf"
    NEG_INF = "-inf"
    NAN = "nan"


_CANONICAL_SPELLING = {
    NumberKind.POS_INF: "+Inf",
    NumberKind.NEG_INF: "-Inf",
    NumberKind.NAN: "NaN",
}


@dataclass(frozen=True, eq=False)
class Number:
    """A numeric literal: finite, signed infinity or NaN.

    Finite numbers keep the literal exactly as written (``1.50``, ``+3``,
    ``1E10``), so they re-encode losslessly. Infinities and NaN compare
    equal regardless of spelling (``inf`` == ``+Infinity``).
    """

    kind: NumberKind
    text: str

    @property
    def is_finite(self) -> bool:
        return self.kind is NumberKind.FINITE

    @property
    def value(self) -> float:
        """The number as a float."""
        if self.kind is NumberKind.POS_INF:
            return math.inf
        if self.kind is NumberKind.NEG_INF:
            return -math.inf
        if self.kind is NumberKind.NAN:
            return math.nan
        return float(self.text)

    def as_decimal(self) -> Decimal:
        """Exact decimal value of a finite number.

        Raises:
            ValueError: If the number is not finite
        """
        if not self.is_finite:
            raise ValueError(f"{self.to_text()} has no exact decimal value")
        return Decimal(self.text)

    def to_text(self) -> str:
        return _CANONICAL_SPELLING.get(self.kind, self.text)

    def _key(self) -> tuple[NumberKind, str]:
        return (self.kind, self.text if self.is_finite else "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.to_text()


def escape_label_value(value: str) -> str:
    """Escape a decoded label value for the exposition format."""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


@dataclass(frozen=True)
class Label:
    """A single label name and its decoded value."""

    name: str
    value: str

    def to_text(self) -> str:
        return f'{self.name}="{escape_label_value(self.value)}"'


@dataclass(frozen=True)
class LabelSet:
    """Ordered labels of a sample or exemplar.

    Order is kept as parsed. An empty set is what both ``{}`` and an
    omitted label set parse to.
    """

    labels: tuple[Label, ...] = ()

    @classmethod
    def of(cls, **labels: str) -> "LabelSet":
        """Build a label set from keyword arguments, in argument order."""
        return cls(tuple(Label(name, value) for name, value in labels.items()))

    @property
    def names(self) -> list[str]:
        return [label.name for label in self.labels]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a label value by name."""
        for label in self.labels:
            if label.name == name:
                return label.value
        return default

    def as_dict(self) -> dict[str, str]:
        return {label.name: label.value for label in self.labels}

    def to_text(self) -> str:
        if not self.labels:
            return ""
        return "{" + ",".join(label.to_text() for label in self.labels) + "}"

    def __iter__(self) -> Iterator[Label]:
        return iter(self.labels)

    def __len__(self) -> int:
        return len(self.labels)

    def __bool__(self) -> bool:
        return bool(self.labels)


@dataclass(frozen=True)
class Exemplar:
    """Labelled value attached to a sample, usually a trace reference."""

    labels: LabelSet
    value: Number
    timestamp: Optional[Number] = None

    def to_text(self) -> str:
        # The exemplar label set is mandatory, even when empty.
        labels = ",".join(label.to_text() for label in self.labels)
        text = f" # {{{labels}}} {self.value.to_text()}"
        if self.timestamp is not None:
            text += f" {self.timestamp.to_text()}"
        return text


@dataclass(frozen=True)
class Sample:
    """One sample line."""

    name: str
    value: Number
    labels: LabelSet = field(default_factory=LabelSet)
    timestamp: Optional[Number] = None
    exemplar: Optional[Exemplar] = None

    def to_text(self) -> str:
        text = f"{self.name}{self.labels.to_text()} {self.value.to_text()}"
        if self.timestamp is not None:
            text += f" {self.timestamp.to_text()}"
        if self.exemplar is not None:
            text += self.exemplar.to_text()
        return text + "\n"


class MetricType(str, Enum):
    """Metric family types declared by ``# TYPE`` lines."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    GAUGEHISTOGRAM = "gaugehistogram"
    STATESET = "stateset"
    INFO = "info"
    SUMMARY = "summary"
    UNKNOWN = "unknown"

    @property
    def sample_suffixes(self) -> tuple[str, ...]:
        """Suffixes a sample name may add to the family name."""
        return _SAMPLE_SUFFIXES[self]

    def sample_belongs(self, family_name: str, sample_name: str) -> bool:
        """Check whether a sample name belongs to a family of this type.

        The family name itself always belongs, so a family keeps samples
        that arrived before its TYPE line.
        """
        if sample_name == family_name:
            return True
        return any(family_name + suffix == sample_name for suffix in self.sample_suffixes)


_SAMPLE_SUFFIXES = {
    MetricType.COUNTER: ("_total", "_created"),
    MetricType.GAUGE: (),
    MetricType.HISTOGRAM: ("_bucket", "_count", "_sum", "_created"),
    MetricType.GAUGEHISTOGRAM: ("_bucket", "_gcount", "_gsum"),
    MetricType.STATESET: (),
    MetricType.INFO: ("_info",),
    MetricType.SUMMARY: ("_count", "_sum", "_created"),
    MetricType.UNKNOWN: (),
}


def family_accepts(family_name: str, metric_type: Optional[MetricType], sample_name: str) -> bool:
    """Check whether a sample continues a family with the given declared type."""
    return (metric_type or MetricType.UNKNOWN).sample_belongs(family_name, sample_name)


@dataclass(frozen=True)
class MetricFamily:
    """Samples sharing a base metric name, with optional metadata.

    ``metric_type`` is the declared TYPE, or None when the family has no
    TYPE line. Use ``type`` for the effective type. ``unit`` is None
    without a UNIT line and an empty string for a UNIT line with no unit
    text.
    """

    name: str
    metric_type: Optional[MetricType] = None
    help: Optional[str] = None
    unit: Optional[str] = None
    samples: tuple[Sample, ...] = ()

    @property
    def type(self) -> MetricType:
        return self.metric_type or MetricType.UNKNOWN

    def accepts(self, sample_name: str) -> bool:
        """Check whether a sample name belongs to this family."""
        return family_accepts(self.name, self.metric_type, sample_name)

    def get_samples(self, name: Optional[str] = None) -> list[Sample]:
        """Get samples, optionally only those with a given sample name."""
        return [s for s in self.samples if name is None or s.name == name]

    def to_text(self) -> str:
        lines = []
        if self.metric_type is not None:
            lines.append(f"# TYPE {self.name} {self.metric_type.value}\n")
        if self.help is not None:
            lines.append(f"# HELP {self.name} {self.help}\n")
        if self.unit:
            lines.append(f"# UNIT {self.name} {self.unit}\n")
        elif self.unit is not None:
            lines.append(f"# UNIT {self.name}\n")
        lines.extend(sample.to_text() for sample in self.samples)
        return "".join(lines)


@dataclass(frozen=True)
class Document:
    """A parsed exposition: metric families in input order."""

    families: tuple[MetricFamily, ...] = ()

    def get_family(self, name: str) -> Optional[MetricFamily]:
        """Get a family by its name."""
        for family in self.families:
            if family.name == name:
                return family
        return None

    def all_samples(self) -> list[Sample]:
        """All samples of all families, in input order."""
        return [sample for family in self.families for sample in family.samples]

    def to_text(self) -> str:
        return "".join(family.to_text() for family in self.families) + "# EOF\n"

    def __iter__(self) -> Iterator[MetricFamily]:
        return iter(self.families)

    def __len__(self) -> int:
        return len(self.families)
