"""OpenMetrics text exposition format parser."""

__version__ = "0.1.0"

from omparser.errors import ErrorKind, ParseError
from omparser.model import (
    Document,
    Exemplar,
    Label,
    LabelSet,
    MetricFamily,
    MetricType,
    Number,
    NumberKind,
    Sample,
)
from omparser.parser import parse_openmetrics
from omparser.prometheus import parse_prometheus

__all__ = [
    "Document",
    "ErrorKind",
    "Exemplar",
    "Label",
    "LabelSet",
    "MetricFamily",
    "MetricType",
    "Number",
    "NumberKind",
    "ParseError",
    "Sample",
    "parse_openmetrics",
    "parse_prometheus",
]
