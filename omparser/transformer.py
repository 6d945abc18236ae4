"""Transform parsed documents to a JSON-friendly structure."""

import math
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel

from omparser.model import Document, Exemplar, MetricFamily, Number, Sample

JsonNumber = Union[float, str]


class ExemplarOutput(BaseModel):
    """Exemplar output model."""

    labels: dict[str, str]
    value: JsonNumber
    timestamp: Optional[JsonNumber] = None


class SampleOutput(BaseModel):
    """Sample output model."""

    name: str
    labels: dict[str, str]
    value: JsonNumber
    timestamp: Optional[JsonNumber] = None
    exemplar: Optional[ExemplarOutput] = None


class FamilyOutput(BaseModel):
    """Metric family output model."""

    name: str
    type: str
    help: Optional[str] = None
    unit: Optional[str] = None
    samples: list[SampleOutput]


class DocumentOutput(BaseModel):
    """Complete document output model."""

    parsed_at: str
    source: Optional[str] = None
    families: list[FamilyOutput]


def get_timestamp() -> str:
    """Get current timestamp in ISO format.

    Returns:
        ISO formatted timestamp with timezone
    """
    return datetime.now(timezone.utc).isoformat()


def number_to_json(number: Number) -> JsonNumber:
    """Convert a number to a JSON value.

    JSON has no infinities or NaN, so those become "+Inf", "-Inf" and "NaN".
    A finite literal too large for a float, like ``1e999``, is kept as its
    literal text.
    """
    if number.is_finite and not math.isinf(number.value):
        return number.value
    return number.to_text()


def _transform_exemplar(exemplar: Exemplar) -> ExemplarOutput:
    return ExemplarOutput(
        labels=exemplar.labels.as_dict(),
        value=number_to_json(exemplar.value),
        timestamp=number_to_json(exemplar.timestamp) if exemplar.timestamp is not None else None,
    )


def _transform_sample(sample: Sample) -> SampleOutput:
    return SampleOutput(
        name=sample.name,
        labels=sample.labels.as_dict(),
        value=number_to_json(sample.value),
        timestamp=number_to_json(sample.timestamp) if sample.timestamp is not None else None,
        exemplar=_transform_exemplar(sample.exemplar) if sample.exemplar is not None else None,
    )


def transform_family(family: MetricFamily) -> FamilyOutput:
    """Transform a metric family into its output model."""
    return FamilyOutput(
        name=family.name,
        type=family.type.value,
        help=family.help,
        unit=family.unit or None,
        samples=[_transform_sample(sample) for sample in family.samples],
    )


def transform_document(document: Document, source: Optional[str] = None) -> DocumentOutput:
    """Transform a parsed document into its output model.

    Args:
        document: Parsed document
        source: Where the exposition was read from

    Returns:
        DocumentOutput object
    """
    return DocumentOutput(
        parsed_at=get_timestamp(),
        source=source,
        families=[transform_family(family) for family in document.families],
    )


def document_to_dict(document: Document, source: Optional[str] = None) -> dict[str, Any]:
    """Convert a Document to dictionary for JSON serialization.

    Args:
        document: Parsed document
        source: Where the exposition was read from

    Returns:
        Dictionary representation
    """
    return transform_document(document, source).model_dump(exclude_none=True)
