"""
Metric vector and segment definitions.

Every classified row contributes one MetricVector to exactly one segment.
Vectors are immutable; accumulation always produces a new vector.
"""

import math
import re
from dataclasses import dataclass, fields
from enum import Enum

MICROS_PER_UNIT = 1_000_000

# Plain decimal or exponent notation only ("1_000", "0x10", "nan" are not numbers)
NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class Segment(str, Enum):
    """Classification of a search term or category label."""

    BRANDED = "branded"
    NON_BRANDED = "non_branded"
    BLANK = "blank"

    @property
    def label(self) -> str:
        return SEGMENT_LABELS[self]


SEGMENT_LABELS = {
    Segment.BRANDED: "Branded",
    Segment.NON_BRANDED: "Non-branded",
    Segment.BLANK: "Blank",
}

# Row order used everywhere a bucket is rendered
BRAND_SEGMENTS = (Segment.BRANDED, Segment.NON_BRANDED)
CATEGORY_SEGMENTS = (Segment.BRANDED, Segment.NON_BRANDED, Segment.BLANK)


def to_number(value) -> float:
    """Coerce an API value to a non-negative number. Anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if not NUMBER_PATTERN.fullmatch(text):
            return 0
        number = float(text)
        if number.is_integer():
            number = int(number)
    if isinstance(number, float) and (math.isnan(number) or math.isinf(number)):
        return 0
    return number if number > 0 else 0


@dataclass(frozen=True)
class MetricVector:
    impressions: int = 0
    clicks: int = 0
    cost: float = 0
    conversions: float = 0
    conversions_value: float = 0

    @classmethod
    def zero(cls) -> "MetricVector":
        return cls()

    @classmethod
    def from_raw(cls, raw) -> "MetricVector":
        """
        Build a vector from a mapping of field name -> raw value.

        Missing, negative and non-numeric values become 0. Never raises on bad
        numbers; a non-mapping input yields the zero vector. Cost must already
        be in currency units.
        """
        if not isinstance(raw, dict):
            return cls.zero()
        return cls(
            impressions=int(to_number(raw.get("impressions"))),
            clicks=int(to_number(raw.get("clicks"))),
            cost=to_number(raw.get("cost")),
            conversions=to_number(raw.get("conversions")),
            conversions_value=to_number(raw.get("conversions_value")),
        )

    def __add__(self, other: "MetricVector") -> "MetricVector":
        if not isinstance(other, MetricVector):
            return NotImplemented
        return MetricVector(
            impressions=self.impressions + other.impressions,
            clicks=self.clicks + other.clicks,
            cost=self.cost + other.cost,
            conversions=self.conversions + other.conversions,
            conversions_value=self.conversions_value + other.conversions_value,
        )

    def value(self, field_name: str):
        return getattr(self, field_name)

    def is_zero(self) -> bool:
        return all(getattr(self, f.name) == 0 for f in fields(self))


def add(a: MetricVector, b: MetricVector) -> MetricVector:
    """Component-wise sum. Neither input is modified."""
    return a + b


def micros_to_units(value) -> float:
    """Convert an API *_micros value to currency units."""
    return to_number(value) / MICROS_PER_UNIT
