"""
Field Transforms

Conversions from loosely-typed source catalog values to the column types
of the catalog schema. A value that cannot be converted raises
FieldParseError, which the importer treats as a failure of that product
only.
"""

import math
import random
from typing import Any, Optional

THOUSANDS_SEPARATOR = ","


class FieldParseError(ValueError):
    """A source field could not be converted to its column type"""

    def __init__(self, field: str, value: Any, reason: str = "not a number"):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {reason} ({value!r})")


def _to_real(text: str, field: str, original: Any) -> float:
    try:
        number = float(text)
    except ValueError:
        raise FieldParseError(field, original) from None
    if not math.isfinite(number):
        raise FieldParseError(field, original, "not a finite number")
    return number


def parse_price(value: Any, field: str = "price") -> float:
    """
    Parse a price that may carry thousands separators.

    "1,299" -> 1299.0, 49.5 -> 49.5, "abc" -> FieldParseError
    """
    if value is None or isinstance(value, bool):
        raise FieldParseError(field, value, "missing")
    text = str(value).replace(THOUSANDS_SEPARATOR, "").strip()
    return _to_real(text, field, value)


def parse_discount(value: Any) -> float:
    """Absent, null and zero-equivalent discounts become 0."""
    if not value:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return _to_real(str(value).strip(), "discount", value)


def parse_rating(value: Any) -> Optional[float]:
    """Parse a rating as a real number; separators are not stripped."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise FieldParseError("rating", value)
    return _to_real(str(value).strip(), "rating", value)


def is_variant_scalar(value: Any) -> bool:
    """Numbers and strings are variant values; null, bool, lists and objects are not."""
    return isinstance(value, (int, float, str)) and not isinstance(value, bool)


def variant_value(value: Any) -> str:
    """Stringify a variant value; integral floats lose their ".0"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PlaceholderGenerator:
    """
    Synthesizes product fields the source catalog does not carry.

    is_featured is a biased coin flip and stock_quantity a uniform integer
    in [stock_min, stock_max]. Pass a seed for reproducible runs.
    """

    def __init__(
        self,
        featured_probability: float = 0.5,
        stock_min: int = 10,
        stock_max: int = 109,
        seed: Optional[int] = None,
    ):
        if stock_min > stock_max:
            raise ValueError("stock_min must be <= stock_max")
        self.featured_probability = featured_probability
        self.stock_min = stock_min
        self.stock_max = stock_max
        self._rng = random.Random(seed)

    def is_featured(self) -> bool:
        return self._rng.random() < self.featured_probability

    def stock_quantity(self) -> int:
        return self._rng.randint(self.stock_min, self.stock_max)
