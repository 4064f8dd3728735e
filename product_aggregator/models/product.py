# product_aggregator/models/product.py

"""Product data model for inter-module data flow."""

import math
from dataclasses import asdict, dataclass
from typing import Any

_TEXT_FIELDS = ("id", "name")
_NUMBER_FIELDS = ("price", "rating", "discount")


def _text(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        msg = f"field '{key}' must be a string, got {type(value).__name__}"
        raise ValueError(msg)
    return value


def _number(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    # bool is an int subclass but never a valid price/rating/discount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"field '{key}' must be a number, got {type(value).__name__}"
        raise ValueError(msg)
    if not math.isfinite(value):
        raise ValueError(f"field '{key}' must be finite, got {value}")
    return float(value)


@dataclass(frozen=True)
class Product:
    """A single product listing as returned by one upstream company."""

    id: str
    name: str
    price: float
    company: str = ""
    category: str = ""
    rating: float = 0.0
    discount: float = 0.0

    @classmethod
    def from_dict(
        cls,
        data: Any,
        company: str = "",
        category: str = "",
    ) -> "Product":
        """Decode one JSON object into a Product.

        Missing fields take their zero value; ``company`` and
        ``category`` fall back to the supplied defaults so a record
        always names the source it came from.

        Raises:
            ValueError: if *data* is not an object, a field has the
                wrong JSON type, or the price is negative.
        """
        if not isinstance(data, dict):
            msg = f"expected a JSON object, got {type(data).__name__}"
            raise ValueError(msg)

        texts = {key: _text(data, key, "") for key in _TEXT_FIELDS}
        numbers = {key: _number(data, key) for key in _NUMBER_FIELDS}
        if numbers["price"] < 0:
            msg = f"price must be non-negative, got {numbers['price']}"
            raise ValueError(msg)

        return cls(
            company=_text(data, "company", company),
            category=_text(data, "category", category),
            **texts,
            **numbers,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire representation using the upstream JSON keys."""
        return asdict(self)
