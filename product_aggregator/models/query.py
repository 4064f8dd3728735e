# product_aggregator/models/query.py

"""Typed parameters of a top-products aggregation request."""

from dataclasses import dataclass
from enum import Enum

from product_aggregator.config.settings import Settings


class SortKey(str, Enum):
    """Product field a ranking is ordered by."""

    NAME = "name"
    RATING = "rating"
    PRICE = "price"
    COMPANY = "company"
    DISCOUNT = "discount"

    @classmethod
    def parse(cls, raw: str | None) -> "SortKey":
        """Map a ``sortBy`` token to a key, matched exactly.

        Unknown tokens, including other casings, mean NAME.
        """
        try:
            return cls(raw or "")
        except ValueError:
            return cls.NAME


class SortOrder(str, Enum):
    """Ranking direction."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: str | None) -> "SortOrder":
        """Only the literal ``asc`` ascends; anything else descends."""
        return cls.ASC if raw == cls.ASC.value else cls.DESC


@dataclass(frozen=True)
class TopProductsQuery:
    """One aggregation request, already parsed and defaulted.

    A price bound of ``None`` imposes no restriction in that direction.
    """

    category: str
    n: int = Settings.DEFAULT_TOP_N
    min_price: float | None = None
    max_price: float | None = None
    sort_by: SortKey = SortKey.NAME
    sort_order: SortOrder = SortOrder.DESC
