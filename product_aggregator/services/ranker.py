# product_aggregator/services/ranker.py

"""Single-key ranking of merged product collections."""

from operator import attrgetter

from product_aggregator.models.product import Product
from product_aggregator.models.query import SortKey, SortOrder


class Ranker:
    """Order products by one caller-selected field and direction."""

    @staticmethod
    def sort(
        products: list[Product],
        key: SortKey = SortKey.NAME,
        order: SortOrder = SortOrder.DESC,
    ) -> list[Product]:
        """Return a new list ordered by *key*.

        Strings compare lexicographically, numbers numerically. The
        sort is stable in both directions: products with equal keys
        keep their merged order.
        """
        return sorted(
            products,
            key=attrgetter(key.value),
            reverse=order is SortOrder.DESC,
        )
