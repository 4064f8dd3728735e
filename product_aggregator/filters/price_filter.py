# product_aggregator/filters/price_filter.py

"""Post-fetch product filtering by price range."""

import logging

from product_aggregator.models.product import Product

logger = logging.getLogger("product_aggregator.filters")


class PriceFilter:
    """Re-apply the caller's price bounds to merged source results."""

    @staticmethod
    def filter_by_range(
        products: list[Product],
        min_price: float | None,
        max_price: float | None,
    ) -> tuple[list[Product], int]:
        """Keep products with ``min_price <= price <= max_price``.

        A bound of ``None`` imposes no restriction in its direction.
        Returns the kept products and the count of excluded ones.
        """
        if min_price is None and max_price is None:
            return products, 0

        kept: list[Product] = []
        excluded = 0
        for product in products:
            if min_price is not None and product.price < min_price:
                excluded += 1
            elif max_price is not None and product.price > max_price:
                excluded += 1
            else:
                kept.append(product)

        if excluded:
            logger.info(
                "Filtered out %d products outside price range [%s, %s]",
                excluded,
                min_price,
                max_price,
            )

        return kept, excluded
