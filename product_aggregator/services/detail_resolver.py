# product_aggregator/services/detail_resolver.py

"""Single-product detail lookups."""

import logging

from product_aggregator.clients.errors import SourceError
from product_aggregator.clients.source_client import SourceClient
from product_aggregator.models.product import Product

logger = logging.getLogger("product_aggregator.details")


class DetailResolver:
    """Resolve one product's full record through the detail endpoint.

    The category is part of the inbound path only; the upstream detail
    endpoint is keyed by product id alone.
    """

    def __init__(self, client: SourceClient | None = None) -> None:
        self.client = client or SourceClient()

    async def resolve(self, category: str, product_id: str) -> Product:
        try:
            product = await self.client.fetch_details(product_id)
        except SourceError as exc:
            logger.error(
                "Detail lookup failed for %s/%s: %s",
                category,
                product_id,
                exc,
            )
            raise
        logger.info("Resolved details for %s/%s", category, product_id)
        return product
