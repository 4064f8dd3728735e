# product_aggregator/services/aggregator.py

"""Orchestrates multi-source top-N product aggregation."""

import asyncio
import logging
from dataclasses import dataclass, field

from product_aggregator.clients.errors import SourceError
from product_aggregator.clients.source_client import SourceClient
from product_aggregator.config.settings import Settings
from product_aggregator.filters.price_filter import PriceFilter
from product_aggregator.models.product import Product
from product_aggregator.models.query import TopProductsQuery
from product_aggregator.services.ranker import Ranker

logger = logging.getLogger("product_aggregator.aggregator")

FAIL_FAST = "fail_fast"
BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class SourceFailure:
    """A source that failed during a best-effort aggregation."""

    source_id: str
    kind: str
    message: str

    @classmethod
    def from_error(cls, error: SourceError) -> "SourceFailure":
        return cls(
            source_id=error.source_id,
            kind=error.kind,
            message=error.message,
        )


@dataclass
class AggregationResult:
    """Container for one completed aggregation across all sources."""

    category: str
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    total_before_filter: int = 0
    excluded_count: int = 0
    failures: list[SourceFailure] = field(
        default_factory=lambda: list[SourceFailure]()
    )


class Aggregator:
    """Coordinates source fan-out, price filtering, and ranking."""

    def __init__(
        self,
        client: SourceClient | None = None,
        sources: list[dict[str, str]] | None = None,
        policy: str | None = None,
    ) -> None:
        self.settings = Settings()
        self.sources = (
            sources
            if sources is not None
            else self.settings.AVAILABLE_SOURCES
        )
        self.client = client or SourceClient(self.sources)
        self.policy = policy or self.settings.FAILURE_POLICY
        if self.policy not in self.settings.FAILURE_POLICIES:
            msg = (
                f"Unknown failure policy '{self.policy}', expected "
                f"one of {', '.join(self.settings.FAILURE_POLICIES)}"
            )
            raise ValueError(msg)

    # ── Private helpers ──────────────────────────────────

    async def _run_sources(
        self, query: TopProductsQuery,
    ) -> tuple[list[Product], list[SourceFailure]]:
        """Fetch from every source concurrently and merge the batches.

        Under ``fail_fast`` the first SourceError propagates and every
        still-running fetch is cancelled. Under ``best_effort`` failing
        sources are returned alongside the healthy products.
        """
        tasks = [
            asyncio.create_task(
                self.client.fetch(
                    src["id"],
                    query.category,
                    query.n,
                    query.min_price,
                    query.max_price,
                ),
                name=f"fetch-{src['id']}",
            )
            for src in self.sources
        ]

        try:
            batches = await asyncio.gather(
                *tasks,
                return_exceptions=self.policy == BEST_EFFORT,
            )
        except SourceError as exc:
            logger.error(
                "Aborting aggregation for '%s': %s",
                query.category,
                exc,
            )
            raise
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        products: list[Product] = []
        failures: list[SourceFailure] = []
        for src, batch in zip(self.sources, batches):
            if isinstance(batch, SourceError):
                failures.append(SourceFailure.from_error(batch))
                logger.error(
                    "Source %s failed for '%s': %s",
                    src["id"],
                    query.category,
                    batch,
                )
            elif isinstance(batch, BaseException):
                raise batch
            else:
                products.extend(batch)

        return products, failures

    # ── Public entry point ───────────────────────────────

    async def top_products(
        self, query: TopProductsQuery,
    ) -> AggregationResult:
        """Return the ranked top-N products of *query.category*."""
        result = AggregationResult(category=query.category)

        merged, result.failures = await self._run_sources(query)
        result.total_before_filter = len(merged)

        filtered, result.excluded_count = PriceFilter.filter_by_range(
            merged, query.min_price, query.max_price
        )
        ranked = Ranker.sort(filtered, query.sort_by, query.sort_order)

        # Slicing saturates when fewer than n products survive
        result.products = ranked[: query.n]

        logger.info(
            "Aggregated '%s': %d of %d products "
            "(%d filtered, %d sources failed)",
            query.category,
            len(result.products),
            result.total_before_filter,
            result.excluded_count,
            len(result.failures),
        )
        return result
