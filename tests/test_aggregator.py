# tests/test_aggregator.py

"""Tests for Aggregator fan-out, filtering, ranking and top-N."""

import asyncio
import unittest

from product_aggregator.clients.errors import (
    SourceBadStatus,
    SourceError,
    SourceUnavailable,
)
from product_aggregator.models.product import Product
from product_aggregator.models.query import (
    SortKey,
    SortOrder,
    TopProductsQuery,
)
from product_aggregator.services.aggregator import (
    BEST_EFFORT,
    FAIL_FAST,
    AggregationResult,
    Aggregator,
)


def _make_product(
    source: str, price: float, name: str = "",
) -> Product:
    """Create a minimal Product owned by *source*."""
    return Product(
        id=f"{source}-{price:g}",
        name=name or f"Product {price:g}",
        price=price,
        company=source,
        category="p",
    )


def _sources(*ids: str) -> list[dict[str, str]]:
    return [
        {"id": sid, "label": sid, "endpoint": f"http://{sid}.test"}
        for sid in ids
    ]


class FakeClient:
    """Stub SourceClient serving canned catalogues."""

    def __init__(
        self,
        catalogue: dict[str, list[Product]],
        failing: dict[str, SourceError] | None = None,
        hanging: set[str] | None = None,
    ) -> None:
        self.catalogue = catalogue
        self.failing = failing or {}
        self.hanging = hanging or set()
        self.calls: list[tuple[str, str, int, float | None, float | None]] = []
        self.cancelled: list[str] = []

    async def fetch(
        self,
        source_id: str,
        category: str,
        n: int,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> list[Product]:
        self.calls.append(
            (source_id, category, n, min_price, max_price)
        )
        if source_id in self.hanging:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                self.cancelled.append(source_id)
                raise
        if source_id in self.failing:
            raise self.failing[source_id]
        return list(self.catalogue.get(source_id, []))


FIVE = ("AMZ", "FLP", "SNP", "MYN", "AZO")


def _five_source_catalogue() -> dict[str, list[Product]]:
    return {
        sid: [_make_product(sid, 10.0 * (i + 1) + j) for j in range(2)]
        for i, sid in enumerate(FIVE)
    }


class TestTopProducts(unittest.IsolatedAsyncioTestCase):
    """Aggregator.top_products with healthy sources."""

    async def test_returns_aggregation_result(self) -> None:
        client = FakeClient({"A": [_make_product("A", 10)]})
        agg = Aggregator(client, _sources("A"))
        result = await agg.top_products(TopProductsQuery(category="p"))
        self.assertIsInstance(result, AggregationResult)
        self.assertEqual(result.category, "p")
        self.assertEqual(result.failures, [])

    async def test_calls_every_source_once(self) -> None:
        """Each configured source receives the caller's parameters."""
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        query = TopProductsQuery(
            category="Laptop", n=3, min_price=5.0, max_price=100.0
        )
        await agg.top_products(query)
        self.assertEqual(
            sorted(c[0] for c in client.calls), sorted(FIVE)
        )
        for call in client.calls:
            self.assertEqual(call[1:], ("Laptop", 3, 5.0, 100.0))

    async def test_merges_union_of_sources(self) -> None:
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        result = await agg.top_products(
            TopProductsQuery(category="p", n=50)
        )
        self.assertEqual(result.total_before_filter, 10)
        self.assertEqual(len(result.products), 10)
        self.assertEqual(
            {p.company for p in result.products}, set(FIVE)
        )

    async def test_size_is_min_of_n_and_filtered(self) -> None:
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        for n in (1, 4, 10, 25):
            with self.subTest(n=n):
                result = await agg.top_products(
                    TopProductsQuery(category="p", n=n)
                )
                self.assertEqual(len(result.products), min(n, 10))

    async def test_n_larger_than_available_returns_all(self) -> None:
        """n=100 against 5 products yields exactly 5, no error."""
        client = FakeClient({
            "A": [_make_product("A", p) for p in (10, 20, 30, 40, 50)],
        })
        agg = Aggregator(client, _sources("A"))
        result = await agg.top_products(
            TopProductsQuery(category="p", n=100)
        )
        self.assertEqual(len(result.products), 5)

    async def test_price_range_scenario(self) -> None:
        """[10..50] with bounds 15..35 leaves 20 and 30, name desc."""
        client = FakeClient({
            "A": [_make_product("A", p) for p in (10, 20, 30, 40, 50)],
        })
        agg = Aggregator(client, _sources("A"))
        result = await agg.top_products(
            TopProductsQuery(category="p", min_price=15.0, max_price=35.0)
        )
        self.assertEqual(
            [p.price for p in result.products], [30.0, 20.0]
        )
        self.assertEqual(
            [p.name for p in result.products],
            ["Product 30", "Product 20"],
        )
        self.assertEqual(result.excluded_count, 3)

    async def test_filters_products_sources_failed_to_filter(self) -> None:
        """Bounds are re-applied even if a source ignores them."""
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        result = await agg.top_products(
            TopProductsQuery(
                category="p", n=50, min_price=20.0, max_price=40.0
            )
        )
        self.assertTrue(result.products)
        for product in result.products:
            self.assertGreaterEqual(product.price, 20.0)
            self.assertLessEqual(product.price, 40.0)

    async def test_sorted_by_price_ascending(self) -> None:
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        result = await agg.top_products(
            TopProductsQuery(
                category="p",
                sort_by=SortKey.PRICE,
                sort_order=SortOrder.ASC,
            )
        )
        prices = [p.price for p in result.products]
        self.assertEqual(prices, sorted(prices))
        self.assertEqual(prices[0], 10.0)

    async def test_top_n_taken_after_ranking(self) -> None:
        """The cut keeps the best-ranked products, not the first fetched."""
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        result = await agg.top_products(
            TopProductsQuery(
                category="p",
                n=2,
                sort_by=SortKey.PRICE,
                sort_order=SortOrder.DESC,
            )
        )
        self.assertEqual(
            [p.price for p in result.products], [51.0, 50.0]
        )

    async def test_repeated_requests_are_idempotent(self) -> None:
        client = FakeClient(_five_source_catalogue())
        agg = Aggregator(client, _sources(*FIVE))
        query = TopProductsQuery(category="p", n=7, sort_by=SortKey.RATING)
        first = await agg.top_products(query)
        second = await agg.top_products(query)
        self.assertEqual(first.products, second.products)

    async def test_empty_sources_returns_empty(self) -> None:
        agg = Aggregator(FakeClient({}), [])
        result = await agg.top_products(TopProductsQuery(category="p"))
        self.assertEqual(result.products, [])
        self.assertEqual(result.total_before_filter, 0)


class TestFailFast(unittest.IsolatedAsyncioTestCase):
    """The default policy aborts on the first failing source."""

    async def test_bad_status_aborts_request(self) -> None:
        client = FakeClient(
            _five_source_catalogue(),
            failing={"SNP": SourceBadStatus("SNP", 503)},
        )
        agg = Aggregator(client, _sources(*FIVE), policy=FAIL_FAST)
        with self.assertRaises(SourceBadStatus) as ctx:
            await agg.top_products(TopProductsQuery(category="p"))
        self.assertEqual(ctx.exception.source_id, "SNP")
        self.assertIn("SNP", str(ctx.exception))

    async def test_failure_cancels_in_flight_sources(self) -> None:
        client = FakeClient(
            {},
            failing={"AMZ": SourceUnavailable("AMZ", "refused")},
            hanging={"FLP"},
        )
        agg = Aggregator(client, _sources("AMZ", "FLP"), policy=FAIL_FAST)
        with self.assertRaises(SourceUnavailable):
            await agg.top_products(TopProductsQuery(category="p"))
        await asyncio.sleep(0.01)
        self.assertEqual(client.cancelled, ["FLP"])


class TestBestEffort(unittest.IsolatedAsyncioTestCase):
    """best_effort keeps healthy sources and reports failures."""

    async def test_remaining_sources_still_returned(self) -> None:
        client = FakeClient(
            _five_source_catalogue(),
            failing={"SNP": SourceBadStatus("SNP", 503)},
        )
        agg = Aggregator(client, _sources(*FIVE), policy=BEST_EFFORT)
        result = await agg.top_products(
            TopProductsQuery(category="p", n=50)
        )
        self.assertEqual(len(result.products), 8)
        self.assertNotIn("SNP", {p.company for p in result.products})
        self.assertEqual(len(result.failures), 1)
        failure = result.failures[0]
        self.assertEqual(failure.source_id, "SNP")
        self.assertEqual(failure.kind, "SourceBadStatus")
        self.assertIn("503", failure.message)

    async def test_all_sources_failing_returns_empty(self) -> None:
        client = FakeClient(
            {},
            failing={
                sid: SourceUnavailable(sid, "down") for sid in FIVE
            },
        )
        agg = Aggregator(client, _sources(*FIVE), policy=BEST_EFFORT)
        result = await agg.top_products(TopProductsQuery(category="p"))
        self.assertEqual(result.products, [])
        self.assertEqual(len(result.failures), 5)

    async def test_unexpected_errors_still_propagate(self) -> None:
        """Only SourceErrors are tolerated; bugs are not swallowed."""
        client = FakeClient(
            {}, failing={"AMZ": RuntimeError("boom")},  # type: ignore[dict-item]
        )
        agg = Aggregator(client, _sources("AMZ"), policy=BEST_EFFORT)
        with self.assertRaises(RuntimeError):
            await agg.top_products(TopProductsQuery(category="p"))


class TestCancellation(unittest.IsolatedAsyncioTestCase):
    """Cancelling the request cancels every source call."""

    async def test_deadline_cancels_all_sources(self) -> None:
        client = FakeClient({}, hanging={"AMZ", "FLP"})
        agg = Aggregator(client, _sources("AMZ", "FLP"))
        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(
                agg.top_products(TopProductsQuery(category="p")),
                timeout=0.05,
            )
        await asyncio.sleep(0.01)
        self.assertEqual(sorted(client.cancelled), ["AMZ", "FLP"])


class TestPolicyValidation(unittest.TestCase):
    """Aggregator rejects unknown failure policies."""

    def test_unknown_policy_raises(self) -> None:
        with self.assertRaises(ValueError):
            Aggregator(FakeClient({}), [], policy="sometimes")

    def test_default_policy_from_settings(self) -> None:
        agg = Aggregator(FakeClient({}), [])
        self.assertIn(agg.policy, (FAIL_FAST, BEST_EFFORT))


if __name__ == "__main__":
    unittest.main()
