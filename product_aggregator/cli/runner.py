# product_aggregator/cli/runner.py

"""Headless CLI runner: reuses the async aggregator and detail resolver."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from product_aggregator.clients.errors import SourceError
from product_aggregator.models.product import Product
from product_aggregator.models.query import TopProductsQuery
from product_aggregator.services.aggregator import Aggregator
from product_aggregator.services.detail_resolver import DetailResolver

logger = logging.getLogger("product_aggregator.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _print_table(products: list[Product], title: str) -> None:
    """Render a Rich table of products to stdout, in ranked order."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Discount", justify="right")
    table.add_column("Company", style="magenta")
    table.add_column("ID", overflow="fold", style="dim")

    for idx, p in enumerate(products, 1):
        table.add_row(
            str(idx),
            p.name[:50],
            f"{p.price:,.2f}",
            f"{p.rating:g}",
            f"{p.discount:g}%",
            p.company,
            p.id,
        )

    Console().print(table)


def _write_json(payload: object) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


async def cli_top_products(
    query: TopProductsQuery,
    policy: str | None,
    output_format: str,
) -> int:
    """Run one aggregation and return an exit code (0=ok, 1=fail)."""
    aggregator = Aggregator(policy=policy)

    source_labels = ", ".join(s["id"] for s in aggregator.sources)
    _err.print(
        f"[bold]Category:[/bold] {query.category}  "
        f"[dim]sources={source_labels} policy={aggregator.policy} "
        f"sort={query.sort_by.value}/{query.sort_order.value} "
        f"n={query.n}[/dim]"
    )

    try:
        result = await aggregator.top_products(query)
    except SourceError as exc:
        _err.print(
            f"[red]Error fetching products from {exc.source_id}: "
            f"{exc.message}[/red]"
        )
        return 1

    for failure in result.failures:
        _err.print(
            f"[red]{failure.source_id} failed "
            f"({failure.kind}): {failure.message}[/red]"
        )

    if not result.products:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    detail = (
        f" ({result.excluded_count} outside price range)"
        if result.excluded_count
        else ""
    )
    _err.print(
        f"[green]✓ {len(result.products)} products"
        f" of {result.total_before_filter}{detail}[/green]"
    )

    if output_format == "table":
        _print_table(
            result.products, f"Top products: {query.category}"
        )
    else:
        _write_json([p.to_dict() for p in result.products])

    return 0


async def cli_product_details(
    category: str,
    product_id: str,
    output_format: str,
) -> int:
    """Resolve one product and return an exit code (0=ok, 1=fail)."""
    try:
        product = await DetailResolver().resolve(category, product_id)
    except SourceError as exc:
        _err.print(
            f"[red]Error fetching product details: {exc.message}[/red]"
        )
        return 1

    if output_format == "table":
        _print_table([product], f"Product {product_id}")
    else:
        _write_json(product.to_dict())
    return 0


async def run_health_check() -> int:
    """Run connectivity health check on all sources."""
    from product_aggregator.services.health_checker import HealthChecker

    _err.print("[bold]Running source health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Source Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Source", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.source_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
