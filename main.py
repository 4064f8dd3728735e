# main.py

"""Entry point for the product aggregator (CLI or HTTP server)."""

import argparse
import asyncio
import logging
import sys

from product_aggregator.config.logging_config import setup_logging
from product_aggregator.config.settings import Settings
from product_aggregator.models.query import SortKey, SortOrder

logger = logging.getLogger("product_aggregator.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="product_aggregator",
        description="Top-N product aggregation across companies.",
        epilog=f"Configured sources: {valid_ids}",
    )
    parser.add_argument(
        "category",
        nargs="?",
        default=None,
        help="Product category to aggregate.",
    )
    parser.add_argument(
        "-n",
        type=int,
        default=Settings.DEFAULT_TOP_N,
        help=f"Number of products to return (default: {Settings.DEFAULT_TOP_N}).",
    )
    parser.add_argument(
        "--min-price",
        type=float,
        default=None,
        dest="min_price",
        help="Lower price bound (inclusive).",
    )
    parser.add_argument(
        "--max-price",
        type=float,
        default=None,
        dest="max_price",
        help="Upper price bound (inclusive).",
    )
    parser.add_argument(
        "--sort-by",
        choices=[k.value for k in SortKey],
        default=SortKey.NAME.value,
        dest="sort_by",
        help="Ranking key (default: name).",
    )
    parser.add_argument(
        "--sort-order",
        choices=[o.value for o in SortOrder],
        default=SortOrder.DESC.value,
        dest="sort_order",
        help="Ranking direction (default: desc).",
    )
    parser.add_argument(
        "--policy",
        choices=Settings.FAILURE_POLICIES,
        default=None,
        help=f"Source failure policy (default: {Settings.FAILURE_POLICY}).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--detail",
        default=None,
        metavar="PRODUCT_ID",
        help="Resolve one product's details instead of aggregating.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Start the HTTP server.",
    )
    parser.add_argument(
        "--host",
        default=Settings.SERVER_HOST,
        help="HTTP server bind address.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=Settings.SERVER_PORT,
        help="HTTP server port.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on all sources.",
    )
    return parser


def _run_server(args: argparse.Namespace) -> None:
    """Serve the HTTP API until interrupted."""
    from product_aggregator.api.server import create_app

    app = create_app()
    try:
        app.run(host=args.host, port=args.port)
    finally:
        logger.info("product_aggregator server shutting down")


def _run_cli(
    args: argparse.Namespace, parser: argparse.ArgumentParser,
) -> None:
    """Run a headless aggregation or detail lookup and exit."""
    from product_aggregator.api.request_translator import (
        parse_top_products_query,
    )
    from product_aggregator.cli.runner import (
        cli_product_details,
        cli_top_products,
    )

    if args.category is None:
        parser.error("a category is required")

    if args.detail is not None:
        coro = cli_product_details(
            args.category, args.detail, args.output_format
        )
    else:
        params = {
            "n": str(args.n),
            "sortBy": args.sort_by,
            "sortOrder": args.sort_order,
        }
        if args.min_price is not None:
            params["minPrice"] = str(args.min_price)
        if args.max_price is not None:
            params["maxPrice"] = str(args.max_price)
        query = parse_top_products_query(args.category, params)
        coro = cli_top_products(query, args.policy, args.output_format)

    sys.exit(asyncio.run(coro))


def _run_health_check() -> None:
    """Run source connectivity health check."""
    from product_aggregator.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the server, the health check, or a headless query."""
    log_file = setup_logging()
    logger.info("product_aggregator starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.health:
        _run_health_check()
    elif args.serve:
        _run_server(args)
    else:
        _run_cli(args, parser)


if __name__ == "__main__":
    main()
