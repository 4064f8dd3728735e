# product_aggregator/api/server.py

"""Flask application exposing the aggregation and detail endpoints."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from flask import Blueprint, Flask, Response, jsonify, request

from product_aggregator.api.request_translator import (
    category_from_path,
    error_payload,
    parse_top_products_query,
    product_details_payload,
    product_id_from_path,
    split_path,
    top_products_payload,
)
from product_aggregator.clients.errors import (
    AggregatorError,
    InvalidRequest,
    SourceError,
)
from product_aggregator.config.settings import Settings
from product_aggregator.services.aggregator import Aggregator
from product_aggregator.services.detail_resolver import DetailResolver

logger = logging.getLogger("product_aggregator.server")

T = TypeVar("T")

categories_bp = Blueprint("categories", __name__)


def run_with_deadline(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro* in a fresh event loop, bounded by REQUEST_DEADLINE.

    On timeout every task spawned by *coro* is cancelled before
    ``asyncio.TimeoutError`` reaches the caller.
    """
    return asyncio.run(
        asyncio.wait_for(coro, timeout=Settings.REQUEST_DEADLINE)
    )


def _top_products(category: str) -> tuple[Response, int]:
    query = parse_top_products_query(category, request.args)
    result = run_with_deadline(Aggregator().top_products(query))
    return jsonify(top_products_payload(result)), 200


def _product_details(category: str, product_id: str) -> tuple[Response, int]:
    product = run_with_deadline(
        DetailResolver().resolve(category, product_id)
    )
    return jsonify(product_details_payload(product)), 200


@categories_bp.route("/<path:subpath>", methods=["GET"])
def categories(subpath: str) -> tuple[Response, int]:
    """Dispatch ``/categories/<category>/products[/<product_id>]``."""
    segments = split_path(request.path)
    try:
        category = category_from_path(request.path)
        if segments[2:] in ([], ["products"]):
            return _top_products(category)
        if len(segments) == 4 and segments[2] == "products":
            return _product_details(
                category, product_id_from_path(request.path)
            )
        raise InvalidRequest(f"no route for '{request.path}'")
    except InvalidRequest as exc:
        return jsonify(error_payload(exc)), 404
    except SourceError as exc:
        logger.error("Request %s failed: %s", request.path, exc)
        return jsonify(error_payload(exc)), 500
    except asyncio.TimeoutError:
        logger.error(
            "Request %s exceeded %.1fs deadline",
            request.path,
            Settings.REQUEST_DEADLINE,
        )
        return jsonify({
            "error": (
                f"request exceeded {Settings.REQUEST_DEADLINE}s deadline"
            ),
            "kind": "DeadlineExceeded",
        }), 504
    except AggregatorError as exc:
        return jsonify(error_payload(exc)), 500


def create_app() -> Flask:
    """Create the Flask application."""
    app = Flask(__name__)
    app.register_blueprint(categories_bp, url_prefix="/categories")
    return app
