# product_aggregator/api/request_translator.py

"""Translate between the HTTP wire format and the typed core API."""

import math
from collections.abc import Mapping
from typing import Any

from product_aggregator.clients.errors import (
    AggregatorError,
    InvalidRequest,
    SourceError,
)
from product_aggregator.config.settings import Settings
from product_aggregator.models.product import Product
from product_aggregator.models.query import (
    SortKey,
    SortOrder,
    TopProductsQuery,
)
from product_aggregator.services.aggregator import AggregationResult


def split_path(path: str) -> list[str]:
    """Split a URL path into its non-empty segments."""
    return [segment for segment in path.split("/") if segment]


def _segment(path: str, index: int, name: str) -> str:
    segments = split_path(path)
    if len(segments) <= index:
        msg = f"path '{path}' has no {name} segment"
        raise InvalidRequest(msg)
    return segments[index]


def category_from_path(path: str) -> str:
    """``/categories/<category>/...`` → ``<category>``."""
    return _segment(path, 1, "category")


def product_id_from_path(path: str) -> str:
    """``/categories/<category>/products/<id>`` → ``<id>``."""
    return _segment(path, 3, "product id")


def _parse_count(raw: str | None) -> int:
    try:
        n = int(raw) if raw is not None else 0
    except ValueError:
        n = 0
    return n if n > 0 else Settings.DEFAULT_TOP_N


def _parse_bound(raw: str | None) -> float | None:
    """Absent, unparsable, non-finite or non-positive bounds are unset."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def parse_top_products_query(
    category: str, params: Mapping[str, str],
) -> TopProductsQuery:
    """Build a TopProductsQuery from raw query-string values."""
    if not category:
        raise InvalidRequest("category must not be empty")
    return TopProductsQuery(
        category=category,
        n=_parse_count(params.get("n")),
        min_price=_parse_bound(params.get("minPrice")),
        max_price=_parse_bound(params.get("maxPrice")),
        sort_by=SortKey.parse(params.get("sortBy")),
        sort_order=SortOrder.parse(params.get("sortOrder")),
    )


def top_products_payload(result: AggregationResult) -> dict[str, Any]:
    """``{"products": [...]}``, plus ``failures`` when any source failed."""
    payload: dict[str, Any] = {
        "products": [p.to_dict() for p in result.products],
    }
    if result.failures:
        payload["failures"] = [
            {
                "source": f.source_id,
                "kind": f.kind,
                "message": f.message,
            }
            for f in result.failures
        ]
    return payload


def product_details_payload(product: Product) -> dict[str, Any]:
    return {"product": product.to_dict()}


def error_payload(exc: AggregatorError) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": str(exc), "kind": exc.kind}
    if isinstance(exc, SourceError):
        payload["source"] = exc.source_id
    return payload
