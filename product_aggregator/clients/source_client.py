# product_aggregator/clients/source_client.py

"""HTTP client for the upstream company catalogues and the detail endpoint."""

import asyncio
import logging
import urllib.parse
from typing import Any

from curl_cffi import requests as curl_requests

from product_aggregator.clients.errors import (
    SourceBadStatus,
    SourceDecodeError,
    SourceUnavailable,
)
from product_aggregator.config.settings import Settings
from product_aggregator.models.product import Product


class SourceClient:
    """Single-round-trip access to every configured source.

    No retries and no caching: each call opens one session, issues one
    GET bounded by ``REQUEST_TIMEOUT`` and closes the session again, so
    a cancelled call never leaves a connection behind.
    """

    def __init__(
        self,
        sources: list[dict[str, str]] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.logger = logging.getLogger("product_aggregator.sources")
        self.settings = Settings()
        registry = (
            sources
            if sources is not None
            else self.settings.AVAILABLE_SOURCES
        )
        self._endpoints: dict[str, str] = {
            s["id"]: s["endpoint"] for s in registry
        }
        self._request_timeout: float = (
            timeout
            if timeout is not None
            else self.settings.REQUEST_TIMEOUT
        )

    def endpoint_for(self, source_id: str) -> str:
        """Return the catalogue URL of *source_id*."""
        try:
            return self._endpoints[source_id]
        except KeyError:
            raise SourceUnavailable(
                source_id, "no endpoint configured"
            ) from None

    async def _fetch_get(
        self,
        source_id: str,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> curl_requests.Response:
        """GET *url* once and return the 200 response.

        Raises SourceUnavailable on transport errors or when the
        deadline passes, SourceBadStatus on any other status.
        """
        try:
            async with curl_requests.AsyncSession(
                impersonate=self.settings.IMPERSONATE_BROWSER
            ) as session:
                resp = await asyncio.wait_for(
                    session.get(
                        url,
                        params=params,
                        headers=self.settings.DEFAULT_HEADERS,
                        timeout=self._request_timeout,
                    ),
                    timeout=self._request_timeout,
                )
        except asyncio.TimeoutError as exc:
            self.logger.warning(
                "[%s] No response within %.1fs",
                source_id,
                self._request_timeout,
            )
            raise SourceUnavailable(
                source_id,
                f"no response within {self._request_timeout}s",
            ) from exc
        except Exception as exc:
            self.logger.warning(
                "[%s] Request error: %s",
                source_id,
                exc,
                exc_info=True,
            )
            raise SourceUnavailable(source_id, str(exc)) from exc

        if resp.status_code != 200:
            self.logger.warning(
                "[%s] HTTP %d from %s",
                source_id,
                resp.status_code,
                url,
            )
            raise SourceBadStatus(source_id, resp.status_code)
        return resp

    def _decode_json(
        self, source_id: str, resp: curl_requests.Response,
    ) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise SourceDecodeError(
                source_id, f"invalid JSON body: {exc}"
            ) from exc

    async def fetch(
        self,
        source_id: str,
        category: str,
        n: int,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> list[Product]:
        """Fetch one company's product slice for *category*.

        Unset price bounds go out as ``0``, the upstream's
        "unrestricted" value.
        """
        params: dict[str, Any] = {
            "company": source_id,
            "category": category,
            "minPrice": min_price or 0.0,
            "maxPrice": max_price or 0.0,
            "n": n,
        }
        self.logger.debug(
            "[%s] Fetching category '%s' (n=%d)",
            source_id,
            category,
            n,
        )
        resp = await self._fetch_get(
            source_id, self.endpoint_for(source_id), params
        )
        body = self._decode_json(source_id, resp)
        if not isinstance(body, list):
            raise SourceDecodeError(
                source_id,
                f"expected a JSON array, got {type(body).__name__}",
            )

        try:
            products = [
                Product.from_dict(
                    item, company=source_id, category=category
                )
                for item in body
            ]
        except ValueError as exc:
            raise SourceDecodeError(source_id, str(exc)) from exc

        self.logger.info(
            "[%s] %d products for '%s'",
            source_id,
            len(products),
            category,
        )
        return products

    async def fetch_details(self, product_id: str) -> Product:
        """Fetch the full record of one product from the detail endpoint."""
        source_id = self.settings.DETAIL_SOURCE_ID
        quoted = urllib.parse.quote(product_id, safe="")
        url = f"{self.settings.DETAIL_ENDPOINT}/{quoted}/details"

        resp = await self._fetch_get(source_id, url)
        body = self._decode_json(source_id, resp)
        try:
            return Product.from_dict(body)
        except ValueError as exc:
            raise SourceDecodeError(source_id, str(exc)) from exc

    async def probe(self, source_id: str, url: str) -> int:
        """Issue one bare GET and return the status code.

        Used by the health checker, so non-200 statuses are returned
        rather than raised.
        """
        try:
            return (await self._fetch_get(source_id, url)).status_code
        except SourceBadStatus as exc:
            return exc.status_code
