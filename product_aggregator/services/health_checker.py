# product_aggregator/services/health_checker.py

"""Source connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from product_aggregator.clients.errors import SourceError
from product_aggregator.clients.source_client import SourceClient
from product_aggregator.config.settings import Settings

logger = logging.getLogger("product_aggregator.health")

_HEALTH_TIMEOUT = 10  # seconds per source, above the slow threshold
_SLOW_THRESHOLD_MS = 5000


@dataclass
class HealthResult:
    """Result of a single source health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


async def probe_source(
    client: SourceClient, source_id: str, url: str,
) -> HealthResult:
    """Probe a single upstream endpoint for connectivity."""
    start = time.monotonic()
    try:
        status_code = await client.probe(source_id, url)
    except SourceError as exc:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            message=exc.message[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if status_code != 200:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=f"HTTP {status_code}",
        )

    if elapsed_ms > _SLOW_THRESHOLD_MS:
        return HealthResult(
            source_id=source_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )

    return HealthResult(
        source_id=source_id,
        status="ok",
        latency_ms=elapsed_ms,
        message="",
    )


class HealthChecker:
    """Runs concurrent health probes against all sources."""

    def __init__(self, client: SourceClient | None = None) -> None:
        self.sources = Settings.AVAILABLE_SOURCES
        self.client = client or SourceClient(
            self.sources, timeout=_HEALTH_TIMEOUT
        )

    def _targets(self) -> list[tuple[str, str]]:
        targets = [(s["id"], s["endpoint"]) for s in self.sources]
        targets.append(
            (Settings.DETAIL_SOURCE_ID, Settings.DETAIL_ENDPOINT)
        )
        return targets

    async def check_all(self) -> list[HealthResult]:
        """Probe every source and the detail endpoint concurrently."""
        results: list[HealthResult] = list(
            await asyncio.gather(*(
                probe_source(self.client, source_id, url)
                for source_id, url in self._targets()
            ))
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
