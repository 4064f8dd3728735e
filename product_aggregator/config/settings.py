# product_aggregator/config/settings.py

"""Central configuration for the product aggregator."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()

_TEST_SERVER_URL = os.getenv(
    "TEST_SERVER_URL", "http://test-server.com"
).rstrip("/")


def _source(source_id: str, label: str) -> dict[str, str]:
    """Build a source registry entry, honouring a per-source env override."""
    return {
        "id": source_id,
        "label": label,
        "endpoint": os.getenv(
            f"SOURCE_{source_id}_ENDPOINT",
            f"{_TEST_SERVER_URL}/products",
        ),
    }


class Settings:
    """Central configuration for the product aggregator."""

    # --- Upstream calls ---
    TEST_SERVER_URL: str = _TEST_SERVER_URL
    DETAIL_ENDPOINT: str = os.getenv(
        "DETAIL_ENDPOINT", f"{_TEST_SERVER_URL}/products"
    ).rstrip("/")
    DETAIL_SOURCE_ID: str = "detail"
    REQUEST_TIMEOUT: float = float(
        os.getenv("REQUEST_TIMEOUT", "5")
    )                                   # Seconds per source call
    REQUEST_DEADLINE: float = float(
        os.getenv("REQUEST_DEADLINE", "10")
    )                                   # Seconds per inbound request

    # --- Aggregation ---
    FAILURE_POLICY: str = os.getenv("FAILURE_POLICY", "fail_fast")
    FAILURE_POLICIES: list[str] = ["fail_fast", "best_effort"]
    DEFAULT_TOP_N: int = 10

    # --- HTTP server ---
    SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8080"))

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources (static company registry, read-only after startup) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        _source("AMZ", "Amazon"),
        _source("FLP", "Flipkart"),
        _source("SNP", "Snapdeal"),
        _source("MYN", "Myntra"),
        _source("AZO", "Azo"),
    ]
