# tests/conftest.py

"""Shared pytest fixtures for all aggregator tests."""

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(autouse=True)
def block_network() -> Generator[MagicMock, None, None]:
    """Patch the async HTTP session so no test reaches the network.

    Tests that exercise the client patch the same target themselves;
    the innermost patch wins.
    """
    with patch(
        "product_aggregator.clients.source_client"
        ".curl_requests.AsyncSession",
        side_effect=RuntimeError("network disabled in tests"),
    ) as mock_session_cls:
        yield mock_session_cls
