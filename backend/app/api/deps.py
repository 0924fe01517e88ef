"""Shared FastAPI dependencies."""

from typing import Optional

import httpx


def get_upstream_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for upstream calls; None uses httpx's default network transport."""
    return None
