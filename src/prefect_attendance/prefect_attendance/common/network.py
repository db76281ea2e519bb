"""Connectivity helpers for callers that gate update checks.

The record store never depends on these; they exist for the outer layers.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

PROBE_URLS = (
    "https://api.github.com/zen",
    "https://www.google.com/gen_204",
)


def is_online(
    *,
    urls: Sequence[str] = PROBE_URLS,
    timeout: float = 5.0,
    client: Optional[httpx.Client] = None,
) -> bool:
    """True as soon as any probe URL answers a HEAD request (any status code)."""
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout)
    try:
        for url in urls:
            try:
                client.head(url)
                return True
            except httpx.HTTPError as e:
                logger.debug(f"Connectivity probe {url} failed: {e}")
        return False
    finally:
        if owns_client:
            client.close()


def wait_for_online(
    timeout: float = 30.0,
    *,
    interval: float = 1.0,
    probe: Callable[[], bool] = is_online,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll `probe` until it succeeds or `timeout` seconds have elapsed."""
    start = clock()
    while clock() - start < timeout:
        if probe():
            return True
        sleep(interval)
    return False
