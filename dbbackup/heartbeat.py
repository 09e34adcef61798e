"""Liveness ping sent after each completed run."""
from __future__ import annotations

import logging
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)


def send_heartbeat(url: Optional[str], timeout: float = 10.0) -> None:
    if not url:
        return
    LOGGER.info("Sending heartbeat")
    try:
        requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        LOGGER.debug("Heartbeat to '%s' failed: %s", url, exc)


__all__ = ["send_heartbeat"]
