"""Connectivity probe used for online/offline routing."""

from __future__ import annotations

import logging

import requests

logger = logging.getLogger(__name__)


class ConnectivityChecker:
    """Report whether the probe URL answers within the timeout."""

    def __init__(self, probe_url: str, timeout_s: float = 3.0) -> None:
        self._probe_url = probe_url
        self._timeout_s = timeout_s

    def __call__(self) -> bool:
        try:
            response = requests.head(self._probe_url, timeout=self._timeout_s, allow_redirects=True)
        except requests.RequestException as exc:
            logger.info("Connectivity probe failed: %s", exc)
            return False
        return response.status_code < 500
