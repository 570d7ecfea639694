"""HTTP transport shared by the chain adapters, using requests."""

from __future__ import annotations

import logging
from typing import Any

import requests

from chain_gateway.chain.errors import classify_failure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def normalize_base_url(url: str) -> str:
    """Strip a single trailing slash from a node base URL."""
    return url[:-1] if url.endswith("/") else url


class HttpTransport:
    """Issues GET/POST requests against one node and returns decoded JSON.

    Every failure leaves this class as an RPCError; there are no retries.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def get(self, path: str) -> Any:
        return self._request("GET", path)

    def post(self, path: str, payload: Any) -> Any:
        return self._request("POST", path, payload)

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        url = self.base_url + path
        try:
            resp = self.session.request(
                method, url, json=payload, timeout=self.timeout
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ConnectionError, ValueError) as e:
            logger.error("RPC call failed: %s %s: %s", method, url, e)
            raise classify_failure(e) from e
