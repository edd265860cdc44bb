"""Shared HTTP plumbing for the REST-based adapters.

Every transport or payload problem is raised as AdapterError so that the
adapter chain can move on to the next source.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import orjson
import requests

from core.errors import AdapterError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10
USER_AGENT = "satgate/0.1"


class RestClient:
    """Thin synchronous JSON client bound to one base URL."""

    def __init__(self, base_url: str, name: str, timeout_s: float = DEFAULT_TIMEOUT_S,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.timeout_s = timeout_s
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = USER_AGENT
        return self._session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def get_raw(self, path: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise AdapterError(f"GET {path} failed: {e}", adapter=self.name) from e
        if resp.status_code != 200:
            log.debug("%s GET %s -> %s: %s", self.name, path, resp.status_code, resp.text[:200])
            raise AdapterError(f"GET {path} returned HTTP {resp.status_code}", adapter=self.name)
        return resp.content

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        body = self.get_raw(path, params)
        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise AdapterError(f"GET {path} returned invalid JSON", adapter=self.name) from e

    def get_int(self, path: str, params: Optional[Dict[str, Any]] = None) -> int:
        """For endpoints answering with a bare number (e.g. a block height)."""
        body = self.get_raw(path, params)
        try:
            return int(body.strip())
        except ValueError as e:
            raise AdapterError(f"GET {path} returned a non-integer body", adapter=self.name) from e
