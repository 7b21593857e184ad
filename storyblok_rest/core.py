"""
Core client for the Storyblok REST API

Wraps a requests.Session with get/post/put against the management API and
the content delivery API of one region.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from config import DEFAULT_REGION, REQUEST_TIMEOUT
from logging_config import logger
from .utils import region_hosts


@dataclass
class ApiResponse:
    """Decoded API response"""

    data: Dict[str, Any]
    status: int
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        """Value of the paging 'total' header"""
        return int(self.headers.get("total") or self.headers.get("Total") or 0)


class StoryblokClient:
    """Authenticated client for one Storyblok region

    Paths starting with ``cdn/`` are sent to the content delivery API and
    authenticated with the space access token; every other path goes to the
    management API with the OAuth token.
    """

    def __init__(
        self,
        oauth_token: str,
        region: str = DEFAULT_REGION,
        access_token: Optional[str] = None,
        rate_limit: Optional[float] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        management_host, delivery_host = region_hosts(region)
        self.management_url = f"https://{management_host}/v1"
        self.delivery_url = f"https://{delivery_host}/v2"
        self.region = region
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Authorization": oauth_token, "Content-Type": "application/json"}
        )

        self._min_interval = 1.0 / rate_limit if rate_limit else 0.0
        self._last_request = 0.0
        self._throttle_lock = threading.Lock()

    def _url(self, path: str, params: Dict[str, Any]) -> str:
        path = path.lstrip("/")
        if path.startswith("cdn/"):
            if not self.access_token:
                raise ValueError("An access token is required for content delivery requests")
            params.setdefault("token", self.access_token)
            return f"{self.delivery_url}/{path}"
        return f"{self.management_url}/{path}"

    def _throttle(self):
        if not self._min_interval:
            return
        with self._throttle_lock:
            wait = self._last_request + self._min_interval - time.monotonic()
            if wait > 0:
                time.sleep(wait)
            self._last_request = time.monotonic()

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        params = dict(params or {})
        url = self._url(path, params)

        self._throttle()
        started = time.monotonic()
        response = self.session.request(
            method, url, params=params or None, json=body, timeout=self.timeout
        )
        logger.log_api_call(
            method, url, response.status_code, time.monotonic() - started
        )
        response.raise_for_status()

        data = response.json() if response.content else {}
        return ApiResponse(
            data=data, status=response.status_code, headers=dict(response.headers)
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return self._request("GET", path, params=params)

    def post(self, path: str, body: Dict[str, Any]) -> ApiResponse:
        return self._request("POST", path, body=body)

    def put(self, path: str, body: Dict[str, Any]) -> ApiResponse:
        return self._request("PUT", path, body=body)
