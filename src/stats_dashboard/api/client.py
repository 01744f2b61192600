from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from stats_dashboard.api import schemas
from stats_dashboard.api.errors import ApiStatusError, ApiTransportError, PayloadError
from stats_dashboard.config.settings import ApiConfig

logger = logging.getLogger(__name__)

Params = dict[str, Any]


def api_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or "")
    return ""


class StatsApiClient:
    """Read-only client for the remote statistics API.

    Sections are fetched from a thread pool and ``requests.Session`` is not
    thread-safe, so without an injected ``session`` each thread gets its own.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float | None = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    @classmethod
    def from_config(cls, cfg: ApiConfig) -> "StatsApiClient":
        return cls(base_url=cfg.base_url, timeout_seconds=cfg.timeout_seconds)

    def get_json(self, endpoint: str, params: Params | None = None) -> Any:
        url = api_url(self.base_url, endpoint)
        logger.debug("GET %s params=%s", url, params)
        try:
            # requests repeats list-valued params: vars=a&vars=b
            response = self.session.get(url, params=params, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise ApiTransportError(f"GET {endpoint} failed: {exc}") from exc

        if not response.ok:
            raise ApiStatusError(endpoint, response.status_code, _error_detail(response))

        try:
            return response.json()
        except ValueError as exc:
            raise PayloadError(endpoint, f"response is not JSON ({exc})") from exc

    def fetch_variables(self) -> schemas.VariableCatalog:
        return schemas.parse_variables(self.get_json("/variables"))

    def fetch_raw_data(self) -> list[dict[str, schemas.Scalar]]:
        return schemas.parse_raw_data(self.get_json("/data"))
