from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from urllib.parse import quote

import requests

from daily_registry.exceptions import StoreError

log = logging.getLogger(__name__)


class ApiError(StoreError):
    """Raised for transport failures and non-2xx responses from the registry API."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ApiClient:
    """Thin JSON client for the registry REST API.

    Every request carries the bearer token (when configured) and the
    configured timeout. Query parameters whose value is ``None`` are dropped,
    matching how the API treats an absent filter.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings) -> "ApiClient":
        return cls(
            settings.api_base_url,
            token=settings.api_token,
            timeout=settings.request_timeout,
        )

    def url(self, path: str, *segments: Any) -> str:
        parts = [path.strip("/")]
        parts.extend(quote(str(segment), safe="") for segment in segments)
        return self._base_url + "/".join(parts)

    def get(self, path: str, *, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self._request("GET", self.url(path), params=params)

    def post(self, path: str, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", self.url(path), json=dict(payload))

    def put(self, path: str, record_id: Any, payload: Mapping[str, Any]) -> Any:
        return self._request("PUT", self.url(path, record_id), json=dict(payload))

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        cleaned = {key: value for key, value in (params or {}).items() if value is not None}
        try:
            response = self._session.request(
                method,
                url,
                params=cleaned or None,
                json=json,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            log.debug("%s %s failed: %s", method, url, exc)
            raise ApiError(f"{method} {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ApiError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"{method} {url} returned a non-JSON body") from exc
