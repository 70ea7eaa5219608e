"""
HTTP Client

Thin requests wrapper used by the chain client. Every call is logged at
debug level with its latency; transport failures surface as HttpError.
"""

from __future__ import annotations

import json as jsonlib
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests


logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """
    Response from an HTTP request.
    """
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return jsonlib.loads(self.content)

    def raise_for_status(self) -> None:
        """Raise HttpError if status is not 2xx."""
        if not self.ok:
            raise HttpError(
                f"HTTP {self.status_code} for {self.url}: {self.text[:200]}",
                status_code=self.status_code,
                response=self,
            )


class HttpError(Exception):
    """HTTP request error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[HttpResponse] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class HttpClient:
    """
    HTTP client bound to one base URL.

    Usage:
        client = HttpClient("https://blockstream.info/api")
        tip = int(client.get_text("/blocks/tip/height"))
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = 30.0,
        default_headers: Optional[dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = default_headers or {}
        self._session = session

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers)
        return self._session

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Make an HTTP request.

        Returns:
            HttpResponse, whatever the status code

        Raises:
            HttpError: On connection errors and timeouts
        """
        url = self._url(path)
        try:
            response = self._get_session().request(
                method=method,
                url=url,
                params=params,
                json=json,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise HttpError(str(e)) from e

        result = HttpResponse(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
            url=str(response.url),
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )
        logger.debug(f"{method} {url} -> {result.status_code} ({result.elapsed_ms:.0f}ms)")
        return result

    def get(
        self,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        return self.request("GET", path, params=params, timeout=timeout)

    def get_text(self, path: str) -> str:
        """GET and return the body as stripped text; non-2xx raises HttpError."""
        response = self.get(path)
        response.raise_for_status()
        return response.text.strip()

    def get_json(self, path: str) -> Any:
        """GET and decode a JSON body; non-2xx raises HttpError."""
        response = self.get(path)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()


__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
