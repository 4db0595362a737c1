from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote as url_quote

import requests

from app.errors import NetworkError, ParseError


class IexRestClient:
    """Minimal IEX Cloud client: most-active list, quote, logo metadata, logo bytes."""

    DEFAULT_BASE_URL = "https://cloud.iexapis.com/stable"

    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        session: Optional[Any] = None,
        timeout_sec: float = 5.0,
    ) -> None:
        if not token:
            raise ValueError("token must be a non-empty string")

        self.token = token
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout_sec = timeout_sec

    def _get(self, url: str, *, params: Optional[dict[str, str]] = None) -> Any:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            raise NetworkError(f"request failed: {exc}") from exc

        status_code = getattr(response, "status_code", None)
        if status_code != 200:
            raise NetworkError(f"unexpected status {status_code}", status_code=status_code)
        return response

    def _get_json(self, path: str) -> Any:
        response = self._get(f"{self.base_url}{path}", params={"token": self.token})
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"invalid JSON body from {path}") from exc

    @staticmethod
    def _symbol_path(symbol: str) -> str:
        return url_quote(symbol, safe="")

    def list_most_active(self) -> Any:
        return self._get_json("/stock/market/list/mostactive")

    def get_quote(self, symbol: str) -> Any:
        return self._get_json(f"/stock/{self._symbol_path(symbol)}/quote")

    def get_logo(self, symbol: str) -> Any:
        return self._get_json(f"/stock/{self._symbol_path(symbol)}/logo")

    def download(self, url: str) -> bytes:
        response = self._get(url)
        return bytes(response.content or b"")
