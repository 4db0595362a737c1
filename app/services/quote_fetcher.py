from __future__ import annotations

from typing import Any

from app.errors import ParseError
from app.schemas.quote import Quote


def _require_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ParseError(f"quote field {key!r} missing or not a string: {value!r}")
    return value


def _require_number(payload: dict, key: str) -> float:
    value = payload.get(key)
    # bool is an int subclass but never a valid price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"quote field {key!r} missing or not a number: {value!r}")
    return float(value)


def parse_quote(payload: Any) -> Quote:
    if not isinstance(payload, dict):
        raise ParseError(f"quote payload must be an object, got {type(payload).__name__}")

    return Quote(
        company_name=_require_str(payload, "companyName"),
        symbol=_require_str(payload, "symbol"),
        price=_require_number(payload, "latestPrice"),
        change=_require_number(payload, "change"),
        change_percent=_require_number(payload, "changePercent"),
        currency=_require_str(payload, "currency"),
    )


class QuoteFetcher:
    def __init__(self, rest_client) -> None:
        self.rest_client = rest_client

    def fetch_quote(self, symbol: str) -> Quote:
        value = str(symbol or "").strip()
        if not value:
            raise ValueError("symbol must be a non-empty string")
        return parse_quote(self.rest_client.get_quote(value))
