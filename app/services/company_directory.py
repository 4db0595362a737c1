from __future__ import annotations

from typing import Any

from app.errors import ParseError
from app.schemas.company import CompanyDirectory


def parse_directory(payload: Any) -> CompanyDirectory:
    """Build a directory from the most-active list payload.

    Entries without a non-blank string ``companyName``/``symbol`` are skipped; duplicate
    names keep the last symbol seen.
    """
    if not isinstance(payload, list):
        raise ParseError(f"most-active payload must be an array, got {type(payload).__name__}")

    companies: dict[str, str] = {}
    skipped = 0
    for index, item in enumerate(payload):
        name = item.get("companyName") if isinstance(item, dict) else None
        symbol = item.get("symbol") if isinstance(item, dict) else None
        if not isinstance(name, str) or not isinstance(symbol, str):
            skipped += 1
            print(f"[DIRECTORY][entry_skip] index={index} reason=missing_name_or_symbol", flush=True)
            continue
        if not name.strip() or not symbol.strip():
            skipped += 1
            print(f"[DIRECTORY][entry_skip] index={index} reason=blank_name_or_symbol", flush=True)
            continue
        # re-insert so a duplicate name moves to its last position
        companies.pop(name, None)
        companies[name] = symbol

    print(
        f"[DIRECTORY][parsed] entries={len(payload)} companies={len(companies)} skipped={skipped}",
        flush=True,
    )
    return CompanyDirectory(companies=companies)


class CompanyDirectoryFetcher:
    def __init__(self, rest_client) -> None:
        self.rest_client = rest_client

    def fetch_companies(self) -> CompanyDirectory:
        return parse_directory(self.rest_client.list_most_active())
