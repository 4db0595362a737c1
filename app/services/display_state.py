from __future__ import annotations

import threading
from pathlib import Path

from app.schemas.company import CompanyDirectory
from app.schemas.display import PLACEHOLDER, DisplayState, Notification
from app.schemas.logo import LogoResult
from app.schemas.quote import Quote

DEFAULT_LOGO_PATH = Path(__file__).resolve().parents[1] / "assets" / "default_logo.svg"


def change_color(change_percent: float) -> str:
    if abs(change_percent) < 0.01:
        return "black"
    return "green" if change_percent > 0 else "red"


class DisplayStateView:
    """Headless quote screen: records what the user would currently see."""

    def __init__(self, *, default_logo_path: Path = DEFAULT_LOGO_PATH, max_notifications: int = 20) -> None:
        self._lock = threading.Lock()
        self._state = DisplayState()
        self._directory = CompanyDirectory()
        self._logo: LogoResult | None = None
        self.default_logo_path = default_logo_path
        self.max_notifications = max_notifications

    def on_directory_updated(self, directory: CompanyDirectory) -> None:
        with self._lock:
            self._directory = directory

    def on_selection_changed(self, symbol: str) -> None:
        with self._lock:
            self._state.selected_symbol = symbol
            self._state.company_title = PLACEHOLDER
            self._state.symbol_text = PLACEHOLDER
            self._state.price_text = PLACEHOLDER
            self._state.change_text = PLACEHOLDER
            self._state.change_color = "black"
            self._state.quote_visible = False
            self._state.logo_kind = "hidden"
            self._state.logo_url = None
            self._logo = None

    def on_quote_displayed(self, quote: Quote) -> None:
        with self._lock:
            self._state.company_title = quote.company_name
            self._state.symbol_text = f"Ticker: {quote.symbol}"
            self._state.price_text = f"{quote.price} {quote.currency}"
            self._state.change_text = f"{quote.change} ({quote.change_percent}%)"
            self._state.change_color = change_color(quote.change_percent)
            self._state.quote_visible = True

    def on_logo_resolved(self, result: LogoResult) -> None:
        with self._lock:
            self._logo = result
            self._state.logo_kind = result.kind
            self._state.logo_url = result.url if result.kind == "remote" else None

    def on_transient_error(self, message: str, *, title: str = "Network error") -> None:
        self._notify(Notification(kind="transient", title=title, message=message))

    def on_fatal_error(self, message: str, *, title: str = "Unknown error") -> None:
        self._notify(Notification(kind="fatal", title=title, message=message))

    def on_loading_state_changed(self, loading: bool) -> None:
        with self._lock:
            self._state.loading = bool(loading)

    def _notify(self, notification: Notification) -> None:
        print(f"[APP][notify] kind={notification.kind} title={notification.title!r}", flush=True)
        with self._lock:
            self._state.notifications.append(notification)
            overflow = len(self._state.notifications) - self.max_notifications
            if overflow > 0:
                del self._state.notifications[:overflow]

    def dismiss_notifications(self) -> int:
        with self._lock:
            count = len(self._state.notifications)
            self._state.notifications.clear()
            return count

    def snapshot(self) -> DisplayState:
        with self._lock:
            return self._state.model_copy(deep=True)

    def directory(self) -> CompanyDirectory:
        with self._lock:
            return self._directory

    def logo_image(self) -> tuple[bytes, str] | None:
        with self._lock:
            logo = self._logo
        if logo is None or logo.kind == "hidden":
            return None
        if logo.kind == "default":
            return self.default_logo_path.read_bytes(), "image/svg+xml"
        return logo.image or b"", logo.content_type or "application/octet-stream"
