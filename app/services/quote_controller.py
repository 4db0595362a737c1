from __future__ import annotations

import threading
from typing import Any, Callable, Protocol

from app.errors import NetworkError, ParseError, RetryAbandoned, RetryExhausted
from app.schemas.company import CompanyDirectory
from app.schemas.logo import LogoResult
from app.schemas.quote import Quote
from app.services.company_directory import CompanyDirectoryFetcher
from app.services.logo_resolver import LogoResolver
from app.services.quote_fetcher import QuoteFetcher
from app.services.retry_policy import RetryPolicy

FATAL_TITLE = "Unknown error"
FATAL_MESSAGE = "Something goes wrong! Please, try later!"


class QuoteView(Protocol):
    def on_directory_updated(self, directory: CompanyDirectory) -> None: ...

    def on_selection_changed(self, symbol: str) -> None: ...

    def on_quote_displayed(self, quote: Quote) -> None: ...

    def on_logo_resolved(self, result: LogoResult) -> None: ...

    def on_transient_error(self, message: str, *, title: str = ...) -> None: ...

    def on_fatal_error(self, message: str, *, title: str = ...) -> None: ...

    def on_loading_state_changed(self, loading: bool) -> None: ...


def _call_inline(fn: Callable[..., Any], *args: Any) -> None:
    fn(*args)


class QuoteController:
    """Owns directory, selection and request generation for the quote screen.

    Commands (``load_directory``, ``select``, ``refresh_quote`` ...) must run on
    the main context. Network work is handed to ``submit``; its results come
    back through ``dispatch`` as ``_on_*_loaded`` events, each tagged with the
    generation it was issued for. Results for an older generation are dropped.
    """

    def __init__(
        self,
        *,
        directory_fetcher: CompanyDirectoryFetcher,
        quote_fetcher: QuoteFetcher,
        logo_resolver: LogoResolver,
        view: QuoteView,
        retry_policy: RetryPolicy | None = None,
        dispatch: Callable[..., None] | None = None,
        submit: Callable[..., Any] | None = None,
        sleep_fn: Callable[[float], None] | None = None,
    ) -> None:
        self.directory_fetcher = directory_fetcher
        self.quote_fetcher = quote_fetcher
        self.logo_resolver = logo_resolver
        self.view = view
        self.retry_policy = retry_policy or RetryPolicy()
        self.dispatch = dispatch or _call_inline
        self.submit = submit or _call_inline
        self.sleep_fn = sleep_fn

        self.directory = CompanyDirectory()
        self.selected_symbol: str | None = None
        self.generation = 0
        self.directory_generation = 0
        self.running = True
        self.directory_pending = False
        self.quote_pending = False
        # set to cut a sleeping retry short once its request is superseded
        self._directory_wake = threading.Event()
        self._quote_wake = threading.Event()

        self.directory_loads = 0
        self.quote_requests = 0
        self.quotes_displayed = 0
        self.network_retries = 0
        self.stale_dropped = 0
        self.logos_hidden = 0

    # commands

    def load_directory(self) -> None:
        self.directory_generation += 1
        generation = self.directory_generation
        self._directory_wake = self._renew_wake(self._directory_wake)
        self.directory_pending = True
        self._sync_loading()
        print(f"[DIRECTORY][request] generation={generation}", flush=True)
        self.submit(self._fetch_directory_job, generation, self._directory_wake)

    def view_appeared(self) -> bool:
        if len(self.directory) == 0:
            self.load_directory()
            return True
        return False

    def select(self, symbol: str) -> bool:
        value = str(symbol or "").strip()
        if not value:
            raise ValueError("symbol must be a non-empty string")
        if value == self.selected_symbol:
            return False

        self.selected_symbol = value
        self.view.on_selection_changed(value)
        self._request_quote(value)
        return True

    def select_company(self, company_name: str) -> bool:
        symbol = self.directory.symbol_for(company_name)
        if symbol is None:
            raise KeyError(company_name)
        return self.select(symbol)

    def refresh_quote(self) -> None:
        if self.selected_symbol is None:
            raise LookupError("no company selected")
        self.view.on_selection_changed(self.selected_symbol)
        self._request_quote(self.selected_symbol)

    def shutdown(self) -> None:
        self.running = False
        self._directory_wake.set()
        self._quote_wake.set()

    def metrics(self) -> dict[str, int | str | None]:
        return {
            "directory_size": len(self.directory),
            "directory_loads": self.directory_loads,
            "selected_symbol": self.selected_symbol,
            "generation": self.generation,
            "quote_requests": self.quote_requests,
            "quotes_displayed": self.quotes_displayed,
            "network_retries": self.network_retries,
            "stale_dropped": self.stale_dropped,
            "logos_hidden": self.logos_hidden,
        }

    def _request_quote(self, symbol: str) -> None:
        self.generation += 1
        generation = self.generation
        self.quote_requests += 1
        self._quote_wake = self._renew_wake(self._quote_wake)
        self.quote_pending = True
        self._sync_loading()
        print(f"[QUOTE][request] symbol={symbol} generation={generation}", flush=True)
        self.submit(self._fetch_quote_job, symbol, generation, self._quote_wake)
        self.submit(self._fetch_logo_job, symbol, generation)

    @staticmethod
    def _renew_wake(previous: threading.Event) -> threading.Event:
        previous.set()
        return threading.Event()

    def _sync_loading(self) -> None:
        self.view.on_loading_state_changed(self.directory_pending or self.quote_pending)

    # background jobs

    def _fetch_directory_job(self, generation: int, wake: threading.Event) -> None:
        try:
            directory = self.retry_policy.run(
                self.directory_fetcher.fetch_companies,
                on_retry=lambda exc, attempt, delay: self.dispatch(
                    self._on_directory_retry, generation, delay
                ),
                should_continue=lambda: self.running and generation == self.directory_generation,
                sleep_fn=self.sleep_fn or wake.wait,
            )
        except RetryAbandoned:
            print(f"[DIRECTORY][abandoned] generation={generation}", flush=True)
            return
        except (ParseError, RetryExhausted) as exc:
            print(f"[DIRECTORY][error] generation={generation} error={exc}", flush=True)
            self.dispatch(self._on_directory_failed, generation)
            return
        except Exception as exc:
            print(f"[DIRECTORY][unexpected_error] generation={generation} error={exc!r}", flush=True)
            self.dispatch(self._on_directory_failed, generation)
            return
        self.dispatch(self._on_directory_loaded, generation, directory)

    def _fetch_quote_job(self, symbol: str, generation: int, wake: threading.Event) -> None:
        try:
            quote = self.retry_policy.run(
                lambda: self.quote_fetcher.fetch_quote(symbol),
                on_retry=lambda exc, attempt, delay: self.dispatch(
                    self._on_quote_retry, generation, delay
                ),
                should_continue=lambda: self.running and generation == self.generation,
                sleep_fn=self.sleep_fn or wake.wait,
            )
        except RetryAbandoned:
            print(f"[QUOTE][abandoned] symbol={symbol} generation={generation}", flush=True)
            return
        except (ParseError, RetryExhausted) as exc:
            print(f"[QUOTE][error] symbol={symbol} generation={generation} error={exc}", flush=True)
            self.dispatch(self._on_quote_failed, generation)
            return
        except Exception as exc:
            print(f"[QUOTE][unexpected_error] symbol={symbol} error={exc!r}", flush=True)
            self.dispatch(self._on_quote_failed, generation)
            return
        self.dispatch(self._on_quote_loaded, generation, quote)

    def _fetch_logo_job(self, symbol: str, generation: int) -> None:
        try:
            result = self.logo_resolver.resolve_logo(symbol)
        except (NetworkError, ParseError) as exc:
            print(f"[LOGO][error] symbol={symbol} error={exc}", flush=True)
            result = LogoResult.hidden(symbol, reason=str(exc))
        except Exception as exc:
            print(f"[LOGO][unexpected_error] symbol={symbol} error={exc!r}", flush=True)
            result = LogoResult.hidden(symbol, reason=f"unexpected error: {exc!r}")
        self.dispatch(self._on_logo_loaded, generation, result)

    # events, applied on the main context

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation == self.generation:
            return False
        self.stale_dropped += 1
        print(
            f"[QUOTE][stale_drop] kind={what} generation={generation} current={self.generation}",
            flush=True,
        )
        return True

    def _on_directory_loaded(self, generation: int, directory: CompanyDirectory) -> None:
        if generation != self.directory_generation:
            return
        self.directory = directory
        self.directory_loads += 1
        self.view.on_directory_updated(directory)
        self.directory_pending = False
        self._sync_loading()

    def _on_directory_retry(self, generation: int, delay: float) -> None:
        if generation != self.directory_generation:
            return
        self.network_retries += 1
        self.view.on_transient_error(f"Retrying every {delay:g} seconds", title="No internet")

    def _on_directory_failed(self, generation: int) -> None:
        if generation != self.directory_generation:
            return
        self.view.on_fatal_error(FATAL_MESSAGE, title=FATAL_TITLE)
        self.directory_pending = False
        self._sync_loading()

    def _on_quote_loaded(self, generation: int, quote: Quote) -> None:
        if self._is_stale(generation, "quote"):
            return
        self.quotes_displayed += 1
        self.view.on_quote_displayed(quote)
        self.quote_pending = False
        self._sync_loading()

    def _on_quote_retry(self, generation: int, delay: float) -> None:
        if self._is_stale(generation, "quote_retry"):
            return
        self.network_retries += 1
        self.view.on_transient_error(f"Retrying every {delay:g} seconds", title="Bad internet")

    def _on_quote_failed(self, generation: int) -> None:
        if self._is_stale(generation, "quote_error"):
            return
        self.view.on_fatal_error(FATAL_MESSAGE, title=FATAL_TITLE)
        self.quote_pending = False
        self._sync_loading()

    def _on_logo_loaded(self, generation: int, result: LogoResult) -> None:
        if self._is_stale(generation, "logo"):
            return
        if result.kind == "hidden":
            self.logos_hidden += 1
        self.view.on_logo_resolved(result)
