from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from app.api.routes import router
from app.config.settings import Settings, get_settings
from app.integrations.iex_rest import IexRestClient
from app.services.company_directory import CompanyDirectoryFetcher
from app.services.display_state import DisplayStateView
from app.services.logo_resolver import LogoResolver
from app.services.main_queue import MainQueue
from app.services.quote_controller import QuoteController
from app.services.quote_fetcher import QuoteFetcher
from app.services.retry_policy import RetryPolicy


def build_controller(
    settings: Settings,
    *,
    view: DisplayStateView,
    main_queue: MainQueue,
    executor: ThreadPoolExecutor,
) -> QuoteController:
    rest_client = IexRestClient(
        token=settings.IEX_TOKEN,
        base_url=settings.IEX_BASE_URL,
        timeout_sec=settings.IEX_TIMEOUT_SEC,
    )
    return QuoteController(
        directory_fetcher=CompanyDirectoryFetcher(rest_client),
        quote_fetcher=QuoteFetcher(rest_client),
        logo_resolver=LogoResolver(rest_client),
        view=view,
        retry_policy=RetryPolicy(
            interval_sec=settings.QUOTE_RETRY_INTERVAL_SEC,
            max_attempts=settings.QUOTE_RETRY_MAX_ATTEMPTS,
            backoff_factor=settings.QUOTE_RETRY_BACKOFF_FACTOR,
            max_interval_sec=settings.QUOTE_RETRY_MAX_INTERVAL_SEC,
        ),
        dispatch=main_queue.dispatch,
        submit=executor.submit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    main_queue: MainQueue = app.state.main_queue
    main_queue.start()

    executor = None
    if app.state.controller is None:
        try:
            settings = app.state.get_settings()
        except ValidationError as exc:
            # serve /health and /display without upstream access
            print(f"[APP][config_missing] errors={exc.error_count()}", flush=True)
        else:
            executor = ThreadPoolExecutor(
                max_workers=settings.QUOTE_FETCH_WORKERS, thread_name_prefix="quote-fetch"
            )
            app.state.controller = build_controller(
                settings, view=app.state.view, main_queue=main_queue, executor=executor
            )

    controller = app.state.controller
    if controller is not None:
        main_queue.dispatch(controller.load_directory)

    try:
        yield
    finally:
        if controller is not None:
            controller.shutdown()
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
            app.state.controller = None
        main_queue.stop()


app = FastAPI(title="Most Active Quotes", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.main_queue = MainQueue()
app.state.view = DisplayStateView()
app.state.controller = None
