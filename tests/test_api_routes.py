import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from app.config.settings import Settings, get_settings
from app.errors import NetworkError
from app.main import app
from app.schemas.company import CompanyDirectory
from app.schemas.logo import LogoResult
from app.schemas.quote import Quote
from app.services.company_directory import CompanyDirectoryFetcher
from app.services.display_state import DisplayStateView
from app.services.main_queue import MainQueue
from app.services.quote_controller import QuoteController
from app.services.retry_policy import RetryPolicy

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class StubDirectoryFetcher:
    def __init__(self) -> None:
        self.calls = 0

    def fetch_companies(self) -> CompanyDirectory:
        self.calls += 1
        return CompanyDirectory(companies={"Apple": "AAPL", "Tesla": "TSLA"})


class StubQuoteFetcher:
    def fetch_quote(self, symbol: str) -> Quote:
        if symbol == "DOWN":
            raise NetworkError("offline")
        return Quote(
            company_name=f"{symbol} Inc",
            symbol=symbol,
            price=10.0,
            change=0.0,
            change_percent=0.0,
            currency="USD",
        )


class StubLogoResolver:
    def resolve_logo(self, symbol: str) -> LogoResult:
        if symbol == "TSLA":
            return LogoResult.default(symbol)
        return LogoResult.remote(symbol, url=f"https://logos.test/{symbol}.png", image=PNG_BYTES, content_type="image/png")


class ApiRoutesTest(unittest.TestCase):
    def setUp(self):
        self.directory_fetcher = StubDirectoryFetcher()
        app.state.main_queue = MainQueue(name="api-test-main-queue")
        app.state.view = DisplayStateView()
        app.state.controller = QuoteController(
            directory_fetcher=self.directory_fetcher,
            quote_fetcher=StubQuoteFetcher(),
            logo_resolver=StubLogoResolver(),
            view=app.state.view,
            retry_policy=RetryPolicy(max_attempts=2),
            dispatch=app.state.main_queue.dispatch,
            sleep_fn=lambda _sec: None,
        )

    def tearDown(self):
        app.state.controller = None
        app.state.get_settings = get_settings
        app.state.main_queue = MainQueue()
        app.state.view = DisplayStateView()

    def _client(self) -> TestClient:
        client = TestClient(app)
        client.__enter__()
        self.addCleanup(client.__exit__, None, None, None)
        # let the startup directory load settle before asserting
        app.state.main_queue.join()
        return client

    def test_health_and_companies_after_startup(self):
        client = self._client()

        health = client.get("/v1/health").json()
        companies = client.get("/v1/companies").json()

        self.assertTrue(health["configured"])
        self.assertTrue(health["main_queue_running"])
        self.assertEqual(
            companies,
            [{"company_name": "Apple", "symbol": "AAPL"}, {"company_name": "Tesla", "symbol": "TSLA"}],
        )
        self.assertEqual(self.directory_fetcher.calls, 1)

    def test_select_by_company_name_displays_quote_and_logo(self):
        client = self._client()

        res = client.post("/v1/selection", json={"company_name": "Apple"})
        self.assertEqual(res.status_code, 202)
        self.assertEqual(res.json(), {"changed": True, "selected_symbol": "AAPL"})

        display = client.get("/v1/display").json()
        self.assertEqual(display["company_title"], "AAPL Inc")
        self.assertEqual(display["price_text"], "10.0 USD")
        self.assertEqual(display["change_text"], "0.0 (0.0%)")
        self.assertEqual(display["change_color"], "black")
        self.assertEqual(display["logo_kind"], "remote")
        self.assertFalse(display["loading"])

        logo = client.get("/v1/logo")
        self.assertEqual(logo.status_code, 200)
        self.assertEqual(logo.content, PNG_BYTES)
        self.assertEqual(logo.headers["content-type"], "image/png")

    def test_blank_directory_entries_are_not_selectable(self):
        raw_client = MagicMock()
        raw_client.list_most_active.return_value = [
            {"companyName": "Apple", "symbol": "AAPL"},
            {"companyName": "Blank", "symbol": ""},
        ]
        app.state.controller.directory_fetcher = CompanyDirectoryFetcher(raw_client)
        client = self._client()

        self.assertEqual(client.get("/v1/companies").json(), [{"company_name": "Apple", "symbol": "AAPL"}])
        self.assertEqual(client.post("/v1/selection", json={"company_name": "Blank"}).status_code, 404)

    def test_selection_response_reports_symbol_from_main_queue(self):
        client = self._client()

        first = client.post("/v1/selection", json={"symbol": " TSLA "}).json()
        again = client.post("/v1/selection", json={"company_name": "Tesla"}).json()

        self.assertEqual(first, {"changed": True, "selected_symbol": "TSLA"})
        self.assertEqual(again, {"changed": False, "selected_symbol": "TSLA"})

    def test_default_logo_is_served_for_default_kind(self):
        client = self._client()

        client.post("/v1/selection", json={"symbol": "TSLA"})
        logo = client.get("/v1/logo")

        self.assertEqual(logo.status_code, 200)
        self.assertTrue(logo.headers["content-type"].startswith("image/svg+xml"))

    def test_logo_is_404_before_selection(self):
        client = self._client()

        self.assertEqual(client.get("/v1/logo").status_code, 404)

    def test_unknown_company_and_empty_selection(self):
        client = self._client()

        self.assertEqual(client.post("/v1/selection", json={"company_name": "Nobody"}).status_code, 404)
        self.assertEqual(client.post("/v1/selection", json={}).status_code, 422)
        self.assertEqual(client.post("/v1/selection", json={"symbol": "  "}).status_code, 422)

    def test_refresh_requires_selection(self):
        client = self._client()

        self.assertEqual(client.post("/v1/quote/refresh").status_code, 409)
        client.post("/v1/selection", json={"symbol": "AAPL"})
        self.assertEqual(client.post("/v1/quote/refresh").status_code, 202)
        self.assertEqual(client.get("/v1/metrics").json()["quote_requests"], 2)

    def test_network_failures_surface_as_dismissible_notifications(self):
        client = self._client()

        client.post("/v1/selection", json={"symbol": "DOWN"})
        notifications = client.get("/v1/display").json()["notifications"]

        self.assertEqual([n["kind"] for n in notifications], ["transient", "fatal"])
        self.assertEqual(notifications[0]["title"], "Bad internet")

        self.assertEqual(client.delete("/v1/notifications").json(), {"dismissed": 2})
        self.assertEqual(client.get("/v1/display").json()["notifications"], [])

    def test_reload_companies_refetches_directory(self):
        client = self._client()

        self.assertEqual(client.post("/v1/companies/reload").status_code, 202)
        app.state.main_queue.join()

        self.assertEqual(self.directory_fetcher.calls, 2)

    def test_missing_configuration_keeps_app_serving(self):
        app.state.controller = None
        app.state.get_settings = lambda: Settings.model_validate({})
        client = self._client()

        self.assertFalse(client.get("/v1/health").json()["configured"])
        self.assertEqual(client.get("/v1/display").status_code, 200)
        self.assertEqual(client.post("/v1/selection", json={"symbol": "AAPL"}).status_code, 503)


if __name__ == "__main__":
    unittest.main()
