import unittest

from app.errors import NetworkError, ParseError
from app.services.company_directory import CompanyDirectoryFetcher, parse_directory


class StubDirectoryClient:
    def __init__(self, payload=None, error=None) -> None:
        self.payload = payload
        self.error = error
        self.calls = 0

    def list_most_active(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


class TestCompanyDirectory(unittest.TestCase):
    def test_single_company_scenario(self):
        fetcher = CompanyDirectoryFetcher(StubDirectoryClient([{"companyName": "Apple", "symbol": "AAPL"}]))

        directory = fetcher.fetch_companies()

        self.assertEqual(directory.companies, {"Apple": "AAPL"})
        self.assertEqual(directory.symbol_for("Apple"), "AAPL")

    def test_n_well_formed_entries_give_n_companies(self):
        payload = [
            {"companyName": "Apple", "symbol": "AAPL", "latestPrice": 1.0},
            {"companyName": "Tesla", "symbol": "TSLA"},
            {"companyName": "Ford", "symbol": "F"},
        ]

        directory = parse_directory(payload)

        self.assertEqual(len(directory), 3)
        self.assertEqual([e.symbol for e in directory.entries()], ["AAPL", "TSLA", "F"])

    def test_duplicate_names_are_last_write_wins(self):
        payload = [
            {"companyName": "Alphabet", "symbol": "GOOGL"},
            {"companyName": "Apple", "symbol": "AAPL"},
            {"companyName": "Alphabet", "symbol": "GOOG"},
        ]

        directory = parse_directory(payload)

        self.assertEqual(len(directory), 2)
        self.assertEqual(directory.companies["Alphabet"], "GOOG")

    def test_malformed_entry_is_skipped_not_aborting(self):
        payload = [
            {"companyName": "Apple", "symbol": "AAPL"},
            {"companyName": "No Symbol"},
            {"companyName": "Tesla", "symbol": "TSLA"},
            {"companyName": 42, "symbol": "BAD"},
            "not-an-object",
            {"companyName": "Blank Symbol", "symbol": ""},
            {"companyName": "   ", "symbol": "WS"},
            {"companyName": "Spaces", "symbol": "  "},
            {"companyName": "Ford", "symbol": "F"},
        ]

        directory = parse_directory(payload)

        self.assertEqual(directory.companies, {"Apple": "AAPL", "Tesla": "TSLA", "Ford": "F"})

    def test_empty_list_is_valid(self):
        self.assertEqual(len(parse_directory([])), 0)

    def test_non_array_payload_is_parse_error(self):
        with self.assertRaises(ParseError):
            parse_directory({"companyName": "Apple", "symbol": "AAPL"})

    def test_network_error_propagates(self):
        fetcher = CompanyDirectoryFetcher(StubDirectoryClient(error=NetworkError("offline")))

        with self.assertRaises(NetworkError):
            fetcher.fetch_companies()


if __name__ == "__main__":
    unittest.main()
