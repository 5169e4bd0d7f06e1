import unittest

from tests.fakes import FakeWeatherClient, make_record, not_found_error
from weather_dashboard.connectivity import ManualConnectivityProbe
from weather_dashboard.errors import NetworkError
from weather_dashboard.search import OFFLINE_SEARCH_MESSAGE, SearchCoordinator


class TestSearchCoordinator(unittest.TestCase):
    def setUp(self):
        self.client = FakeWeatherClient()
        self.probe = ManualConnectivityProbe()
        self.search = SearchCoordinator(self.client, self.probe)

    def test_short_query_makes_no_request(self):
        self.assertEqual(self.search.search("L"), [])
        self.assertEqual(self.search.search(""), [])
        self.assertEqual(self.search.search("  a  "), [])
        self.assertEqual(self.client.calls, [])

    def test_hit_returns_single_record(self):
        results = self.search.search("Paris")
        self.assertEqual(results, [make_record("Paris")])
        self.assertEqual(self.client.calls, ["Paris"])

    def test_query_is_trimmed(self):
        self.search.search("  Oslo ")
        self.assertEqual(self.client.calls, ["Oslo"])

    def test_not_found_is_empty(self):
        self.client.outcomes["Atlantis"] = not_found_error()
        self.assertEqual(self.search.search("Atlantis"), [])

    def test_offline_raises_without_request(self):
        self.probe.set_status(False)
        with self.assertRaises(NetworkError) as ctx:
            self.search.search("Paris")
        self.assertEqual(ctx.exception.message, OFFLINE_SEARCH_MESSAGE)
        self.assertEqual(self.client.calls, [])

    def test_probe_failure_counts_as_offline(self):
        class BrokenProbe:
            def current_status(self):
                raise OSError("no route")

        search = SearchCoordinator(self.client, BrokenProbe())
        with self.assertRaises(NetworkError):
            search.search("Paris")

    def test_client_fault_raises_network_error(self):
        self.client.outcomes["Paris"] = RuntimeError("socket closed")
        with self.assertRaises(NetworkError) as ctx:
            self.search.search("Paris")
        self.assertEqual(ctx.exception.message, "socket closed")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_custom_minimum_length(self):
        search = SearchCoordinator(self.client, self.probe, min_query_length=4)
        self.assertEqual(search.search("Rome"), [make_record("Rome")])
        self.assertEqual(search.search("Rio"), [])


if __name__ == "__main__":
    unittest.main()
