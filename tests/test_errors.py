import socket
import unittest

import requests
from urllib3.exceptions import MaxRetryError, NameResolutionError

from weather_dashboard.errors import (
    AppError,
    NetworkError,
    UnknownError,
    is_name_resolution_failure,
    is_network_class,
)


class TestNameResolution(unittest.TestCase):
    def test_direct_gaierror(self):
        self.assertTrue(is_name_resolution_failure(socket.gaierror(-2, "Name or service not known")))

    def test_nested_in_requests_connection_error(self):
        resolution = NameResolutionError("api.openweathermap.org", None, socket.gaierror(-3, "Temporary failure"))
        retry = MaxRetryError(None, "/data/2.5/weather", reason=resolution)
        outer = requests.ConnectionError(retry)
        self.assertTrue(is_name_resolution_failure(outer))

    def test_plain_connection_refused_is_not_dns(self):
        self.assertFalse(is_name_resolution_failure(ConnectionRefusedError(111, "Connection refused")))

    def test_none(self):
        self.assertFalse(is_name_resolution_failure(None))


class TestNetworkClass(unittest.TestCase):
    def test_message_hints(self):
        self.assertTrue(is_network_class(NetworkError("No Internet here", status_code=500)))
        self.assertTrue(is_network_class(UnknownError("CONNECTION reset", status_code=500)))

    def test_zero_status(self):
        self.assertTrue(is_network_class(UnknownError("weird", status_code=0)))

    def test_http_statuses_are_not_network_class(self):
        for status, message in [
            (401, "Invalid API key. Please verify your OpenWeatherMap API key is correct and activated."),
            (404, "City not found. Please check the city name."),
            (429, "API rate limit exceeded. Please try again later."),
        ]:
            self.assertFalse(is_network_class(NetworkError(message, status_code=status)), status)

    def test_dns_cause(self):
        error = NetworkError("lookup failed", cause=socket.gaierror(8, "nodename nor servname provided"),
                             status_code=503)
        self.assertTrue(is_network_class(error))


class TestAppError(unittest.TestCase):
    def test_fields_and_kind(self):
        cause = ValueError("bad")
        error = UnknownError("Malformed weather response", cause=cause)
        self.assertIsInstance(error, AppError)
        self.assertIs(error.cause, cause)
        self.assertEqual(error.status_code, 0)
        self.assertEqual(error.kind, "unknown")
        self.assertEqual(str(error), "Malformed weather response")
        self.assertEqual(NetworkError("x").kind, "network")


if __name__ == "__main__":
    unittest.main()
