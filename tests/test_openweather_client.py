import socket
import unittest

import requests
from urllib3.exceptions import MaxRetryError, NameResolutionError

from weather_dashboard.data_sources import openweather_client
from weather_dashboard.data_sources.openweather_client import OpenWeatherClient, classify_exception
from weather_dashboard.errors import AppError, NetworkError, UnknownError, is_network_class


class DummyResp:
    def __init__(self, payload=None, status_code=200, reason="OK", json_error=None):
        self._payload = payload
        self.status_code = status_code
        self.reason = reason
        self._json_error = json_error
        self.url = "https://api.openweathermap.org/data/2.5/weather?q=London&appid=abc123&units=metric"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} {self.reason}", response=self)

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class DummySession:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.resp


def _london_payload():
    return {
        "name": "London",
        "main": {"temp": 18.5, "humidity": 60},
        "weather": [{"main": "Clouds", "description": "overcast clouds"}],
        "wind": {"speed": 3.6},
        "dt": 1700000000000,
    }


def _client(session, **kwargs):
    return OpenWeatherClient("abc123", session=session, **kwargs)


class TestOpenWeatherClient(unittest.TestCase):
    def test_fetch_sends_single_request_with_expected_params(self):
        session = DummySession(resp=DummyResp(_london_payload()))
        client = _client(session, base_url="https://example.test/data/2.5/", units="imperial", timeout=4.0)

        client.fetch("London")

        self.assertEqual(len(session.calls), 1)
        call = session.calls[0]
        self.assertEqual(call["url"], "https://example.test/data/2.5/weather")
        self.assertEqual(call["params"], {"q": "London", "appid": "abc123", "units": "imperial"})
        self.assertEqual(call["timeout"], 4.0)

    def test_fetch_normalizes_payload(self):
        client = _client(DummySession(resp=DummyResp(_london_payload())))
        record = client.fetch("London")
        self.assertEqual(record.city_name, "London")
        self.assertEqual(record.temperature, 18.5)
        self.assertEqual(record.condition, "Clouds")
        self.assertEqual(record.description, "overcast clouds")
        self.assertEqual(record.humidity, 60)
        self.assertEqual(record.wind_speed, 3.6)
        self.assertEqual(record.last_updated, 1700000000000)

    def test_invalid_api_key(self):
        client = _client(DummySession(resp=DummyResp({"cod": 401}, status_code=401, reason="Unauthorized")))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertTrue(ctx.exception.message.startswith("Invalid API key."))
        self.assertIsInstance(ctx.exception.cause, requests.HTTPError)
        self.assertFalse(is_network_class(ctx.exception))

    def test_city_not_found(self):
        client = _client(DummySession(resp=DummyResp({"cod": "404"}, status_code=404, reason="Not Found")))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("Atlantis")
        self.assertEqual(ctx.exception.message, "City not found. Please check the city name.")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_rate_limited(self):
        client = _client(DummySession(resp=DummyResp({}, status_code=429, reason="Too Many Requests")))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.message, "API rate limit exceeded. Please try again later.")

    def test_other_http_status(self):
        client = _client(DummySession(resp=DummyResp({}, status_code=500, reason="Internal Server Error")))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.message, "HTTP error 500: Internal Server Error")
        self.assertEqual(ctx.exception.status_code, 500)

    def test_timeout(self):
        client = _client(DummySession(exc=requests.Timeout("read timed out")))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.message, openweather_client.TIMEOUT_MESSAGE)
        self.assertEqual(ctx.exception.status_code, 0)
        self.assertTrue(is_network_class(ctx.exception))

    def test_dns_failure_maps_to_no_internet(self):
        resolution = NameResolutionError("api.openweathermap.org", None, socket.gaierror(-2, "Name or service not known"))
        exc = requests.ConnectionError(MaxRetryError(None, "/data/2.5/weather", reason=resolution))
        client = _client(DummySession(exc=exc))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.message, openweather_client.NO_INTERNET_MESSAGE)
        self.assertIs(ctx.exception.cause, exc)

    def test_connection_refused_is_generic_network_error(self):
        client = _client(DummySession(exc=requests.ConnectionError("Connection refused")))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.message, "Network error: Connection refused")
        self.assertEqual(ctx.exception.status_code, 0)

    def test_io_error_without_detail_uses_fallback(self):
        client = _client(DummySession(exc=OSError()))
        with self.assertRaises(NetworkError) as ctx:
            client.fetch("London")
        self.assertEqual(ctx.exception.message, f"Network error: {openweather_client.IO_FALLBACK_DETAIL}")

    def test_malformed_json_is_unknown(self):
        bad_json = requests.JSONDecodeError("Expecting value", "<html>", 0)
        client = _client(DummySession(resp=DummyResp(json_error=bad_json)))
        with self.assertRaises(UnknownError):
            client.fetch("London")

    def test_schema_mismatch_is_unknown(self):
        client = _client(DummySession(resp=DummyResp({"name": "London"})))
        with self.assertRaises(UnknownError) as ctx:
            client.fetch("London")
        self.assertIn("London", ctx.exception.message)

    def test_errors_chain_original_exception(self):
        exc = requests.Timeout("slow")
        client = _client(DummySession(exc=exc))
        with self.assertRaises(AppError) as ctx:
            client.fetch("London")
        self.assertIs(ctx.exception.__cause__, exc)


class TestClassifyException(unittest.TestCase):
    def test_app_error_passes_through(self):
        error = NetworkError("already mapped", status_code=503)
        self.assertIs(classify_exception(error), error)

    def test_unexpected_exception_is_unknown(self):
        error = classify_exception(RuntimeError("boom"))
        self.assertIsInstance(error, UnknownError)
        self.assertEqual(error.message, "boom")

    def test_unexpected_exception_without_message(self):
        error = classify_exception(RuntimeError())
        self.assertEqual(error.message, openweather_client.UNKNOWN_MESSAGE)


if __name__ == "__main__":
    unittest.main()
