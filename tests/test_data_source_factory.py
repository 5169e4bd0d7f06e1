import unittest

from weather_dashboard.data_sources.factory import DEFAULT_SOURCE_NAME, build_weather_client
from weather_dashboard.data_sources.openweather_client import OpenWeatherClient


class DummySettings:
    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)
        # provide defaults if not passed
        self.weather_source = getattr(self, "weather_source", DEFAULT_SOURCE_NAME)
        self.openweather_api_key = getattr(self, "openweather_api_key", "abc123")
        self.openweather_base_url = getattr(self, "openweather_base_url", "https://example.test/data/2.5")
        self.units = getattr(self, "units", "metric")
        self.request_timeout_seconds = getattr(self, "request_timeout_seconds", 5.0)


class TestDataSourceFactory(unittest.TestCase):
    def test_build_openweather_default(self):
        client = build_weather_client(DummySettings())
        self.assertIsInstance(client, OpenWeatherClient)
        self.assertEqual(client.url, "https://example.test/data/2.5/weather")
        self.assertEqual(client.api_key, "abc123")
        self.assertEqual(client.timeout, 5.0)

    def test_source_name_is_case_insensitive(self):
        client = build_weather_client(DummySettings(weather_source="OpenWeather"))
        self.assertIsInstance(client, OpenWeatherClient)

    def test_empty_key_still_builds(self):
        with self.assertLogs("weather_dashboard.data_sources.factory", level="WARNING"):
            client = build_weather_client(DummySettings(openweather_api_key=""))
        self.assertIsInstance(client, OpenWeatherClient)

    def test_unknown_source_raises(self):
        with self.assertRaises(ValueError):
            build_weather_client(DummySettings(weather_source="unknown-source"))


if __name__ == "__main__":
    unittest.main()
