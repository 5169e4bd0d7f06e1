import types
import unittest
from unittest import mock

from weather_dashboard import main
from weather_dashboard.connectivity import ManualConnectivityProbe
from weather_dashboard.data_sources import OpenWeatherClient


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(main.app.title, "Weather Dashboard")
        paths = {route.path for route in main.app.routes}
        self.assertIn("/health", paths)
        self.assertIn("/v1/state", paths)
        self.assertIn("/v1/search", paths)

    def test_build_store_wires_configured_parts(self):
        settings = main.Settings(connectivity_probe="manual", openweather_api_key="abc123")
        started = types.SimpleNamespace(current_city="London")

        with mock.patch.object(main.WeatherStateStore, "create", return_value=started) as create:
            self.assertIs(main.build_store(settings), started)

        client, probe = create.call_args.args
        self.assertIsInstance(client, OpenWeatherClient)
        self.assertIsInstance(probe, ManualConnectivityProbe)
        self.assertIs(create.call_args.kwargs["settings"], settings)


if __name__ == "__main__":
    unittest.main()
