# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from src.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and the city catalog."""

    def test_fixed_search_parameters(self) -> None:
        """Search is pinned to Google Shopping, Portuguese, Brazil."""
        self.assertEqual(Settings.SEARCH_ENGINE, "google_shopping")
        self.assertEqual(Settings.SEARCH_LANGUAGE, "pt")
        self.assertEqual(Settings.SEARCH_COUNTRY, "br")
        self.assertEqual(Settings.GOOGLE_DOMAIN, "google.com.br")

    def test_base_url_has_no_trailing_slash(self) -> None:
        """SERPAPI_BASE_URL joins cleanly with the search path."""
        self.assertFalse(Settings.SERPAPI_BASE_URL.endswith("/"))
        self.assertTrue(Settings.SERPAPI_SEARCH_PATH.startswith("/"))

    def test_jitter_bounds_ordered(self) -> None:
        """REQUEST_JITTER is a (low, high) pair."""
        low, high = Settings.REQUEST_JITTER
        self.assertGreaterEqual(low, 0)
        self.assertLessEqual(low, high)

    def test_top_offers_is_five(self) -> None:
        """Detail view lists up to five offers."""
        self.assertEqual(Settings.TOP_OFFERS, 5)

    def test_catalog_has_eight_cities(self) -> None:
        """The catalog holds the eight supported cities."""
        self.assertEqual(
            Settings.city_codes(),
            ["SP", "RIO", "BH", "CWB", "POA", "SSA", "REC", "BSB"],
        )

    def test_each_city_has_required_keys(self) -> None:
        """Every city has code, name, short and location."""
        for city in Settings.CITIES:
            with self.subTest(city=city.get("code", "?")):
                for key in ("code", "name", "short", "location"):
                    self.assertIn(key, city)
                self.assertTrue(city["location"].endswith("Brazil"))

    def test_location_lookup_and_fallback(self) -> None:
        """Known codes resolve; unknown codes fall back to Brazil."""
        self.assertEqual(
            Settings.location_for("SP"),
            "São Paulo, State of São Paulo, Brazil",
        )
        self.assertEqual(Settings.location_for("XYZ"), "Brazil")
        self.assertIsNone(Settings.find_city("XYZ"))

    def test_default_lang_supported(self) -> None:
        """The default language is one of the supported ones."""
        self.assertIn(Settings.DEFAULT_LANG, Settings.SUPPORTED_LANGS)

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.DATA_DIR, Path)
        self.assertIsInstance(Settings.STATE_PATH, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_impersonate_browser_is_string(self) -> None:
        """IMPERSONATE_BROWSER must be a non-empty string."""
        self.assertIsInstance(Settings.IMPERSONATE_BROWSER, str)
        self.assertTrue(len(Settings.IMPERSONATE_BROWSER) > 0)


if __name__ == "__main__":
    unittest.main()
