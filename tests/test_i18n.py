# tests/test_i18n.py

"""Tests for translations and the observable language setting."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from src.config.settings import Settings
from src.storage.local_store import LocalStore
from src.ui.i18n import DICTS, I18n, interpolate


class TestInterpolate(unittest.TestCase):
    """{{ name }} placeholder substitution."""

    def test_replaces_known_names(self) -> None:
        """Known names are substituted, spacing tolerated."""
        self.assertEqual(
            interpolate("{{product}} em {{ city }}", product="X", city="SP"),
            "X em SP",
        )

    def test_unknown_names_become_empty(self) -> None:
        """Missing variables render as ''."""
        self.assertEqual(interpolate("a{{ b }}c", x=1), "ac")

    def test_no_variables_returns_text(self) -> None:
        """Without variables the template is untouched."""
        self.assertEqual(interpolate("{{ x }}"), "{{ x }}")


class TestI18n(unittest.TestCase):
    """I18n lookup, switching and subscriptions."""

    def setUp(self) -> None:
        """Back the setting with a temp store."""
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = LocalStore(Path(self._tmp.name) / "state.json")

    def test_default_language(self) -> None:
        """Starts in pt-BR."""
        i18n = I18n(self.store)
        self.assertEqual(i18n.lang, "pt-BR")
        self.assertEqual(i18n.t("table.noResult"), "Sem resultado")

    def test_fallback_to_en_then_key(self) -> None:
        """Missing pt-BR keys fall back to en-US, then the key."""
        i18n = I18n(self.store)
        DICTS["en-US"]["test.onlyEnglish"] = "English only"
        self.addCleanup(DICTS["en-US"].pop, "test.onlyEnglish")
        self.assertEqual(i18n.t("test.onlyEnglish"), "English only")
        self.assertEqual(i18n.t("no.such.key"), "no.such.key")

    def test_both_languages_share_keys(self) -> None:
        """Every key exists in both dictionaries."""
        self.assertEqual(set(DICTS["pt-BR"]), set(DICTS["en-US"]))

    def test_set_lang_notifies_and_persists(self) -> None:
        """Subscribers hear about changes; the choice is stored."""
        i18n = I18n(self.store)
        heard: list[str] = []
        i18n.subscribe(heard.append)

        self.assertTrue(i18n.set_lang("en-US"))
        self.assertEqual(heard, ["en-US"])
        self.assertEqual(i18n.t("table.noResult"), "No result")
        self.assertEqual(self.store.get(Settings.LANG_KEY), "en-US")
        self.assertEqual(I18n(self.store).lang, "en-US")

    def test_unknown_language_ignored(self) -> None:
        """Unsupported codes change nothing and notify nobody."""
        i18n = I18n(self.store)
        heard: list[str] = []
        i18n.subscribe(heard.append)
        self.assertFalse(i18n.set_lang("fr-FR"))
        self.assertEqual(i18n.lang, "pt-BR")
        self.assertEqual(heard, [])

    def test_unsubscribe_stops_notifications(self) -> None:
        """After unsubscribe the listener is not called."""
        i18n = I18n(self.store)
        heard: list[str] = []
        i18n.subscribe(heard.append)
        i18n.unsubscribe(heard.append)
        i18n.toggle()
        self.assertEqual(heard, [])

    def test_toggle_flips(self) -> None:
        """toggle alternates between the two locales."""
        i18n = I18n(self.store)
        self.assertEqual(i18n.toggle(), "en-US")
        self.assertEqual(i18n.toggle(), "pt-BR")

    def test_disabled_language_rejected(self) -> None:
        """Languages missing from SUPPORTED_LANGS are refused."""
        with patch.object(Settings, "SUPPORTED_LANGS", ["pt-BR"]):
            i18n = I18n(self.store)
            self.assertFalse(i18n.set_lang("en-US"))
            self.assertEqual(i18n.toggle(), "pt-BR")
        self.assertIsNone(self.store.get(Settings.LANG_KEY))

    def test_stored_disabled_language_falls_back(self) -> None:
        """A saved language that is no longer enabled starts as the default."""
        self.store.set(Settings.LANG_KEY, "en-US")
        with patch.object(Settings, "SUPPORTED_LANGS", ["pt-BR"]):
            self.assertEqual(I18n(self.store).lang, "pt-BR")

    def test_interpolated_lookup(self) -> None:
        """t() passes variables through."""
        i18n = I18n()
        self.assertEqual(
            i18n.t("table.lastUpdated", time="10:30"), "Atualizado às 10:30"
        )


if __name__ == "__main__":
    unittest.main()
