# src/storage/local_store.py

"""JSON-file key-value store for the dashboard's persisted inputs."""

import json
import logging
from pathlib import Path
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("radar_precos.storage")


class LocalStore:
    """Small key-value store persisted as one JSON object on disk.

    Holds the product text, the selected city codes, the SerpAPI key
    and the display language.  Every ``set`` writes the whole file.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.STATE_PATH
        self._data: dict[str, Any] = self._load()
        logger.debug("LocalStore initialised, path=%s", self.path)

    def _load(self) -> dict[str, Any]:
        """Read the store file; missing or corrupt files yield an empty store."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(
                "Could not read local store %s: %s",
                self.path,
                exc,
                exc_info=True,
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Local store %s is not a JSON object; ignoring",
                self.path,
            )
            return {}
        return data

    def _flush(self) -> None:
        """Write the whole store back to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for *key*, or *default*."""
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* and persist immediately."""
        if key in self._data and self._data[key] == value:
            return
        self._data[key] = value
        self._flush()
        logger.debug("Stored key %s", key)

    # --- Typed accessors ---------------------------------------------------

    def products_text(self) -> str:
        """Multi-line product input (empty by default)."""
        value = self.get(Settings.PRODUCTS_KEY, "")
        return value if isinstance(value, str) else ""

    def selected_cities(self) -> list[str]:
        """Selected city codes (every catalog city by default)."""
        value = self.get(Settings.CITIES_KEY)
        if not isinstance(value, list):
            return Settings.city_codes()
        return [c for c in value if isinstance(c, str)]

    def api_key(self) -> str:
        """Stored SerpAPI key, falling back to ``SERPAPI_API_KEY``."""
        value = self.get(Settings.API_KEY_KEY, "")
        if isinstance(value, str) and value:
            return value
        return Settings.SERPAPI_API_KEY

    def lang(self) -> str:
        """Display language (``Settings.DEFAULT_LANG`` by default)."""
        value = self.get(Settings.LANG_KEY, Settings.DEFAULT_LANG)
        return value if isinstance(value, str) else Settings.DEFAULT_LANG
