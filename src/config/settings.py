# src/config/settings.py

"""Central configuration for the radar_precos dashboard."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the radar_precos dashboard."""

    # --- SerpAPI ---
    SERPAPI_BASE_URL: str = os.getenv(
        "SERPAPI_BASE_URL", "https://serpapi.com"
    ).rstrip("/")
    SERPAPI_SEARCH_PATH: str = "/search.json"
    SERPAPI_API_KEY: str = os.getenv("SERPAPI_API_KEY", "")
    SEARCH_ENGINE: str = "google_shopping"
    SEARCH_LANGUAGE: str = "pt"         # hl
    SEARCH_COUNTRY: str = "br"          # gl
    GOOGLE_DOMAIN: str = "google.com.br"
    FALLBACK_LOCATION: str = "Brazil"

    # --- Pacing ---
    REQUEST_JITTER: tuple[float, float] = (0.12, 0.54)  # Seconds, UI pacing only
    TOP_OFFERS: int = 5

    # --- HTTP pool ---
    MIN_POOL_SIZE: int = 10  # curl handles; grown to the batch size

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"

    # --- Display ---
    DEFAULT_LANG: str = "pt-BR"
    SUPPORTED_LANGS: list[str] = ["pt-BR", "en-US"]
    TIME_FORMAT: str = "%H:%M"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    STATE_PATH: Path = Path(
        os.getenv("RADAR_STATE_PATH", str(DATA_DIR / "local_state.json"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Local store keys ---
    PRODUCTS_KEY: str = "cpb.products"
    CITIES_KEY: str = "cpb.cities"
    API_KEY_KEY: str = "cpb.serpapiKey"
    LANG_KEY: str = "cpb.lang"

    # --- Cities (fixed catalog) ---
    CITIES: list[dict[str, str]] = [
        {
            "code": "SP",
            "name": "São Paulo",
            "short": "São Paulo",
            "location": "São Paulo, State of São Paulo, Brazil",
        },
        {
            "code": "RIO",
            "name": "Rio de Janeiro",
            "short": "Rio",
            "location": "Rio de Janeiro, State of Rio de Janeiro, Brazil",
        },
        {
            "code": "BH",
            "name": "Belo Horizonte",
            "short": "BH",
            "location": "Belo Horizonte, State of Minas Gerais, Brazil",
        },
        {
            "code": "CWB",
            "name": "Curitiba",
            "short": "CWB",
            "location": "Curitiba, State of Paraná, Brazil",
        },
        {
            "code": "POA",
            "name": "Porto Alegre",
            "short": "POA",
            "location": "Porto Alegre, State of Rio Grande do Sul, Brazil",
        },
        {
            "code": "SSA",
            "name": "Salvador",
            "short": "SSA",
            "location": "Salvador, State of Bahia, Brazil",
        },
        {
            "code": "REC",
            "name": "Recife",
            "short": "REC",
            "location": "Recife, State of Pernambuco, Brazil",
        },
        {
            "code": "BSB",
            "name": "Brasília",
            "short": "BSB",
            "location": "Brasília, Federal District, Brazil",
        },
    ]

    @classmethod
    def city_codes(cls) -> list[str]:
        """Return every catalog city code in display order."""
        return [c["code"] for c in cls.CITIES]

    @classmethod
    def find_city(cls, code: str) -> dict[str, str] | None:
        """Look up a catalog city by its code."""
        for city in cls.CITIES:
            if city["code"] == code:
                return city
        return None

    @classmethod
    def location_for(cls, code: str) -> str:
        """Resolve a city code to its SerpAPI location string."""
        city = cls.find_city(code)
        return city["location"] if city else cls.FALLBACK_LOCATION
