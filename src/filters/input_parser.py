# src/filters/input_parser.py

"""Product-list parsing and city-selection helpers for the input panel."""

import logging
from collections.abc import Iterable

from src.config.settings import Settings

logger = logging.getLogger("radar_precos.input")


def parse_products(text: str | None) -> list[str]:
    """Split multi-line input into trimmed, non-empty product names.

    A product is identified by its string, so repeated lines are kept
    once, in first-seen order.
    """
    if not text:
        return []
    products = [line.strip() for line in text.splitlines() if line.strip()]
    unique = list(dict.fromkeys(products))
    if len(unique) != len(products):
        logger.debug(
            "Collapsed %d duplicate product lines",
            len(products) - len(unique),
        )
    return unique


def normalise_selection(codes: Iterable[str]) -> list[str]:
    """Keep only known city codes, once each, in catalog order."""
    wanted = set(codes)
    unknown = wanted - set(Settings.city_codes())
    if unknown:
        logger.warning("Ignoring unknown city codes: %s", sorted(unknown))
    return [code for code in Settings.city_codes() if code in wanted]


def toggle_city(selection: Iterable[str], code: str) -> list[str]:
    """Add *code* when absent, remove it when present."""
    current = list(selection)
    if code in current:
        return [c for c in current if c != code]
    return [*current, code]


def select_all_cities(selection: Iterable[str]) -> list[str]:
    """Select every catalog city, or clear when all are already selected."""
    all_codes = Settings.city_codes()
    if set(selection) >= set(all_codes):
        return []
    return list(all_codes)


def can_submit(
    products: list[str], selection: Iterable[str], loading: bool = False,
) -> bool:
    """Whether the "get prices" action is allowed right now."""
    return bool(products) and bool(list(selection)) and not loading


def parse_city_csv(city_csv: str | None) -> tuple[list[str], list[str]]:
    """Split a comma-separated list of codes into (known, unknown).

    Codes are matched case-insensitively against the catalog.
    """
    if not city_csv:
        return [], []
    requested = [c.strip().upper() for c in city_csv.split(",") if c.strip()]
    known_codes = set(Settings.city_codes())
    known = [c for c in requested if c in known_codes]
    unknown = [c for c in requested if c not in known_codes]
    return normalise_selection(known), unknown
