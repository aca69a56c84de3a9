# src/scrapers/offer_parser.py

"""Turn raw SerpAPI shopping rows into Offer objects."""

import logging
import math
import re
from typing import Any

from src.models.offer import MERCHANT_PLACEHOLDER, URL_PLACEHOLDER, Offer

logger = logging.getLogger("radar_precos.parser")

_NON_NUMERIC = re.compile(r"[^\d,.\-]")


def parse_brl_string(text: str | None) -> float | None:
    """Extract a number from a pt-BR price string like 'R$ 4.200,00'.

    ``.`` is a thousands separator and ``,`` the decimal separator.
    Returns ``None`` when nothing finite can be read.
    """
    if not text:
        return None
    cleaned = _NON_NUMERIC.sub("", str(text))
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _numeric_price(raw: Any) -> float | None:
    """Return *raw* as a float if it is a real, finite number."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    value = float(raw)
    return value if math.isfinite(value) else None


def parse_offer(row: dict[str, Any]) -> Offer | None:
    """Build an Offer from one ``shopping_results`` row.

    Prefers ``extracted_price``; falls back to parsing the display
    ``price`` string.  Rows without a usable, non-negative price are
    dropped (``None``).
    """
    price = _numeric_price(row.get("extracted_price"))
    if price is None:
        price = parse_brl_string(row.get("price"))
    if price is None or price < 0:
        logger.debug(
            "Dropped shopping row without usable price (title=%s)",
            row.get("title", ""),
        )
        return None

    return Offer(
        price=price,
        merchant=row.get("source") or row.get("store") or MERCHANT_PLACEHOLDER,
        url=row.get("product_link") or row.get("link") or URL_PLACEHOLDER,
        shipping=row.get("delivery") or "",
    )


def parse_offers(rows: list[dict[str, Any]]) -> list[Offer]:
    """Parse every row, drop the unusable ones and sort by ascending price."""
    offers = [
        offer
        for offer in (parse_offer(r) for r in rows if isinstance(r, dict))
        if offer is not None
    ]
    dropped = len(rows) - len(offers)
    if dropped:
        logger.info("Parser dropped %d of %d shopping rows", dropped, len(rows))
    return sorted(offers, key=lambda o: o.price)
