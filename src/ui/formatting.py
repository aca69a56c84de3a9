# src/ui/formatting.py

"""Display formatting for prices, merchants and offer links."""

import math
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import urlparse

from src.models.offer import URL_PLACEHOLDER

_FAVICON_URL = "https://www.google.com/s2/favicons?domain={domain}&sz=16"


def format_brl(value: float | None) -> str:
    """Format a price as whole reais, pt-BR style ('R$ 4.200')."""
    if value is None or not math.isfinite(value):
        return "—"
    rounded = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    whole = f"{int(rounded):,}".replace(",", ".")
    return f"R$ {whole}"


def merchant_host(url: str) -> str:
    """Hostname of an offer link, or '' for placeholders and junk."""
    if not url or url == URL_PLACEHOLDER:
        return ""
    return urlparse(url).hostname or ""


def favicon_for(url: str) -> str:
    """Google favicon service URL for the link's domain."""
    return _FAVICON_URL.format(domain=merchant_host(url) or "example.com")


def truncate(text: str, width: int) -> str:
    """Cut *text* to *width* characters with a trailing ellipsis."""
    if len(text) <= width:
        return text
    return text[: max(width - 1, 0)] + "…"
