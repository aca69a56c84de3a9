# src/models/offer.py

"""Offer and per-city result models for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import datetime

from src.config.settings import Settings

MERCHANT_PLACEHOLDER = "—"
URL_PLACEHOLDER = "#"


@dataclass(frozen=True)
class Offer:
    """One merchant's priced listing for a product."""

    price: float
    merchant: str = MERCHANT_PLACEHOLDER
    url: str = URL_PLACEHOLDER
    shipping: str = ""


@dataclass
class CityResult:
    """The ranked offer set for one (product, city) pair.

    ``offers`` is sorted ascending by price and holds at most
    ``Settings.TOP_OFFERS`` entries; ``cheapest`` is ``offers[0]``.
    """

    cheapest: Offer
    offers: list[Offer] = field(
        default_factory=lambda: list[Offer]()
    )
    retrieved_at: datetime = field(default_factory=datetime.now)

    @property
    def time_label(self) -> str:
        """Retrieval time formatted as HH:MM."""
        return self.retrieved_at.strftime(Settings.TIME_FORMAT)


# product -> city code -> result (None = no usable offers)
ResultMatrix = dict[str, dict[str, CityResult | None]]
