# src/scrapers/serpapi_client.py

"""Per-city Google Shopping client backed by SerpAPI."""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.offer import CityResult
from src.scrapers.offer_parser import parse_offers


class SerpApiClient:
    """Query SerpAPI's Google Shopping engine for one (product, city) pair.

    A single ``AsyncSession`` is shared by every concurrent call of a
    batch; it is created on first use so the client can be built
    outside a running event loop.  Its curl handle pool is sized by
    :meth:`reserve` so a whole batch is on the wire at once.
    """

    def __init__(
        self,
        session: curl_requests.AsyncSession | None = None,
    ) -> None:
        self.logger = logging.getLogger("radar_precos.serpapi")
        self.settings = Settings()
        self._session = session
        self._owns_session = session is None
        self._pool_size = self.settings.MIN_POOL_SIZE
        self._retired: list[curl_requests.AsyncSession] = []

    @property
    def search_url(self) -> str:
        """Full URL of the search endpoint (may point at a proxy)."""
        return (
            f"{self.settings.SERPAPI_BASE_URL}"
            f"{self.settings.SERPAPI_SEARCH_PATH}"
        )

    def _get_session(self) -> curl_requests.AsyncSession:
        """Return the shared session, creating it lazily."""
        if self._session is None:
            self._session = curl_requests.AsyncSession(
                impersonate=self.settings.IMPERSONATE_BROWSER,
                max_clients=self._pool_size,
            )
            self._owns_session = True
        return self._session

    def reserve(self, concurrent: int) -> None:
        """Grow the handle pool so *concurrent* requests can run at once.

        A session that is too small is retired (not closed, requests of
        an older batch may still be using it) and replaced on next use.
        """
        if concurrent <= self._pool_size:
            return
        self.logger.debug(
            "[serpapi] Growing pool %d -> %d", self._pool_size, concurrent
        )
        self._pool_size = concurrent
        if self._session is not None and self._owns_session:
            self._retired.append(self._session)
            self._session = None

    async def close(self) -> None:
        """Close the underlying HTTP session(s), if any were opened."""
        for old in self._retired:
            await old.close()
        self._retired.clear()
        if self._session is not None:
            await self._session.close()
            self._session = None

    def build_params(
        self, product: str, city_code: str, api_key: str,
    ) -> dict[str, str]:
        """Build the query-string parameters for one request."""
        return {
            "engine": self.settings.SEARCH_ENGINE,
            "q": product,
            "location": self.settings.location_for(city_code),
            "hl": self.settings.SEARCH_LANGUAGE,
            "gl": self.settings.SEARCH_COUNTRY,
            "google_domain": self.settings.GOOGLE_DOMAIN,
            "api_key": api_key,
        }

    async def _pace(self) -> None:
        """Sleep a small random delay so loading cells stay visible."""
        low, high = self.settings.REQUEST_JITTER
        if high > 0:
            await asyncio.sleep(random.uniform(low, high))

    async def fetch_city_offers(
        self, product: str, city_code: str, api_key: str,
    ) -> CityResult | None:
        """Fetch and rank offers for *product* in *city_code*.

        Returns ``None`` on a non-2xx status, an unreadable body or
        when no row carries a usable price.  Transport errors
        propagate to the caller.
        """
        await self._pace()

        params = self.build_params(product, city_code, api_key)
        self.logger.debug(
            "[serpapi] GET '%s' in %s (%s)",
            product,
            city_code,
            params["location"],
        )
        resp = await self._get_session().get(
            self.search_url, params=params
        )

        if not 200 <= resp.status_code < 300:
            self.logger.warning(
                "[serpapi] HTTP %d for '%s' in %s",
                resp.status_code,
                product,
                city_code,
            )
            return None

        try:
            data: Any = resp.json()
        except ValueError as exc:
            self.logger.warning(
                "[serpapi] Unreadable JSON for '%s' in %s: %s",
                product,
                city_code,
                exc,
            )
            return None

        rows = data.get("shopping_results") if isinstance(data, dict) else None
        offers = parse_offers(rows or [])
        if not offers:
            self.logger.info(
                "[serpapi] No priced offers for '%s' in %s",
                product,
                city_code,
            )
            return None

        top = offers[: self.settings.TOP_OFFERS]
        self.logger.debug(
            "[serpapi] %d offers for '%s' in %s, cheapest %.2f (%s)",
            len(offers),
            product,
            city_code,
            top[0].price,
            top[0].merchant,
        )
        return CityResult(
            cheapest=top[0],
            offers=top,
            retrieved_at=datetime.now(),
        )
