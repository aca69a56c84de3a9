# src/services/price_aggregator.py

"""Fans out SerpAPI queries over products x cities and collects results."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from src.config.settings import Settings
from src.models.offer import CityResult, ResultMatrix
from src.scrapers.serpapi_client import SerpApiClient

logger = logging.getLogger("radar_precos.aggregator")

OUTCOME_OK = "ok"
OUTCOME_EMPTY = "empty"
OUTCOME_FAILED = "failed"

PendingCallback = Callable[[ResultMatrix, set[tuple[str, str]]], None]


class MissingCredentialError(Exception):
    """Raised when a batch is submitted without an API key."""


class CityQueryClient(Protocol):
    """Anything that can resolve one (product, city) pair."""

    async def fetch_city_offers(
        self, product: str, city_code: str, api_key: str,
    ) -> CityResult | None: ...


@dataclass
class TaskFailure:
    """A (product, city) query whose underlying call raised."""

    product: str
    city_code: str
    error: str


@dataclass
class BatchReport:
    """Per-task outcome of one submission."""

    token: int
    results: ResultMatrix = field(
        default_factory=lambda: ResultMatrix()
    )
    outcomes: dict[tuple[str, str], str] = field(
        default_factory=lambda: dict[tuple[str, str], str]()
    )
    failures: list[TaskFailure] = field(
        default_factory=lambda: list[TaskFailure]()
    )
    completed_at: datetime | None = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        """True when no task raised."""
        return not self.failures

    @property
    def failed_products(self) -> list[str]:
        """Products with at least one failed city, in first-seen order."""
        return list(dict.fromkeys(f.product for f in self.failures))

    def count(self, outcome: str) -> int:
        """Number of tasks that ended with *outcome*."""
        return sum(1 for o in self.outcomes.values() if o == outcome)


def selected_cities(selected_codes: Iterable[str]) -> list[dict[str, str]]:
    """Catalog cities whose code is selected, in catalog order."""
    wanted = set(selected_codes)
    return [c for c in Settings.CITIES if c["code"] in wanted]


class PriceAggregator:
    """Coordinates concurrent per-city queries and publishes the matrix.

    Each submission accumulates into its own buffer and gets a
    generation token.  The buffer replaces ``results`` only if no newer
    submission started while it was in flight.
    """

    def __init__(self, client: CityQueryClient | None = None) -> None:
        self.settings = Settings()
        self.client: CityQueryClient = client or SerpApiClient()
        self.results: ResultMatrix = {}
        self.last_updated: datetime | None = None
        self._generation: int = 0

    @property
    def generation(self) -> int:
        """Token of the most recent submission."""
        return self._generation

    # ── Private helpers ──────────────────────────────────

    def _build_buffer(
        self,
        products: list[str],
        targets: list[str],
        city_codes: list[str],
    ) -> ResultMatrix:
        """Fresh matrix for the current products x selected cities.

        Rows for products outside *targets* carry over their last
        published values.
        """
        buffer: ResultMatrix = {}
        target_set = set(targets)
        for product in products:
            previous = self.results.get(product, {})
            buffer[product] = {
                code: (
                    None if product in target_set
                    else previous.get(code)
                )
                for code in city_codes
            }
        return buffer

    async def _run_tasks(
        self,
        client: CityQueryClient,
        pairs: list[tuple[str, str]],
        api_key: str,
        buffer: ResultMatrix,
        report: BatchReport,
    ) -> None:
        """Dispatch every pair concurrently and record each outcome."""

        async def run_one(product: str, city_code: str) -> CityResult | None:
            result = await client.fetch_city_offers(
                product, city_code, api_key
            )
            buffer[product][city_code] = result
            return result

        settled = await asyncio.gather(
            *(run_one(p, c) for p, c in pairs),
            return_exceptions=True,
        )

        for (product, city_code), outcome in zip(pairs, settled):
            if isinstance(outcome, BaseException):
                report.outcomes[(product, city_code)] = OUTCOME_FAILED
                report.failures.append(
                    TaskFailure(product, city_code, str(outcome))
                )
                logger.error(
                    "Query failed for '%s' in %s: %s",
                    product,
                    city_code,
                    outcome,
                    exc_info=outcome,
                )
            elif outcome is None:
                report.outcomes[(product, city_code)] = OUTCOME_EMPTY
            else:
                report.outcomes[(product, city_code)] = OUTCOME_OK

    # ── Public entry point ───────────────────────────────

    async def fetch_prices(
        self,
        products: list[str],
        selected_codes: Iterable[str],
        api_key: str,
        only_products: Iterable[str] | None = None,
        on_pending: PendingCallback | None = None,
    ) -> BatchReport:
        """Query every in-scope (product, city) pair and publish the matrix.

        Raises :class:`MissingCredentialError` before any network call
        when *api_key* is blank.  ``only_products`` narrows the queried
        products (the other rows keep their published values).
        ``on_pending`` receives the placeholder matrix and the set of
        pairs in flight before the first request goes out.
        """
        if not api_key or not api_key.strip():
            logger.warning("Batch aborted: no SerpAPI key configured")
            raise MissingCredentialError("SerpAPI key is required")

        self._generation += 1
        token = self._generation

        city_codes = [c["code"] for c in selected_cities(selected_codes)]
        if only_products is not None:
            subset = set(only_products)
            targets = [p for p in products if p in subset]
        else:
            targets = list(products)

        buffer = self._build_buffer(products, targets, city_codes)
        pairs = [(p, c) for p in targets for c in city_codes]
        report = BatchReport(token=token, results=buffer)

        logger.info(
            "Batch %d: %d products x %d cities (%d queries)",
            token,
            len(targets),
            len(city_codes),
            len(pairs),
        )
        client = self.client
        reserve = getattr(client, "reserve", None)
        if reserve is not None:
            reserve(len(pairs))

        if on_pending is not None:
            on_pending(buffer, set(pairs))

        await self._run_tasks(client, pairs, api_key.strip(), buffer, report)
        report.completed_at = datetime.now()

        if token != self._generation:
            report.stale = True
            logger.info(
                "Batch %d settled after batch %d started; discarded",
                token,
                self._generation,
            )
            return report

        self.results = buffer
        self.last_updated = report.completed_at
        logger.info(
            "Batch %d published: %d ok, %d empty, %d failed",
            token,
            report.count(OUTCOME_OK),
            report.count(OUTCOME_EMPTY),
            report.count(OUTCOME_FAILED),
        )
        return report

    async def close(self) -> None:
        """Release the client's network resources."""
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()
