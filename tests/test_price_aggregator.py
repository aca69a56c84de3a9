# tests/test_price_aggregator.py

"""Tests for PriceAggregator fan-out, outcomes and publication."""

import asyncio
import unittest

from src.config.settings import Settings
from src.models.offer import CityResult, Offer, ResultMatrix
from src.services.price_aggregator import (
    OUTCOME_EMPTY,
    OUTCOME_FAILED,
    OUTCOME_OK,
    MissingCredentialError,
    PriceAggregator,
    selected_cities,
)


def _result(price: float, merchant: str = "Loja") -> CityResult:
    """Create a one-offer CityResult."""
    offer = Offer(price=price, merchant=merchant)
    return CityResult(cheapest=offer, offers=[offer])


class FakeClient:
    """Stub city client with canned answers and a call log."""

    def __init__(
        self,
        answers: dict[tuple[str, str], CityResult | None] | None = None,
        failing: set[tuple[str, str]] | None = None,
    ) -> None:
        self.answers = answers or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, str, str]] = []

    async def fetch_city_offers(
        self, product: str, city_code: str, api_key: str,
    ) -> CityResult | None:
        """Return the canned answer or raise for failing pairs."""
        self.calls.append((product, city_code, api_key))
        await asyncio.sleep(0)
        if (product, city_code) in self.failing:
            msg = "Network unreachable"
            raise ConnectionError(msg)
        return self.answers.get((product, city_code))


class GatedClient:
    """Stub client whose calls block until released."""

    def __init__(self, price: float) -> None:
        self.price = price
        self.release = asyncio.Event()
        self.calls = 0

    async def fetch_city_offers(
        self, product: str, city_code: str, api_key: str,
    ) -> CityResult | None:
        """Wait for the gate, then answer."""
        self.calls += 1
        await self.release.wait()
        return _result(self.price)


class PoolClient:
    """Stub client that records pool reservations and peak concurrency."""

    def __init__(self) -> None:
        self.reserved: list[int] = []
        self.in_flight = 0
        self.peak = 0

    def reserve(self, concurrent: int) -> None:
        """Record the requested pool size."""
        self.reserved.append(concurrent)

    async def fetch_city_offers(
        self, product: str, city_code: str, api_key: str,
    ) -> CityResult | None:
        """Hold the slot briefly so overlapping calls are counted."""
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return None


class TestFetchPrices(unittest.IsolatedAsyncioTestCase):
    """PriceAggregator.fetch_prices behaviour."""

    async def test_missing_credential_makes_no_calls(self) -> None:
        """Blank key raises before any request."""
        client = FakeClient()
        agg = PriceAggregator(client=client)
        for key in ("", "   "):
            with self.subTest(key=key):
                with self.assertRaises(MissingCredentialError):
                    await agg.fetch_prices(["iPhone"], ["SP"], key)
        self.assertEqual(client.calls, [])
        self.assertEqual(agg.results, {})

    async def test_cartesian_fan_out(self) -> None:
        """One call per product x selected city."""
        client = FakeClient()
        agg = PriceAggregator(client=client)
        await agg.fetch_prices(["A", "B"], ["SP", "RIO", "BH"], "key")
        self.assertEqual(len(client.calls), 6)
        self.assertEqual(
            {(p, c) for p, c, _ in client.calls},
            {(p, c) for p in ("A", "B") for c in ("SP", "RIO", "BH")},
        )
        self.assertTrue(all(k == "key" for _, _, k in client.calls))

    async def test_matrix_shape_and_values(self) -> None:
        """Published matrix holds results or None per pair."""
        sp = _result(4200, "Loja B")
        client = FakeClient(answers={("iPhone", "SP"): sp})
        agg = PriceAggregator(client=client)
        report = await agg.fetch_prices(["iPhone"], ["SP", "RIO"], "key")

        self.assertTrue(report.ok)
        self.assertFalse(report.stale)
        self.assertEqual(agg.results, {"iPhone": {"SP": sp, "RIO": None}})
        self.assertEqual(report.outcomes[("iPhone", "SP")], OUTCOME_OK)
        self.assertEqual(report.outcomes[("iPhone", "RIO")], OUTCOME_EMPTY)
        self.assertIsNotNone(agg.last_updated)
        self.assertEqual(agg.last_updated, report.completed_at)

    async def test_unselected_cities_absent(self) -> None:
        """Only selected cities appear, in catalog order."""
        agg = PriceAggregator(client=FakeClient())
        await agg.fetch_prices(["A"], ["BSB", "SP"], "key")
        self.assertEqual(list(agg.results["A"]), ["SP", "BSB"])

    async def test_pending_callback_before_requests(self) -> None:
        """on_pending sees every pair as None before any call."""
        client = FakeClient()
        agg = PriceAggregator(client=client)
        seen: list[tuple[ResultMatrix, set[tuple[str, str]], int]] = []

        def on_pending(
            matrix: ResultMatrix, pending: set[tuple[str, str]]
        ) -> None:
            seen.append(
                (
                    {p: dict(row) for p, row in matrix.items()},
                    set(pending),
                    len(client.calls),
                )
            )

        await agg.fetch_prices(
            ["A", "B"], ["SP", "RIO"], "key", on_pending=on_pending
        )
        self.assertEqual(len(seen), 1)
        matrix, pending, calls_before = seen[0]
        self.assertEqual(calls_before, 0)
        self.assertEqual(
            matrix,
            {"A": {"SP": None, "RIO": None}, "B": {"SP": None, "RIO": None}},
        )
        self.assertEqual(len(pending), 4)

    async def test_failure_keeps_resolved_siblings(self) -> None:
        """A raising task does not discard the other results."""
        sp = _result(100)
        client = FakeClient(
            answers={("A", "SP"): sp},
            failing={("A", "RIO")},
        )
        agg = PriceAggregator(client=client)
        report = await agg.fetch_prices(["A"], ["SP", "RIO"], "key")

        self.assertFalse(report.ok)
        self.assertEqual(len(report.failures), 1)
        self.assertEqual(report.failures[0].city_code, "RIO")
        self.assertIn("Network unreachable", report.failures[0].error)
        self.assertEqual(report.outcomes[("A", "RIO")], OUTCOME_FAILED)
        self.assertEqual(report.failed_products, ["A"])
        self.assertIs(agg.results["A"]["SP"], sp)
        self.assertIsNone(agg.results["A"]["RIO"])

    async def test_only_products_keeps_other_rows(self) -> None:
        """Re-querying a subset carries over untouched rows."""
        first = FakeClient(
            answers={("A", "SP"): _result(10), ("B", "SP"): _result(20)}
        )
        agg = PriceAggregator(client=first)
        await agg.fetch_prices(["A", "B"], ["SP"], "key")
        kept = agg.results["A"]["SP"]

        second = FakeClient(answers={("B", "SP"): _result(15)})
        agg.client = second
        await agg.fetch_prices(["A", "B"], ["SP"], "key", only_products=["B"])

        self.assertEqual(second.calls, [("B", "SP", "key")])
        self.assertIs(agg.results["A"]["SP"], kept)
        result_b = agg.results["B"]["SP"]
        assert result_b is not None
        self.assertEqual(result_b.cheapest.price, 15)

    async def test_removed_products_dropped_on_resubmit(self) -> None:
        """A full submission rebuilds the matrix from scratch."""
        agg = PriceAggregator(client=FakeClient())
        await agg.fetch_prices(["A", "B"], ["SP"], "key")
        await agg.fetch_prices(["B"], ["SP", "RIO"], "key")
        self.assertEqual(agg.results, {"B": {"SP": None, "RIO": None}})

    async def test_stale_batch_not_published(self) -> None:
        """An older batch settling late cannot overwrite a newer one."""
        slow = GatedClient(price=999)
        agg = PriceAggregator(client=slow)
        old_task = asyncio.create_task(
            agg.fetch_prices(["A"], ["SP"], "key")
        )
        await asyncio.sleep(0)

        agg.client = FakeClient(answers={("A", "SP"): _result(10)})
        new_report = await agg.fetch_prices(["A"], ["SP"], "key")

        slow.release.set()
        old_report = await old_task

        self.assertTrue(old_report.stale)
        self.assertFalse(new_report.stale)
        self.assertEqual(old_report.token + 1, new_report.token)
        published = agg.results["A"]["SP"]
        assert published is not None
        self.assertEqual(published.cheapest.price, 10)
        self.assertEqual(agg.generation, new_report.token)

    async def test_empty_products_no_calls(self) -> None:
        """No products means no requests and an empty matrix."""
        client = FakeClient()
        agg = PriceAggregator(client=client)
        report = await agg.fetch_prices([], ["SP"], "key")
        self.assertEqual(client.calls, [])
        self.assertEqual(report.results, {})

    async def test_whole_batch_in_flight_at_once(self) -> None:
        """The client pool is sized to the batch; no wave-by-wave fan-out."""
        client = PoolClient()
        agg = PriceAggregator(client=client)
        products = ["A", "B", "C"]
        await agg.fetch_prices(products, Settings.city_codes(), "key")

        expected = len(products) * len(Settings.city_codes())
        self.assertEqual(client.reserved, [expected])
        self.assertEqual(client.peak, expected)


class TestSelectedCities(unittest.TestCase):
    """selected_cities catalog filtering."""

    def test_catalog_order_and_unknown_ignored(self) -> None:
        """Codes come back in catalog order; unknown codes vanish."""
        cities = selected_cities(["REC", "SP", "NOPE"])
        self.assertEqual([c["code"] for c in cities], ["SP", "REC"])


if __name__ == "__main__":
    unittest.main()
