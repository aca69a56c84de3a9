# src/cli/runner.py

"""Headless price lookup that reuses the async aggregator."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.filters.input_parser import parse_city_csv, parse_products
from src.models.offer import CityResult
from src.services.price_aggregator import (
    BatchReport,
    MissingCredentialError,
    PriceAggregator,
    selected_cities,
)
from src.storage.local_store import LocalStore
from src.ui.formatting import format_brl

logger = logging.getLogger("radar_precos.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

EXIT_OK = 0
EXIT_NO_RESULTS = 1
EXIT_MISSING_KEY = 2


def resolve_cities(
    city_csv: str | None, store: LocalStore,
) -> list[str]:
    """Map a comma-separated list of city codes to catalog codes.

    Falls back to the stored selection when *city_csv* is ``None``.
    Raises ``SystemExit`` on unknown codes.
    """
    if city_csv is None:
        return [c["code"] for c in selected_cities(store.selected_cities())]

    known, unknown = parse_city_csv(city_csv)
    if unknown:
        valid = ", ".join(Settings.city_codes())
        _err.print(f"[red]Unknown city code(s): {', '.join(unknown)}[/red]")
        _err.print(f"[dim]Available: {valid}[/dim]")
        raise SystemExit(1)
    return known


def _result_to_dict(result: CityResult | None) -> dict[str, object] | None:
    """Serialise one cell for JSON output."""
    if result is None:
        return None
    return {
        "cheapest": {
            "price": result.cheapest.price,
            "merchant": result.cheapest.merchant,
            "url": result.cheapest.url,
            "shipping": result.cheapest.shipping,
        },
        "offers": [
            {
                "price": o.price,
                "merchant": o.merchant,
                "url": o.url,
                "shipping": o.shipping,
            }
            for o in result.offers
        ],
        "retrieved_at": result.retrieved_at.isoformat(timespec="seconds"),
    }


def report_to_dict(report: BatchReport) -> dict[str, object]:
    """Serialise a batch report (matrix + failures) to plain dicts."""
    return {
        "results": {
            product: {
                code: _result_to_dict(result)
                for code, result in row.items()
            }
            for product, row in report.results.items()
        },
        "failures": [
            {"product": f.product, "city": f.city_code, "error": f.error}
            for f in report.failures
        ],
        "completed_at": (
            report.completed_at.isoformat(timespec="seconds")
            if report.completed_at
            else None
        ),
    }


def _print_table(report: BatchReport) -> None:
    """Render a Rich table: one row per (product, city)."""
    table = Table(
        title="Cheapest offer per city",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Product", max_width=40)
    table.add_column("City", style="bold")
    table.add_column("Cheapest", justify="right", style="green")
    table.add_column("Merchant", style="magenta")
    table.add_column("Offers", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for product, row in report.results.items():
        for code, result in row.items():
            city = Settings.find_city(code)
            city_name = city["name"] if city else code
            if result is None:
                table.add_row(product, city_name, "—", "No result", "0", "")
                continue
            table.add_row(
                product,
                city_name,
                format_brl(result.cheapest.price),
                result.cheapest.merchant,
                str(len(result.offers)),
                result.cheapest.url,
            )

    Console().print(table)


async def cli_fetch(
    product_args: list[str],
    city_csv: str | None,
    api_key: str | None,
    output_format: str,
    store: LocalStore | None = None,
    aggregator: PriceAggregator | None = None,
) -> int:
    """Run one headless batch and return an exit code."""
    store = store or LocalStore()
    products = parse_products("\n".join(product_args))
    cities = resolve_cities(city_csv, store)
    key = (api_key or "").strip() or store.api_key()

    if not products or not cities:
        _err.print("[yellow]Nothing to query: need products and cities.[/yellow]")
        return EXIT_NO_RESULTS

    aggregator = aggregator or PriceAggregator()
    _err.print(
        f"[bold]Fetching:[/bold] {len(products)} product(s)  "
        f"[dim]cities={', '.join(cities)}[/dim]"
    )

    try:
        report = await aggregator.fetch_prices(products, cities, key)
    except MissingCredentialError:
        _err.print(
            "[red]No SerpAPI key. Pass --api-key, set SERPAPI_API_KEY "
            "or save one in the TUI settings.[/red]"
        )
        return EXIT_MISSING_KEY
    finally:
        await aggregator.close()

    for failure in report.failures:
        _err.print(
            f"[red]Error: {failure.product} / {failure.city_code}: "
            f"{failure.error}[/red]"
        )

    found = sum(
        1
        for row in report.results.values()
        for result in row.values()
        if result is not None
    )
    total = sum(len(row) for row in report.results.values())
    _err.print(f"[green]✓ {found} of {total} cells with offers[/green]")

    if output_format == "table":
        _print_table(report)
    else:
        json.dump(
            report_to_dict(report),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return EXIT_OK if found else EXIT_NO_RESULTS
