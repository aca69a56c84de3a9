# main.py

"""Entry point for radar_precos (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import MODE_CLI, MODE_TUI, setup_logging
from src.config.settings import Settings

logger = logging.getLogger("radar_precos.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_codes = ", ".join(Settings.city_codes())

    parser = argparse.ArgumentParser(
        prog="radar_precos",
        description="Per-city Google Shopping price comparison (Brazil).",
        epilog=f"Available cities: {valid_codes}",
    )
    parser.add_argument(
        "products",
        nargs="*",
        help="Product names. Omit to launch the interactive TUI.",
    )
    parser.add_argument(
        "-c",
        "--cities",
        default=None,
        help="Comma-separated city codes (default: saved selection).",
    )
    parser.add_argument(
        "-k",
        "--api-key",
        default=None,
        dest="api_key",
        help="SerpAPI key (default: saved key, then SERPAPI_API_KEY).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import RadarApp

    try:
        app = RadarApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("radar_precos TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless batch and exit."""
    from src.cli.runner import cli_fetch

    exit_code = asyncio.run(
        cli_fetch(
            product_args=args.products,
            city_csv=args.cities,
            api_key=args.api_key,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def main() -> None:
    """Route to TUI (no products) or headless CLI (products given)."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(MODE_CLI if args.products else MODE_TUI)
    logger.info("radar_precos starting, log file: %s", log_file)

    if not args.products:
        _run_tui()
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
