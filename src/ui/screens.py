# src/ui/screens.py

"""Modal screens: SerpAPI key settings and per-cell offer details."""

import logging
import webbrowser
from typing import cast

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Static

from src.models.offer import URL_PLACEHOLDER, CityResult, Offer
from src.ui.formatting import favicon_for, format_brl, merchant_host, truncate
from src.ui.i18n import I18n

logger = logging.getLogger("radar_precos.ui")


class SettingsScreen(ModalScreen[str | None]):
    """Enter, reveal/hide and save the SerpAPI key.

    Dismisses with the trimmed key on save, ``None`` on cancel.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, i18n: I18n, initial_key: str = "") -> None:
        super().__init__()
        self.i18n = i18n
        self.initial_key = initial_key

    def compose(self) -> ComposeResult:
        """Build the settings dialog."""
        t = self.i18n.t
        yield Vertical(
            Static(t("settings.title"), id="settings_title"),
            Static(t("settings.subtitle"), classes="muted"),
            Static(t("settings.keyLabel")),
            Horizontal(
                Input(
                    value=self.initial_key,
                    placeholder="xx_xxx...",
                    password=True,
                    id="key_input",
                ),
                Button(t("settings.show"), id="reveal_btn"),
                id="key_row",
            ),
            Static(t("settings.keyHelp"), classes="muted"),
            Horizontal(
                Button(t("settings.cancel"), id="cancel_btn"),
                Button(
                    t("settings.save"),
                    variant="primary",
                    id="save_btn",
                    disabled=not self.initial_key.strip(),
                ),
                id="settings_actions",
            ),
            id="settings_dialog",
        )

    def on_input_changed(self, event: Input.Changed) -> None:
        """Only allow saving a non-blank key."""
        if event.input.id == "key_input":
            self.query_one("#save_btn", Button).disabled = (
                not event.value.strip()
            )

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter in the key field saves."""
        if event.input.id == "key_input" and event.value.strip():
            self.dismiss(event.value.strip())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle reveal, save and cancel."""
        if event.button.id == "reveal_btn":
            key_input = self.query_one("#key_input", Input)
            key_input.password = not key_input.password
            event.button.label = self.i18n.t(
                "settings.show" if key_input.password else "settings.hide"
            )
        elif event.button.id == "save_btn":
            value = self.query_one("#key_input", Input).value.strip()
            if value:
                self.dismiss(value)
        elif event.button.id == "cancel_btn":
            self.dismiss(None)

    def action_cancel(self) -> None:
        """Close without saving."""
        self.dismiss(None)


class OffersScreen(ModalScreen[None]):
    """Ranked offers (up to five) for one product in one city."""

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("o", "open_link", "Open link"),
        Binding("c", "copy_link", "Copy link"),
    ]

    def __init__(
        self,
        i18n: I18n,
        product: str,
        city_name: str,
        result: CityResult | None,
    ) -> None:
        super().__init__()
        self.i18n = i18n
        self.product = product
        self.city_name = city_name
        self.offers: list[Offer] = list(result.offers) if result else []

    def compose(self) -> ComposeResult:
        """Build the offers dialog."""
        t = self.i18n.t
        yield Vertical(
            Static(
                t("popover.title", product=self.product, city=self.city_name),
                id="offers_title",
            ),
            Static(
                t("popover.top5") if self.offers else t("popover.empty"),
                classes="muted",
            ),
            cast(
                DataTable[str | Text],
                DataTable(id="offers_table", cursor_type="row"),
            ),
            id="offers_dialog",
        )

    def on_mount(self) -> None:
        """Fill the offers table."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#offers_table", DataTable),
        )
        table.add_columns(
            "#",
            "Merchant",
            self.i18n.t("popover.shipping"),
            "Price",
        )
        for idx, offer in enumerate(self.offers, 1):
            host = merchant_host(offer.url)
            merchant = truncate(offer.merchant, 32)
            if host:
                merchant = f"{merchant} ({host})"
            table.add_row(
                str(idx),
                merchant,
                truncate(offer.shipping, 28),
                Text(
                    format_brl(offer.price),
                    style="bold green" if idx == 1 else "",
                    justify="right",
                ),
            )

    def _selected_offer(self) -> Offer | None:
        """Offer under the table cursor."""
        if not self.offers:
            return None
        table = self.query_one("#offers_table", DataTable)
        row = table.cursor_row
        if 0 <= row < len(self.offers):
            return self.offers[row]
        return None

    def on_data_table_row_selected(
        self, event: DataTable.RowSelected
    ) -> None:
        """Enter on a row opens the merchant link."""
        self.action_open_link()

    def action_open_link(self) -> None:
        """Open the selected offer in the default browser."""
        offer = self._selected_offer()
        if offer is None or offer.url == URL_PLACEHOLDER:
            self.notify(self.i18n.t("notify.noLink"), severity="warning")
            return
        logger.info(
            "Opening offer %s (favicon %s)", offer.url, favicon_for(offer.url)
        )
        webbrowser.open(offer.url)

    def action_copy_link(self) -> None:
        """Copy the selected offer's link to the clipboard."""
        offer = self._selected_offer()
        if offer is None or offer.url == URL_PLACEHOLDER:
            self.notify(self.i18n.t("notify.noLink"), severity="warning")
            return
        try:
            import pyperclip  # type: ignore[import-untyped]

            pyperclip.copy(offer.url)
            self.notify(self.i18n.t("notify.copied"))
        except Exception:
            logger.error(
                "Failed to copy offer URL to clipboard",
                exc_info=True,
            )
            self.notify(
                self.i18n.t("notify.copyFailed"), severity="warning"
            )

    def action_close(self) -> None:
        """Close the dialog."""
        self.dismiss(None)
