# src/ui/app.py

"""Terminal dashboard for per-city price comparison."""

import logging
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    LoadingIndicator,
    Static,
    TextArea,
)

from src.config.settings import Settings
from src.filters.input_parser import (
    can_submit,
    normalise_selection,
    parse_products,
    select_all_cities,
    toggle_city,
)
from src.models.offer import CityResult, ResultMatrix
from src.services.price_aggregator import (
    BatchReport,
    MissingCredentialError,
    PriceAggregator,
    selected_cities,
)
from src.storage.local_store import LocalStore
from src.ui.formatting import format_brl, truncate
from src.ui.i18n import I18n
from src.ui.screens import OffersScreen, SettingsScreen

logger = logging.getLogger("radar_precos.ui")

_CITY_COLUMN = "__city__"

ERROR_NONE = ""
ERROR_MISSING_KEY = "missing_key"
ERROR_BATCH = "batch"


class RadarApp(App[object]):
    """Terminal dashboard: products x cities, cheapest offer per cell."""

    CSS_PATH = "styles.css"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("g", "get_prices", "Get prices"),
        Binding("k", "settings", "API key"),
        Binding("l", "toggle_language", "PT/EN"),
        Binding("r", "retry", "Retry"),
        Binding("f", "retry_failed", "Retry failed"),
        Binding("x", "dismiss_error", "Dismiss error"),
    ]

    def __init__(
        self,
        store: LocalStore | None = None,
        aggregator: PriceAggregator | None = None,
    ) -> None:
        super().__init__()
        self.settings = Settings()
        self.store = store or LocalStore()
        self.aggregator = aggregator or PriceAggregator()
        self.i18n = I18n(self.store)

        self.products_text: str = self.store.products_text()
        self.selection: list[str] = normalise_selection(
            self.store.selected_cities()
        )
        self.api_key: str = self.store.api_key()

        self.results: ResultMatrix = {}
        self.pending: set[tuple[str, str]] = set()
        self.has_requested: bool = False
        self.loading: bool = False
        self.error_kind: str = ERROR_NONE
        self.failed_products: list[str] = []

    @property
    def products(self) -> list[str]:
        """Current product list parsed from the text area."""
        return parse_products(self.products_text)

    # ── Layout ───────────────────────────────────────────

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        t = self.i18n.t
        city_checkboxes = [
            Checkbox(
                city["name"],
                value=city["code"] in self.selection,
                id=f"check_{city['code']}",
            )
            for city in self.settings.CITIES
        ]

        yield Header()
        yield Container(
            Horizontal(
                Vertical(
                    Static(t("steps.step1"), id="step1_label", classes="step"),
                    Static(t("steps.addProducts"), id="products_label"),
                    TextArea(self.products_text, id="products_input"),
                    Static(t("steps.step2"), id="step2_label", classes="step"),
                    Static(t("steps.chooseCities"), id="cities_label"),
                    Button(t("steps.selectAll"), id="select_all_btn"),
                    Vertical(*city_checkboxes, id="city_toggles"),
                    Button(
                        t("buttons.getPrices"),
                        variant="primary",
                        id="search_btn",
                    ),
                    Static(t("footer.text"), id="sidebar_footer"),
                    id="sidebar",
                ),
                Vertical(
                    Horizontal(
                        Static("", id="error_text"),
                        Button(t("error.tryAgain"), id="retry_btn"),
                        Button(t("error.dismiss"), id="dismiss_error_btn"),
                        id="error_banner",
                    ),
                    Static("", id="hint"),
                    Static("", id="status"),
                    LoadingIndicator(id="loader"),
                    cast(
                        DataTable[str | Text],
                        DataTable(
                            id="results_table",
                            zebra_stripes=True,
                            cursor_type="cell",
                        ),
                    ),
                    id="results_panel",
                ),
                id="layout",
            ),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Apply translated labels and initial visibility."""
        self.i18n.subscribe(self._on_language_changed)
        self.query_one("#loader", LoadingIndicator).display = False
        self._apply_language()
        self._refresh_view()

    async def on_unmount(self) -> None:
        """Drop the language subscription and close the HTTP session."""
        self.i18n.unsubscribe(self._on_language_changed)
        await self.aggregator.close()

    # ── Input events ─────────────────────────────────────

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        """Persist product text on every edit."""
        if event.text_area.id != "products_input":
            return
        self.products_text = event.text_area.text
        self.store.set(self.settings.PRODUCTS_KEY, self.products_text)
        if not self.products:
            self.has_requested = False
        self._refresh_view()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        """Mirror a city checkbox into the persisted selection."""
        checkbox_id = event.checkbox.id or ""
        if not checkbox_id.startswith("check_"):
            return
        code = checkbox_id.removeprefix("check_")
        if (code in self.selection) != event.value:
            self.selection = normalise_selection(
                toggle_city(self.selection, code)
            )
            self.store.set(self.settings.CITIES_KEY, self.selection)
            self._refresh_view()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        button_id = event.button.id
        if button_id == "search_btn":
            await self.perform_search()
        elif button_id == "select_all_btn":
            self.action_select_all()
        elif button_id == "retry_btn":
            await self.action_retry()
        elif button_id == "dismiss_error_btn":
            self.action_dismiss_error()

    def on_data_table_cell_selected(
        self, event: DataTable.CellSelected
    ) -> None:
        """Open the offer list for the selected (city, product) cell."""
        if event.data_table.id != "results_table":
            return
        product = event.cell_key.column_key.value
        code = event.cell_key.row_key.value
        if product is None or code is None or product == _CITY_COLUMN:
            return
        self.open_offers(product, code)

    # ── Actions ──────────────────────────────────────────

    def action_select_all(self) -> None:
        """Select every city, or clear when all are selected."""
        self.selection = select_all_cities(self.selection)
        self.store.set(self.settings.CITIES_KEY, self.selection)
        for city in self.settings.CITIES:
            checkbox = self.query_one(f"#check_{city['code']}", Checkbox)
            checkbox.value = city["code"] in self.selection
        self._refresh_view()

    async def action_get_prices(self) -> None:
        """Keyboard shortcut for the submit button."""
        await self.perform_search()

    async def action_retry(self) -> None:
        """Re-issue the whole batch after an error."""
        self._set_error(ERROR_NONE)
        await self.perform_search()

    async def action_retry_failed(self) -> None:
        """Re-query only the products that had failing cities."""
        if not self.failed_products:
            return
        self._set_error(ERROR_NONE)
        await self.perform_search(only_products=self.failed_products)

    def action_dismiss_error(self) -> None:
        """Hide the error banner."""
        self._set_error(ERROR_NONE)

    def action_settings(self) -> None:
        """Open the SerpAPI key dialog."""
        self.push_screen(
            SettingsScreen(self.i18n, self.api_key), self._on_settings_closed
        )

    def action_toggle_language(self) -> None:
        """Switch between pt-BR and en-US display strings."""
        lang = self.i18n.toggle()
        self.notify(self.i18n.t("lang.changed", lang=lang))

    def open_offers(self, product: str, code: str) -> None:
        """Show the top offers for one cell, when it has any."""
        result = self.results.get(product, {}).get(code)
        if result is None:
            return
        city = self.settings.find_city(code)
        self.push_screen(
            OffersScreen(
                self.i18n,
                product,
                city["name"] if city else code,
                result,
            )
        )

    def _on_settings_closed(self, key: str | None) -> None:
        """Persist a newly saved key."""
        if key is None:
            return
        self.api_key = key.strip()
        self.store.set(self.settings.API_KEY_KEY, self.api_key)
        logger.info("SerpAPI key updated")
        if self.error_kind == ERROR_MISSING_KEY:
            self._set_error(ERROR_NONE)
        self.notify(self.i18n.t("settings.saved"))
        self._refresh_view()

    def _on_language_changed(self, lang: str) -> None:
        """Re-render every translated string."""
        self._apply_language()
        self._refresh_view()

    # ── Search ───────────────────────────────────────────

    async def perform_search(
        self, only_products: list[str] | None = None,
    ) -> None:
        """Fan out the current products x selected cities."""
        products = self.products
        if not can_submit(products, self.selection, self.loading):
            logger.debug("Submit ignored: nothing to query or already loading")
            return

        self._set_error(ERROR_NONE)
        self.loading = True
        self.has_requested = True
        self._refresh_view()

        report: BatchReport | None = None
        try:
            report = await self.aggregator.fetch_prices(
                products,
                self.selection,
                self.api_key,
                only_products=only_products,
                on_pending=self._show_pending,
            )
        except MissingCredentialError:
            self.has_requested = False
            self._set_error(ERROR_MISSING_KEY)
        finally:
            self.loading = False
            self.pending = set()

        if report is not None and not report.stale:
            self.results = report.results
            self.failed_products = report.failed_products
            if not report.ok:
                self._set_error(ERROR_BATCH)
        self._refresh_view()

    def _show_pending(
        self, matrix: ResultMatrix, pending: set[tuple[str, str]],
    ) -> None:
        """Render placeholder cells before requests go out."""
        self.results = matrix
        self.pending = pending
        self.populate_table()

    # ── Rendering ────────────────────────────────────────

    def _set_error(self, kind: str) -> None:
        """Show or hide the error banner."""
        self.error_kind = kind
        banner = self.query_one("#error_banner", Horizontal)
        banner.display = kind != ERROR_NONE
        t = self.i18n.t
        if kind == ERROR_MISSING_KEY:
            message = f"{t('error.title')}: {t('error.missingKey')}"
        elif kind == ERROR_BATCH:
            message = f"{t('error.title')}: {t('error.body')}"
        else:
            message = ""
        self.query_one("#error_text", Static).update(message)
        self.query_one("#retry_btn", Button).display = kind == ERROR_BATCH

    def _apply_language(self) -> None:
        """Push current-language strings into static widgets."""
        t = self.i18n.t
        self.title = t("app.title")
        self.sub_title = t("app.subtitle")
        for widget_id, key in (
            ("#step1_label", "steps.step1"),
            ("#products_label", "steps.addProducts"),
            ("#step2_label", "steps.step2"),
            ("#cities_label", "steps.chooseCities"),
            ("#sidebar_footer", "footer.text"),
        ):
            self.query_one(widget_id, Static).update(t(key))
        self.query_one("#select_all_btn", Button).label = t("steps.selectAll")
        self.query_one("#retry_btn", Button).label = t("error.tryAgain")
        self.query_one("#dismiss_error_btn", Button).label = t("error.dismiss")
        self._set_error(self.error_kind)

    def _refresh_view(self) -> None:
        """Sync button state, hints, status line and table."""
        t = self.i18n.t
        button = self.query_one("#search_btn", Button)
        button.disabled = not can_submit(
            self.products, self.selection, self.loading
        )
        button.label = t("buttons.loading" if self.loading else "buttons.getPrices")

        self.query_one("#loader", LoadingIndicator).display = self.loading

        hint = self.query_one("#hint", Static)
        if not self.api_key:
            hint.update(Text(t("key.hint"), style="yellow"))
        elif not self.has_requested:
            hint.update(Text(t("empty.hint"), style="blue"))
        else:
            hint.update("")

        key_badge = (
            Text(f"● {t('key.present')}", style="green")
            if self.api_key
            else Text(f"● {t('key.missing')}", style="yellow")
        )
        status = Text()
        status.append_text(key_badge)
        if self.has_requested and not self.loading:
            updated = self.aggregator.last_updated
            time_label = (
                updated.strftime(self.settings.TIME_FORMAT) if updated else "—"
            )
            status.append("  ")
            status.append(t("table.lastUpdated", time=time_label))
            status.append(t("table.localeBadge"), style="dim")
        self.query_one("#status", Static).update(status)

        self.populate_table()

    def _cell(self, product: str, code: str) -> Text:
        """Render one (product, city) cell."""
        t = self.i18n.t
        if (product, code) in self.pending:
            return Text(t("table.loading"), style="dim italic")
        result: CityResult | None = self.results.get(product, {}).get(code)
        if result is None:
            return Text(t("table.noResult"), style="dim")
        cell = Text(format_brl(result.cheapest.price), style="bold green")
        cell.append(
            f"\n{truncate(result.cheapest.merchant, 20)} · {result.time_label}",
            style="",
        )
        return cell

    def populate_table(self) -> None:
        """Fill the results table: one row per selected city."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )
        table.clear(columns=True)
        products = self.products
        if not self.has_requested or not products:
            return

        table.add_column(self.i18n.t("table.city"), key=_CITY_COLUMN)
        for product in products:
            table.add_column(truncate(product, 28), key=product)

        for city in selected_cities(self.selection):
            table.add_row(
                Text(city["name"], style="bold"),
                *(self._cell(p, city["code"]) for p in products),
                height=2,
                key=city["code"],
            )
