"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from cafe_pos.addon_modal import AddonModal
from cafe_pos.errors import ValidationError
from cafe_pos.login_modal import LoginModal
from cafe_pos.models import Order, OrderItem, Product, SessionState, Settings, Staff
from cafe_pos.persistence import DocumentStore
from cafe_pos.printer import PrintOutcome, PrintResult, check_printer_dependencies, print_receipt, print_report
from cafe_pos.rendering import (
    ADMIN_BADGE_STYLE,
    format_addon_tags,
    format_item_label,
    format_product_label,
    format_total,
)
from cafe_pos.report import ReportSummary, summarize_orders
from cafe_pos.report_modal import REPORT_CLEAR, REPORT_PRINT, REPORT_RESET, ReportModal
from cafe_pos.session import AddonSelection, OrderSession

logger = logging.getLogger(__name__)


class CafePosApp(App):
    """A Textual app for building, confirming and printing counter orders."""

    TITLE = "Cafe POS"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #search-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 5;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #orders-total {
        height: 1;
        margin-top: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    search_query = reactive("")
    selected_index = reactive(0)
    order_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "register_selected", "Add item"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "submit_order", "Confirm + Print", priority=True),
        Binding("ctrl+p", "print_current", "Print", priority=True),
        Binding("ctrl+r", "open_report", "Report", priority=True),
        Binding("ctrl+l", "logout", "Logout", priority=True),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, store: DocumentStore | None = None) -> None:
        super().__init__()
        self.store = store or DocumentStore()
        self.session = OrderSession(self.store, dispatch_receipt=self._dispatch_receipt)
        self.products: list[Product] = []
        self.settings: Settings = self.store.get_settings()
        self.system_status = ""

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Order", id="orders-title", classes="pane-title")
                yield Static("(order is empty)", id="orders-list")
                yield Static(id="orders-total")
            with Vertical(id="search-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")

    def on_mount(self) -> None:
        if not self.store.bootstrap_schema():
            self.system_status = "Storage unavailable: orders will not survive a restart"
        else:
            _, self.system_status = check_printer_dependencies()
        logger.info("app_mounted status=%r", self.system_status)
        self._refresh_data()
        self._refresh_all()
        self._show_login()

    def _modal_open(self) -> bool:
        return isinstance(self.screen, ModalScreen)

    def _refresh_data(self) -> None:
        self.products = self.store.get_products()
        self.settings = self.store.get_settings()
        self.title = self.settings.display_name

    def _show_login(self) -> None:
        self.push_screen(LoginModal(self.settings.display_name, self.store.get_staff()), callback=self._on_login)

    def _on_login(self, staff: Staff | None) -> None:
        if staff is None:
            return
        self._refresh_data()
        self.session.login(staff)
        self.sub_title = staff.name
        self.system_status = f"Welcome, {staff.name}"
        self._refresh_all()

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_search()

    def on_key(self, event: Key) -> None:
        if self.session.state is SessionState.NO_SESSION or self._modal_open():
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        if self.input_state == "normal":
            key = event.character.lower()
            if key in {"s", "/"}:
                self.input_state = "active"
                self.search_query = ""
                self.selected_index = 0
                self._refresh_search()
            elif key in {"+", "="}:
                self._change_selected_quantity(1)
            elif key == "-":
                self._change_selected_quantity(-1)
            elif key == "d":
                self._delete_selected_item()
            elif key == "j":
                self._move_order_selection(1)
            elif key == "k":
                self._move_order_selection(-1)
            else:
                return
            event.stop()
            return

        if not event.character.isprintable():
            return
        self.search_query += event.character
        self.selected_index = 0
        self._refresh_search()
        event.stop()

    def action_cancel_active_mode(self) -> None:
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_backspace_query(self) -> None:
        if self.input_state != "active":
            return

        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def action_register_selected(self) -> None:
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            return

        product = results[self.selected_index]
        if product.addon_categories:
            self.push_screen(
                AddonModal(product, self.settings.currency_symbol),
                callback=lambda selections: self._add_product(product, selections),
            )
            return
        self._add_product(product, [])

    def _add_product(self, product: Product, selections: list[AddonSelection] | None) -> None:
        if selections is None:
            return
        try:
            self.session.add_item(product, selections)
        except ValidationError as exc:
            self._set_status(str(exc))
            return
        order = self.session.current_order
        if order is None:
            return
        self.order_selected_index = next(
            (idx for idx in range(len(order.items) - 1, -1, -1) if order.items[idx].product_id == product.product_id),
            len(order.items) - 1,
        )
        self.system_status = f"{product.name} added to order"
        self._refresh_all()

    def action_submit_order(self) -> None:
        if self._modal_open():
            return
        if self.input_state != "normal":
            self._set_status("Confirm only outside search (Ctrl+C to exit search)")
            return
        try:
            submitted = self.session.submit()
        except ValidationError as exc:
            self._set_status(str(exc))
            return
        self.order_selected_index = None
        self.system_status = f"Order #{submitted.number} confirmed"
        self._refresh_all()

    def action_print_current(self) -> None:
        if self._modal_open():
            return
        if self.session.state is not SessionState.ACTIVE_NON_EMPTY:
            self._set_status("No items in the order to print")
            return
        self._dispatch_receipt(self.session.snapshot(), self.store.get_settings())

    def action_open_report(self) -> None:
        if self.session.state is SessionState.NO_SESSION or self._modal_open():
            return
        orders = self.store.get_orders()
        summary = summarize_orders(orders, self.store.get_staff())
        can_clear = self.session.staff is not None and self.session.staff.is_admin
        self.push_screen(
            ReportModal(summary, orders, self.settings.currency_symbol, can_clear),
            callback=self._on_report_action,
        )

    def _on_report_action(self, action: str | None) -> None:
        if action == REPORT_PRINT:
            summary = summarize_orders(self.store.get_orders(), self.store.get_staff())
            self.run_worker(self._print_report(summary, self.store.get_settings()), group="print")
            self._set_status("Printing daily report...")
        elif action == REPORT_CLEAR:
            self.store.set_orders([])
            logger.warning("ledger_cleared by staff_id=%s", self.session.staff.staff_id if self.session.staff else None)
            self._set_status("All orders deleted")
        elif action == REPORT_RESET:
            self.store.clear_all()
            logger.warning("store_reset by staff_id=%s", self.session.staff.staff_id if self.session.staff else None)
            self._refresh_data()
            self.system_status = "All data reset to defaults"
            self._refresh_all()

    def action_logout(self) -> None:
        if self.session.state is SessionState.NO_SESSION or self._modal_open():
            return
        self.session.logout()
        self.input_state = "normal"
        self.search_query = ""
        self.order_selected_index = None
        self.sub_title = ""
        self.system_status = "Logged out"
        self._refresh_all()
        self._show_login()

    def _dispatch_receipt(self, order: Order, settings: Settings) -> None:
        self.run_worker(self._print_order(order, settings), group="print")
        self._set_status(f"Printing order #{order.number}...")

    async def _print_order(self, order: Order, settings: Settings) -> None:
        result = await print_receipt(order, settings)
        self._report_print(result, f"Order #{order.number}")

    async def _print_report(self, summary: ReportSummary, settings: Settings) -> None:
        result = await print_report(summary, settings)
        self._report_print(result, "Daily report")

    def _report_print(self, result: PrintResult, label: str) -> None:
        if result.outcome is PrintOutcome.PRINTED:
            self._set_status(f"{label} printed")
        elif result.outcome is PrintOutcome.SAVED:
            self._set_status(f"{label}: printer unavailable, saved {result.path}")
            self.notify(f"{label} saved to {result.path}", severity="warning")
        else:
            self._set_status(f"{label}: print failed")
            self.notify(f"{label} could not be printed: {result.error}", severity="error")

    def _filtered_results(self) -> list[Product]:
        if not self.search_query:
            return self.products
        q = self.search_query.lower()
        return [product for product in self.products if q in product.name.lower()]

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_search()

    def _current_items(self) -> list[OrderItem]:
        order = self.session.current_order
        return order.items if order is not None else []

    def _move_order_selection(self, delta: int) -> None:
        items = self._current_items()
        if not items:
            return

        if self.order_selected_index is None:
            self.order_selected_index = 0 if delta > 0 else len(items) - 1
        else:
            self.order_selected_index = (self.order_selected_index + delta) % len(items)
        self._refresh_orders()

    def _change_selected_quantity(self, delta: int) -> None:
        if self.order_selected_index is None:
            return
        try:
            self.session.change_quantity(self.order_selected_index, delta)
        except ValidationError as exc:
            self._set_status(str(exc))
            return
        self._refresh_orders()

    def _delete_selected_item(self) -> None:
        idx = self.order_selected_index
        if idx is None:
            return
        try:
            removed = self.session.remove_item(idx)
        except ValidationError as exc:
            self._set_status(str(exc))
            return

        items = self._current_items()
        self.order_selected_index = min(idx, len(items) - 1) if items else None
        self.system_status = f"{removed.product_name} removed from order"
        self._refresh_all()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            half = rows // 2
            start = selected - half
            start = max(0, start)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
            total_widget = self.query_one("#orders-total", Static)
            title_widget = self.query_one("#orders-title", Static)
        except NoMatches:
            return

        currency = self.settings.currency_symbol
        order = self.session.current_order
        staff = self.session.staff
        title = Text("Order")
        if order is not None and staff is not None:
            title.append(f" #{order.number}  ·  {staff.name}")
            if staff.is_admin:
                title.append(" ")
                title.append("ADMIN", style=ADMIN_BADGE_STYLE)
        title_widget.update(title)

        items = self._current_items()
        total_widget.update(format_total(order.total_amount, currency) if order is not None else "")
        if not items:
            self.order_selected_index = None
            orders_widget.update("(order is empty)" if order is not None else "(not logged in)")
            return

        if self.order_selected_index is not None and self.order_selected_index >= len(items):
            self.order_selected_index = len(items) - 1

        visible_rows = self._visible_rows(orders_widget)
        start, end = self._window_bounds(len(items), visible_rows, self.order_selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")

            pointer = "➤ " if idx == self.order_selected_index else "  "
            lines.append(pointer)
            lines.append(f"{idx + 1}. ")
            lines.append_text(format_item_label(items[idx], currency))

            if items[idx].selected_addons:
                lines.append("\n      ")
                lines.append_text(format_addon_tags(items[idx].selected_addons))

        if end < len(items):
            lines.append("\n⋮", style="dim")

        orders_widget.update(lines)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            status = self.system_status or "Ready"
            bar.update(
                "S search. J/K select, +/- qty, D delete.\n"
                "Ctrl+S confirm, Ctrl+P print, Ctrl+R report, Ctrl+L logout.\n"
                f"{status}"
            )
            return

        text = Text()
        text.append("Search", style="bold")
        text.append(f": {self.search_query}")
        bar.update(text)

    def _refresh_results(self, results: list[Product]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        visible_rows = self._visible_rows(results_widget)
        start, end = self._window_bounds(len(results), visible_rows, self.selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_product_label(results[idx], self.settings.currency_symbol))

        if end < len(results):
            lines.append("\n⋮", style="dim")

        results_widget.update(lines)
