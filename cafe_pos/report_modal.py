"""Daily report modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe_pos.models import Order
from cafe_pos.pricing import format_money
from cafe_pos.report import ReportSummary, format_timestamp, newest_first

REPORT_PRINT = "print"
REPORT_CLEAR = "clear"
REPORT_RESET = "reset"


class ReportModal(ModalScreen[str | None]):
    """Sales summary and ledger; dismisses with the requested action."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("p", "print_report", "Print"),
        ("x", "confirm('clear')", "Clear orders"),
        ("r", "confirm('reset')", "Reset all data"),
    ]

    CSS = """
    ReportModal {
        align: center middle;
        background: $background 60%;
    }

    #report-dialog {
        width: 72;
        height: 80%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #report-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #report-summary {
        margin-bottom: 1;
        color: white;
    }

    #report-orders {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #report-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, summary: ReportSummary, orders: list[Order], currency: str, can_clear: bool) -> None:
        super().__init__()
        self.summary = summary
        self.orders = orders
        self.currency = currency
        self.can_clear = can_clear
        self.confirming: str | None = None

    def compose(self) -> ComposeResult:
        with Container(id="report-dialog"):
            yield Static("Daily Sales Report", id="report-title")
            yield Static(id="report-summary")
            with VerticalScroll(id="report-orders"):
                yield Static(id="report-ledger")
            yield Static(id="report-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_close(self) -> None:
        if self.confirming is not None:
            self.confirming = None
            self._refresh_content()
            return
        self.dismiss(None)

    def action_print_report(self) -> None:
        self.dismiss(REPORT_PRINT)

    def action_confirm(self, action: str) -> None:
        if not self.can_clear:
            return
        if self.confirming != action:
            # Destructive: require a second press of the same key.
            self.confirming = action
            self._refresh_content()
            return
        self.dismiss(action)

    def _refresh_content(self) -> None:
        currency = self.currency
        summary = Text(style="white")
        summary.append("Total sales: ", style="bold")
        summary.append(f"{format_money(self.summary.total_sales)} {currency}")
        summary.append("    Orders: ", style="bold")
        summary.append(str(self.summary.total_orders))
        for row in self.summary.by_staff:
            summary.append(f"\n  {row.name} ({row.count} orders): {format_money(row.total)} {currency}")
        self.query_one("#report-summary", Static).update(summary)

        ledger = Text(style="white")
        for idx, order in enumerate(newest_first(self.orders)):
            if idx > 0:
                ledger.append("\n\n")
            ledger.append(f"#{order.number}  {format_money(order.total_amount)} {currency}", style="bold")
            ledger.append(f"\n{order.staff_name} | {format_timestamp(order.created_at)}", style="dim")
            for item in order.items:
                ledger.append(f"\n  • {item.product_name} x{item.quantity} ({format_money(item.total_price)})")
        if not self.orders:
            ledger.append("(no orders yet)", style="dim")
        self.query_one("#report-ledger", Static).update(ledger)

        help_text = "P print, Esc/q close"
        if self.can_clear:
            help_text = "P print, X clear orders, R reset all data, Esc/q close"
        if self.confirming == REPORT_CLEAR:
            help_text = "Press X again to delete ALL orders. Esc cancels."
        elif self.confirming == REPORT_RESET:
            help_text = "Press R again to reset products, staff, settings and orders. Esc cancels."
        self.query_one("#report-help", Static).update(help_text)
