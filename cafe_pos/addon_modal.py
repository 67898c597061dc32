"""Addon picker modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe_pos.errors import InvalidAddonSelection
from cafe_pos.models import AddonCategory, AddonOption, Product
from cafe_pos.pricing import compute_item_total, format_money
from cafe_pos.session import AddonSelection, default_selections, snapshot_addons


class AddonModal(ModalScreen[list[AddonSelection] | None]):
    """Centered modal to choose addon options for one product."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("q", "cancel", "Cancel"),
        ("ctrl+c", "cancel", "Cancel"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("space", "toggle_current", "Toggle"),
        ("enter", "toggle_current", "Toggle"),
        ("a", "confirm", "Add to order"),
    ]

    CSS = """
    AddonModal {
        align: center middle;
        background: $background 60%;
    }

    #addon-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #addon-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #addon-body {
        margin-bottom: 1;
        color: white;
    }

    #addon-error {
        color: #ffb3b3;
    }

    #addon-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, product: Product, currency: str) -> None:
        super().__init__()
        self.product = product
        self.currency = currency
        self.selected: set[tuple[str, str]] = {
            (category.category_id, option.option_id) for category, option in default_selections(product)
        }
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="addon-dialog"):
            yield Static(self.product.name, id="addon-title")
            yield Static(id="addon-body")
            yield Static(id="addon-error")
            yield Static("J/K/↑/↓ move, Space/Enter toggle, A add, Esc/q cancel", id="addon-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def _rows(self) -> list[tuple[AddonCategory, AddonOption]]:
        return [(category, option) for category in self.product.addon_categories for option in category.options]

    def _selections(self) -> list[AddonSelection]:
        return [row for row in self._rows() if (row[0].category_id, row[1].option_id) in self.selected]

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        rows = self._rows()
        if not rows:
            return
        self.cursor_index = (self.cursor_index + delta) % len(rows)
        self._refresh_content()

    def action_toggle_current(self) -> None:
        rows = self._rows()
        if not rows:
            return
        category, option = rows[self.cursor_index]
        key = (category.category_id, option.option_id)
        if category.is_single_select:
            self.selected = {pair for pair in self.selected if pair[0] != category.category_id}
            self.selected.add(key)
        elif key in self.selected:
            self.selected.remove(key)
        else:
            self.selected.add(key)
        self.error = ""
        self._refresh_content()

    def action_confirm(self) -> None:
        selections = self._selections()
        try:
            snapshot_addons(self.product, selections)
        except InvalidAddonSelection as exc:
            self.error = str(exc)
            self._refresh_content()
            return
        self.dismiss(selections)

    def _unit_price_text(self) -> str:
        try:
            addons = snapshot_addons(self.product, self._selections())
        except InvalidAddonSelection:
            return "-"
        return f"{format_money(compute_item_total(self.product.price, addons, 1))} {self.currency}"

    def _refresh_content(self) -> None:
        body = self.query_one("#addon-body", Static)
        content = Text(style="white")
        content.append(f"Unit price: {self._unit_price_text()}", style="bold")

        current_category = None
        for idx, (category, option) in enumerate(self._rows()):
            if category is not current_category:
                current_category = category
                hint = "choose one" if category.is_single_select else "any"
                content.append(f"\n\n{category.name} ({hint})", style="bold")
            pointer = "➤ " if idx == self.cursor_index else "  "
            is_checked = (category.category_id, option.option_id) in self.selected
            if category.is_single_select:
                checked = "(•)" if is_checked else "( )"
            else:
                checked = "[x]" if is_checked else "[ ]"
            note_style = "bold white" if is_checked else "white"
            adjustment = format_money(option.price_adjustment)
            if not adjustment.startswith("-"):
                adjustment = f"+{adjustment}"
            content.append(f"\n{pointer}{checked} {option.name} ({adjustment})", style=note_style)

        body.update(content)
        self.query_one("#addon-error", Static).update(self.error or "")
