"""Access-code login modal screen."""

from __future__ import annotations

from string import ascii_lowercase

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe_pos.auth import resolve_staff, selectable_staff
from cafe_pos.config import ACCESS_CODE_LENGTH
from cafe_pos.errors import AuthError
from cafe_pos.models import Staff


class LoginModal(ModalScreen[Staff]):
    """Prompt for a staff access code; the session starts on dismiss."""

    CSS = """
    LoginModal {
        align: center middle;
        background: $background 80%;
    }

    #login-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #login-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #login-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #login-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #login-staff {
        color: white;
        margin-bottom: 1;
    }

    #login-help {
        color: #dddddd;
    }
    """

    def __init__(self, shop_name: str, staff: list[Staff]) -> None:
        super().__init__()
        self.shop_name = shop_name
        self.staff = staff
        self.quick_staff = selectable_staff(staff)[: len(ascii_lowercase)]
        self.value = ""
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="login-dialog"):
            yield Static(self.shop_name, id="login-title")
            yield Static(f"Enter your {ACCESS_CODE_LENGTH}-digit access code", id="login-prompt")
            yield Static(id="login-value")
            yield Static(id="login-error")
            yield Static(id="login-staff")
            yield Static("Digits enter code. Letters pick staff. Backspace delete. Ctrl+Q quit.", id="login-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if not event.is_printable or not event.character:
            return

        if event.character.isdigit():
            if len(self.value) < ACCESS_CODE_LENGTH:
                self.value += event.character
            self.error = ""
            if len(self.value) == ACCESS_CODE_LENGTH:
                # Full code entered: try it right away.
                self._confirm()
            else:
                self._refresh_content()
            event.stop()
            return

        key = event.character.lower()
        if key in ascii_lowercase and ascii_lowercase.index(key) < len(self.quick_staff):
            self.dismiss(self.quick_staff[ascii_lowercase.index(key)])
            event.stop()

    def _confirm(self) -> None:
        try:
            staff = resolve_staff(self.staff, self.value)
        except AuthError as exc:
            self.error = str(exc)
            self.value = ""
            self._refresh_content()
            return
        self.dismiss(staff)

    def _refresh_content(self) -> None:
        self.query_one("#login-value", Static).update("*" * len(self.value))
        self.query_one("#login-error", Static).update(self.error or "")

        staff_text = Text()
        if self.quick_staff:
            staff_text.append("Or pick a staff member:\n")
        for idx, member in enumerate(self.quick_staff):
            if idx > 0:
                staff_text.append("   ")
            staff_text.append(ascii_lowercase[idx], style="bold")
            staff_text.append(f") {member.name}")
        self.query_one("#login-staff", Static).update(staff_text)
