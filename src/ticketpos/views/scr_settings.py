from __future__ import annotations

from typing import Dict

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select, Switch

from ticketpos.db import crud
from ticketpos.sales.errors import ShortcutError, ValidationError
from ticketpos.utils import shortcuts as shortcut_codec
from ticketpos.views.base_screen import BaseScreen


class SettingsScreen(BaseScreen):
    """
    Appearance, own profile, and keyboard shortcuts that add a product to the
    cart on the sales screen.
    """

    def __init__(self) -> None:
        super().__init__()
        self._shortcuts: Dict[str, int] = {}
        self._product_names: Dict[int, str] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll():
            yield Label("Appearance", classes="section-title")
            with Horizontal(classes="row"):
                yield Label("Dark mode")
                yield Switch(id="switch-dark")

            yield Label("Profile", classes="section-title")
            with Horizontal(classes="row"):
                with Vertical():
                    yield Label("Name:")
                    yield Input(id="input-profile-name")
                with Vertical():
                    yield Label("New password:")
                    yield Input(placeholder="leave blank to keep", password=True, id="input-profile-pwd")
                yield Button("Save Profile", id="btn-save-profile", variant="success")

            yield Label("Shortcuts", classes="section-title")
            yield DataTable(id="table-shortcuts")
            with Horizontal(classes="row"):
                yield Input(placeholder="key", max_length=1, id="input-shortcut-key")
                yield Select([], prompt="Product", id="select-shortcut-product")
                yield Button("Add", id="btn-add-shortcut")
                yield Button("Remove", id="btn-remove-shortcut", variant="error")
                yield Button("Save Shortcuts", id="btn-save-shortcuts", variant="success")

    def on_mount(self) -> None:
        table = self.query_one("#table-shortcuts", DataTable)
        table.cursor_type = "row"
        table.add_columns("Key", "Product")

    @on(ScreenResume)
    @work(exclusive=True, group="settings")
    async def reload(self) -> None:
        user = self.app.state.user
        if user is None:
            return
        products = await crud.list_products()
        self._product_names = {p.id: p.name for p in products}
        self._shortcuts = dict(user.shortcuts)

        self.query_one("#switch-dark", Switch).value = self.app.state.dark_mode
        self.query_one("#input-profile-name", Input).value = user.name
        self.query_one("#select-shortcut-product", Select).set_options(
            [(p.name, p.id) for p in products]
        )
        self.render_shortcuts()

    def render_shortcuts(self) -> None:
        table = self.query_one("#table-shortcuts", DataTable)
        table.clear()
        for key, product_id in sorted(self._shortcuts.items()):
            name = self._product_names.get(product_id, f"missing product #{product_id}")
            table.add_row(key.upper(), name, key=key)

    @on(Switch.Changed, "#switch-dark")
    async def handle_dark_mode(self, event: Switch.Changed) -> None:
        if event.value != self.app.state.dark_mode:
            await self.app.set_dark_mode(event.value)

    @on(Button.Pressed, "#btn-save-profile")
    @work(exclusive=True)
    async def handle_save_profile(self) -> None:
        name = self.query_one("#input-profile-name", Input).value.strip()
        pwd_input = self.query_one("#input-profile-pwd", Input)
        if not name:
            self.notify("Name cannot be empty.", severity="error")
            return
        user = await crud.update_user(
            self.app.state.user.id, name=name, password=pwd_input.value or None
        )
        self.app.state = self.app.state.with_user(user)
        pwd_input.value = ""
        self.notify("Profile updated.")

    @on(Button.Pressed, "#btn-add-shortcut")
    def handle_add_shortcut(self) -> None:
        key_input = self.query_one("#input-shortcut-key", Input)
        product_id = self.query_one("#select-shortcut-product", Select).value
        if product_id is Select.BLANK:
            self.notify("Pick a product for the shortcut.", severity="error")
            return
        try:
            (key,) = shortcut_codec.validate({key_input.value: product_id}).keys()
        except ShortcutError as e:
            self.notify(str(e), severity="error")
            return
        self._shortcuts[key] = product_id
        key_input.value = ""
        self.render_shortcuts()

    @on(Button.Pressed, "#btn-remove-shortcut")
    def handle_remove_shortcut(self) -> None:
        table = self.query_one("#table-shortcuts", DataTable)
        if not table.row_count:
            return
        key = str(table.get_row_at(table.cursor_row)[0]).lower()
        self._shortcuts.pop(key, None)
        self.render_shortcuts()

    @on(Button.Pressed, "#btn-save-shortcuts")
    @work(exclusive=True)
    async def handle_save_shortcuts(self) -> None:
        try:
            user = await crud.set_user_shortcuts(self.app.state.user.id, self._shortcuts)
        except ValidationError as e:
            self.notify(str(e), severity="error")
            return
        self.app.state = self.app.state.with_user(user)
        self.notify("Shortcuts saved.")
