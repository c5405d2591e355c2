from __future__ import annotations

from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select

from ticketpos.db import crud
from ticketpos.sales.errors import ValidationError
from ticketpos.views.base_screen import BaseScreen
from ticketpos.views.modal_dialog import DialogModal

ROLE_OPTIONS = [("Seller", "seller"), ("Administrator", "admin")]


class UsersScreen(BaseScreen):
    """
    Admin user management. Leaving the password blank keeps the current one.
    """

    current_id: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-users")
            with Horizontal(id="hort-controls"):
                with Vertical():
                    yield Label("Username:")
                    yield Input(placeholder="jdoe", id="input-username")
                with Vertical():
                    yield Label("Name:")
                    yield Input(placeholder="Jane Doe", id="input-name")
                with Vertical():
                    yield Label("Password:")
                    yield Input(placeholder="*********", password=True, id="input-pwd")
                with Vertical():
                    yield Label("Role:")
                    yield Select(ROLE_OPTIONS, value="seller", allow_blank=False, id="select-role")
            with Horizontal(id="div-button"):
                yield Button("New", id="btn-new")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Username", "Name", "Role", "Shortcuts", "Created")

    @on(ScreenResume)
    @work(exclusive=True, group="users")
    async def reload(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for u in await crud.list_users():
            table.add_row(
                u.id,
                u.username,
                u.name,
                u.role,
                len(u.shortcuts),
                f"{u.created_at:%Y-%m-%d}" if u.created_at else "",
                key=str(u.id),
            )

    @on(DataTable.RowSelected)
    @work(exclusive=True)
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        user = await crud.get_user(int(event.row_key.value))
        if user is None:
            return
        self.current_id = user.id
        self.query_one("#input-username", Input).value = user.username
        self.query_one("#input-name", Input).value = user.name
        self.query_one("#input-pwd", Input).value = ""
        self.query_one("#select-role", Select).value = user.role

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.current_id = None
        for input_id in ("#input-username", "#input-name", "#input-pwd"):
            self.query_one(input_id, Input).value = ""
        self.query_one("#select-role", Select).value = "seller"
        self.query_one("#input-username", Input).focus()

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        username = self.query_one("#input-username", Input).value.strip()
        name = self.query_one("#input-name", Input).value.strip()
        pwd = self.query_one("#input-pwd", Input).value
        role = self.query_one("#select-role", Select).value

        if not username or not name or (self.current_id is None and not pwd):
            self.notify("Make sure all inputs are filled.", severity="error")
            return
        if not await crud.username_available(username, exclude_id=self.current_id):
            self.query_one("#input-username", Input).add_class("-invalid")
            self.notify(f"Username '{username}' is already taken.", severity="error")
            return
        self.query_one("#input-username", Input).remove_class("-invalid")

        try:
            if self.current_id is None:
                user = await crud.add_user(username, name, pwd, role)
                self.current_id = user.id
                self.notify(f"User '{user.username}' created.")
            else:
                user = await crud.update_user(
                    self.current_id, username=username, name=name, password=pwd or None, role=role
                )
                if self.app.state.user and user.id == self.app.state.user.id:
                    self.app.state = self.app.state.with_user(user)
                self.notify(f"User '{user.username}' updated.")
        except (ValidationError, ValueError) as e:
            self.notify(str(e), severity="error")
            return
        self.query_one("#input-pwd", Input).value = ""
        self.reload()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if self.current_id is None:
            self.notify("Select a user first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete this user? Their sales stay in the reports.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        try:
            await crud.delete_user(self.current_id, acting_user_id=self.app.state.user.id)
        except ValidationError as e:
            self.notify(str(e), severity="error")
            return
        self.notify("User deleted.")
        self.handle_new()
        self.reload()
