from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label

from ticketpos.db import crud
from ticketpos.sales import register
from ticketpos.utils.logger import get_logger
from ticketpos.views.base_screen import BaseScreen
from ticketpos.views.modal_dialog import QuitDialogModal

_logger = get_logger(__name__)


class LoginScreen(BaseScreen):
    """
    Dismisses once a user has logged in and the app state holds them.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Label("Ticket Sales", id="label-login-title")
            yield Label("Username")
            yield Input(placeholder="admin", id="input-login-username")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            with Horizontal(id="div-login-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Login", id="btn-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-username", Input).value.strip()
        pwd_input = self.query_one("#input-login-pwd", Input)

        if not username or not pwd_input.value:
            self.notify("Username or password cannot be empty!", severity="error")
            return

        user = await crud.login(username, pwd_input.value)
        if not user:
            _logger.info(f"Failed login for '{username}'.")
            self.notify("Invalid username or password.", severity="error")
            pwd_input.value = ""
            pwd_input.focus()
            pwd_input.add_class("-invalid")
            return

        # resume a till left open by an earlier session
        cash_box = await register.current_register(user.id)
        self.app.state = self.app.state.logged_in(user, cash_box)
        _logger.info(f"User '{user.username}' logged in.")

        self.notify(f"Welcome, {user.name}!")
        if cash_box:
            self.notify(f"Cash register #{cash_box.id} is still open.", severity="warning")
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.app.push_screen(QuitDialogModal())
