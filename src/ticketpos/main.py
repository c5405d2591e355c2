import sqlite3
from datetime import datetime
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator
from textual.worker import Worker

from ticketpos.db import crud
from ticketpos.sales.errors import PosError, ReceiptError
from ticketpos.sales.processor import SaleCompleted, SaleProcessor, SaleResult
from ticketpos.sales.receipts import FilePrinter
from ticketpos.utils.logger import get_logger
from ticketpos.utils.messages import (
    QuitRequestedMessage,
    SaleCompletedMessage,
    UserLogoutMessage,
)
from ticketpos.utils.state import AppState
from ticketpos.views.base_screen import Sidebar
from ticketpos.views.scr_login import LoginScreen
from ticketpos.views.scr_products import ProductsScreen
from ticketpos.views.scr_reports import ReportsScreen
from ticketpos.views.scr_sales import SalesScreen
from ticketpos.views.scr_settings import SettingsScreen
from ticketpos.views.scr_users import UsersScreen

_logger = get_logger(__name__)

DARK_THEME = "textual-dark"
LIGHT_THEME = "textual-light"

# seconds between store reachability checks
STORE_CHECK_INTERVAL = 30


class TicketPosApp(App):
    BINDINGS = [
        Binding("ctrl+t", "toggle_dark", "Toggle Theme", show=True),
    ]

    MODES = {
        "sales": SalesScreen,
        "products": ProductsScreen,
        "users": UsersScreen,
        "reports": ReportsScreen,
        "settings": SettingsScreen,
    }

    ADMIN_MODES = {
        "sales": "Sales",
        "products": "Products",
        "users": "Users",
        "reports": "Reports",
        "settings": "Settings",
    }
    SELLER_MODES = {"sales": "Sales", "settings": "Settings"}

    CSS_PATH = "styles/app.tcss"

    state: AppState

    def __init__(self, printer: Optional[FilePrinter] = None):
        super().__init__()
        self.state = AppState()
        self.printer = printer or FilePrinter()
        self.processor = SaleProcessor(publish=self.publish_sale)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        settings = await crud.get_settings()
        self.state = AppState(dark_mode=settings.dark_mode, last_sync=settings.last_sync)
        self.theme = DARK_THEME if settings.dark_mode else LIGHT_THEME
        self.set_interval(STORE_CHECK_INTERVAL, self.check_store)
        self.main_flow()

    async def set_dark_mode(self, enabled: bool) -> None:
        await crud.update_settings(dark_mode=enabled)
        if enabled != self.state.dark_mode:
            self.state = self.state.toggled_dark_mode()
        self.theme = DARK_THEME if enabled else LIGHT_THEME

    async def action_toggle_dark(self) -> None:
        await self.set_dark_mode(not self.state.dark_mode)
        self.notify(f"Theme changed to {self.theme}")

    async def check_store(self) -> None:
        """Touch the settings row; the outcome drives the online flag and last sync time."""
        try:
            settings = await crud.update_settings(last_sync=datetime.now())
        except (sqlite3.Error, OSError) as e:
            if self.state.is_online:
                _logger.warning(f"Store unreachable: {e}")
                self.notify("Local store unreachable.", severity="error")
            self.state = self.state.with_online(False)
        else:
            if not self.state.is_online:
                _logger.info("Store reachable again.")
            self.state = self.state.with_online(True).synced(settings.last_sync)
        await self.refresh_status()

    async def refresh_status(self) -> None:
        for sidebar in self.screen.query(Sidebar):
            await sidebar.render_user_info()

    def start_checkout(self, payment_method: str) -> Worker:
        """
        Run the checkout on the app rather than on the dialog that asked for
        it, so dismissing the dialog cannot cancel a store write in flight.
        """
        return self.run_worker(
            self.checkout(payment_method),
            name="checkout",
            group="checkout",
            exit_on_error=False,
        )

    async def checkout(self, payment_method: str) -> Optional[SaleResult]:
        """Record the current cart. Returns None when the sale was not stored."""
        state = self.state
        try:
            result = await self.processor.process_sale(
                state.cart, state.user, state.cash_box, payment_method
            )
        except PosError as e:
            _logger.warning(f"Sale rejected: {e}")
            severity = "warning" if e.retryable else "error"
            self.notify(str(e), title="Sale not recorded", severity=severity)
            return None

        self.state = self.state.with_cart(result.cart).with_online(True).synced(
            result.sale.created_at
        )
        self.notify(
            f"Sale #{result.sale.id} recorded, {len(result.receipts)} ticket(s) sent to print."
        )
        if result.print_error:
            self.notify(str(result.print_error), severity="warning")
        return result

    def publish_sale(self, event: SaleCompleted) -> None:
        """Hand a committed sale to the printing side."""
        self.post_message(SaleCompletedMessage(event))

    @on(SaleCompletedMessage)
    def handle_print_receipts(self, message: SaleCompletedMessage) -> None:
        event = message.event
        try:
            self.printer.print_batch(event.sale.id, event.receipts)
        except ReceiptError as e:
            self.notify(
                f"{e} The sale is saved; reprint it from the receipts folder.",
                title="Printing failed",
                severity="error",
            )

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        user = self.state.user
        self.state = self.state.logged_out()
        if user:
            _logger.info(f"User '{user.username}' logged out.")
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        await self.switch_mode("sales")


def main() -> None:
    TicketPosApp().run()


if __name__ == "__main__":
    main()
