from typing import Dict, List, Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

from ticketpos.db import crud
from ticketpos.db.models import Product
from ticketpos.sales import register, reports
from ticketpos.sales.errors import RegisterError
from ticketpos.utils.logger import get_logger
from ticketpos.utils.messages import RegisterChangedMessage
from ticketpos.utils.pure import format_money
from ticketpos.utils.shortcuts import product_for_key
from ticketpos.views.base_screen import BaseScreen
from ticketpos.views.modal_checkout import CheckoutModal
from ticketpos.views.modal_dialog import DialogModal

_logger = get_logger(__name__)


class SalesScreen(BaseScreen):
    """
    Catalog on the left, cart on the right.

    Enter on a product adds it; +/-/del edit the highlighted cart line.
    Products bound to a shortcut key are added with that key while the
    register is open.
    """

    BINDINGS = [
        Binding("p", "toggle_register", "Open/Close Register", show=True),
        Binding("x", "clear_cart", "Clear Cart", show=True),
        Binding("f2", "checkout", "Checkout", show=True),
        Binding("plus", "change_qty(1)", "+1", show=False),
        Binding("minus", "change_qty(-1)", "-1", show=False),
        Binding("delete", "remove_line", "Remove", show=False),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._products: Dict[int, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-sales"):
            with Vertical(id="div-catalog"):
                yield Label("Products", classes="section-title")
                yield DataTable(id="table-products")
            with Vertical(id="div-cart"):
                yield Label("Register closed", id="label-register")
                yield DataTable(id="table-cart")
                yield Label("Total: -", id="label-cart-total")
                yield Rule(line_style="dashed")
                with Horizontal(id="hort-buttons"):
                    yield Button("Open Register", id="btn-register", variant="success")
                    yield Button("Clear Cart", id="btn-clear-cart")
                    yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self) -> None:
        products = self.query_one("#table-products", DataTable)
        products.cursor_type = "row"
        products.zebra_stripes = True
        products.add_columns("ID", "Product", "Price", "Key")

        cart = self.query_one("#table-cart", DataTable)
        cart.cursor_type = "row"
        cart.add_columns("ID", "Product", "Qty", "Price", "Subtotal")

        products.focus()

    @on(ScreenResume)
    @work(exclusive=True, group="catalog")
    async def reload(self) -> None:
        """Reload the catalog; cart lines pick up edited prices."""
        products: List[Product] = await crud.list_products()
        self._products = {p.id: p for p in products}

        state = self.app.state
        self.app.state = state.with_cart(state.cart.refresh_products(products))

        keys_by_product = {}
        if state.user:
            for key, pid in state.user.shortcuts.items():
                keys_by_product.setdefault(pid, key.upper())

        table = self.query_one("#table-products", DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id, p.name, format_money(p.price), keys_by_product.get(p.id, ""), key=str(p.id)
            )
        self.render_cart()
        self.render_register()

    def render_cart(self) -> None:
        cart = self.app.state.cart
        table = self.query_one("#table-cart", DataTable)
        cursor = table.cursor_row
        table.clear()
        for line in cart:
            table.add_row(
                line.product.id,
                line.product.name,
                line.quantity,
                format_money(line.product.price),
                format_money(line.subtotal),
                key=str(line.product.id),
            )
        if table.row_count:
            table.move_cursor(row=min(cursor, table.row_count - 1))

        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_money(cart.total())}  ({cart.item_count()} item(s))"
        )

    def render_register(self) -> None:
        box = self.app.state.cash_box
        label = self.query_one("#label-register", Label)
        btn = self.query_one("#btn-register", Button)
        if box:
            label.update(f"Register #{box.id} open since {box.opened_at:%H:%M}")
            btn.label = "Close Register"
            btn.variant = "error"
        else:
            label.update("Register closed")
            btn.label = "Open Register"
            btn.variant = "success"
        self.query_one("#btn-checkout", Button).disabled = not self.app.state.can_sell

    def _set_cart(self, cart) -> None:
        self.app.state = self.app.state.with_cart(cart)
        self.render_cart()

    def add_product(self, product_id: int) -> None:
        product = self._products.get(product_id)
        if product is None:
            self.notify("That product no longer exists.", severity="warning")
            return
        self._set_cart(self.app.state.cart.add(product))

    def _highlighted_cart_product(self) -> Optional[int]:
        table = self.query_one("#table-cart", DataTable)
        if not table.row_count:
            return None
        return int(table.get_row_at(table.cursor_row)[0])

    @on(DataTable.RowSelected, "#table-products")
    def handle_product_selected(self, event: DataTable.RowSelected) -> None:
        self.add_product(int(event.row_key.value))

    def action_change_qty(self, delta: int) -> None:
        product_id = self._highlighted_cart_product()
        if product_id is None:
            return
        cart = self.app.state.cart
        self._set_cart(cart.update_quantity(product_id, cart.quantity_of(product_id) + delta))

    def action_remove_line(self) -> None:
        product_id = self._highlighted_cart_product()
        if product_id is not None:
            self._set_cart(self.app.state.cart.remove(product_id))

    def on_key(self, event: events.Key) -> None:
        state = self.app.state
        if not event.character or not state.user or not state.can_sell:
            return
        product_id = product_for_key(state.user.shortcuts, event.character)
        if product_id is not None:
            event.prevent_default()
            event.stop()
            self.add_product(product_id)

    @on(Button.Pressed, "#btn-clear-cart")
    def action_clear_cart(self) -> None:
        if self.app.state.cart.is_empty:
            self.notify("Cart is empty.", severity="warning")
            return
        self._set_cart(self.app.state.cart.clear())

    @on(Button.Pressed, "#btn-register")
    @work(exclusive=True, group="register")
    async def action_toggle_register(self) -> None:
        state = self.app.state
        if state.user is None:
            return

        if state.cash_box is None:
            box = await register.open_register(state.user.id)
            self.app.state = self.app.state.register_opened(box)
            self.notify(f"Cash register #{box.id} opened.")
        else:
            box = state.cash_box
            sales = await crud.list_sales(cash_box_id=box.id)
            summary = reports.cash_box_summary(box, sales)
            if not await self.app.push_screen_wait(
                DialogModal(
                    f"Close register #{box.id}? {summary.count} sale(s), "
                    f"total {format_money(summary.amount)} "
                    f"(cash {format_money(summary.cash_amount)}, "
                    f"transfer {format_money(summary.transfer_amount)}).",
                    primary_text="Close",
                    secondary_text="Cancel",
                    tone="warning",
                )
            ):
                return
            try:
                await register.close_register(box)
            except RegisterError as e:
                # the record is gone, drop the stale reference so a new register can be opened
                _logger.error(str(e))
                self.notify(
                    f"{e} The register was cleared from this session.",
                    title="Register missing",
                    severity="error",
                )
            else:
                self.notify(f"Cash register #{box.id} closed.")
            self.app.state = self.app.state.register_closed()

        self.post_message(RegisterChangedMessage())
        self.render_register()

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True, group="checkout")
    async def action_checkout(self) -> None:
        state = self.app.state
        if state.cart.is_empty:
            self.notify("Cart is empty.", severity="warning")
            return
        if not state.can_sell:
            self.notify("Open the cash register before selling.", severity="warning")
            return

        await self.app.push_screen_wait(CheckoutModal())
        self.render_cart()
