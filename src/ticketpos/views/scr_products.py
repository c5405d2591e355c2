from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label

from ticketpos.db import crud
from ticketpos.utils.logger import get_logger
from ticketpos.utils.pure import format_money
from ticketpos.views.base_screen import BaseScreen
from ticketpos.views.modal_dialog import DialogModal

_logger = get_logger(__name__)


class ProductsScreen(BaseScreen):
    """
    Admin catalog management: pick a row to edit it, "New" to start a blank form.
    Price edits never change recorded sales.
    """

    current_id: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-products")
            with Horizontal(id="hort-controls"):
                with Vertical():
                    yield Label("Name:")
                    yield Input(placeholder="General admission", id="input-name")
                with Vertical():
                    yield Label("Price:")
                    yield Input(
                        placeholder="10.00",
                        id="input-price",
                        type="number",
                        validators=[Number(minimum=0.01)],
                    )
                with Vertical():
                    yield Label("Image (path or URL):")
                    yield Input(placeholder="optional", id="input-image")
            with Horizontal(id="div-button"):
                yield Button("New", id="btn-new")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Price", "Image", "Updated")

    @on(ScreenResume)
    @work(exclusive=True, group="products")
    async def reload(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for p in await crud.list_products():
            table.add_row(
                p.id,
                p.name,
                format_money(p.price),
                p.image or "",
                f"{p.updated_at:%Y-%m-%d %H:%M}" if p.updated_at else "",
                key=str(p.id),
            )

    @on(DataTable.RowSelected)
    @work(exclusive=True)
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product = await crud.get_product(int(event.row_key.value))
        if product is None:
            return
        self.current_id = product.id
        self.query_one("#input-name", Input).value = product.name
        self.query_one("#input-price", Input).value = f"{product.price:.2f}"
        self.query_one("#input-image", Input).value = product.image or ""

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.current_id = None
        for input_id in ("#input-name", "#input-price", "#input-image"):
            self.query_one(input_id, Input).value = ""
        self.query_one("#input-name", Input).focus()

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        name_input = self.query_one("#input-name", Input)
        price_input = self.query_one("#input-price", Input)
        image = self.query_one("#input-image", Input).value.strip() or None

        if not name_input.value.strip():
            name_input.focus()
            name_input.add_class("-invalid")
            self.notify("Product name is required.", severity="error")
            return
        try:
            price = Decimal(price_input.value)
        except InvalidOperation:
            price_input.focus()
            price_input.add_class("-invalid")
            self.notify("Enter a valid price.", severity="error")
            return

        try:
            if self.current_id is None:
                product = await crud.add_product(name_input.value, price, image)
                self.current_id = product.id
                self.notify(f"Product '{product.name}' created.")
            else:
                product = await crud.update_product(
                    self.current_id, name=name_input.value, price=price, image=image
                )
                self.notify(f"Product '{product.name}' updated.")
        except ValueError as e:
            self.notify(str(e), severity="error")
            return
        self.reload()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if self.current_id is None:
            self.notify("Select a product first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete this product? Recorded sales keep their copy.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        if await crud.delete_product(self.current_id):
            _logger.info(f"Product {self.current_id} deleted.")
            self.notify("Product deleted.")
        self.handle_new()
        self.reload()
