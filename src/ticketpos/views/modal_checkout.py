from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer, RadioButton, RadioSet
from textual.worker import WorkerFailed

from ticketpos.utils.logger import get_logger
from ticketpos.utils.pure import format_money, generate_markdown_table

_logger = get_logger(__name__)


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary plus payment method. Enter or "Confirm Sale" records the sale.
    Dismisses with True once the sale is stored, False if the user backed out.
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Payment Method")
            with RadioSet(id="radio-payment"):
                yield RadioButton("Cash", value=True, id="radio-cash")
                yield RadioButton("Transfer", id="radio-transfer")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Confirm Sale", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        headers = ["Product", "Unit Price", "Quantity", "Subtotal"]
        rows = [
            [
                line.product.name,
                format_money(line.product.price),
                line.quantity,
                format_money(line.subtotal),
            ]
            for line in cart
        ]
        md = "### Sale Summary\n\n"
        md += generate_markdown_table(headers, rows, ["l", "r", "c", "r"])
        md += f"\n\n**Total:** {format_money(cart.total())}"
        md += f"  \n**Tickets to print:** {cart.item_count()}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#btn-submit").focus()

    def _payment_method(self) -> str:
        pressed = self.query_one("#radio-payment", RadioSet).pressed_button
        return "transfer" if pressed is not None and pressed.id == "radio-transfer" else "cash"

    def _submitting(self) -> bool:
        return self.query_one("#btn-submit", Button).disabled or self.app.processor.busy

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.stop()
            self.handle_quit()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        if self._submitting():
            return
        buttons = self.query(Button)
        buttons.set(disabled=True)

        # the sale runs on the app, closing this dialog must not cancel the write
        worker = self.app.start_checkout(self._payment_method())
        try:
            result = await worker.wait()
        except WorkerFailed as e:
            _logger.error(f"Checkout failed: {e.error}")
            self.notify(str(e.error), title="Sale not recorded", severity="error")
            result = None

        if result is None:
            # cart is untouched, the user can fix the problem or retry
            buttons.set(disabled=False)
            return
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        if self._submitting():
            self.notify("The sale is still being saved.", severity="warning")
            return
        self.dismiss(False)
