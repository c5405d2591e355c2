from datetime import datetime
from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer, Select

from ticketpos.db import crud
from ticketpos.db.models import CashBox, Sale
from ticketpos.sales import reports
from ticketpos.utils.pure import format_money, generate_markdown_table
from ticketpos.views.base_screen import BaseScreen

PERIOD_OPTIONS = [
    ("Today", "today"),
    ("This week", "week"),
    ("This month", "month"),
    ("All time", "all"),
]

RECENT_LIMIT = 50


def _pct(part: int, whole: int) -> str:
    return f"{round(part * 100 / whole) if whole else 0}%"


def _cash_box_rows(boxes: List[CashBox], sales: List[Sale], names) -> List[list]:
    rows = []
    for box in boxes:
        summary = reports.cash_box_summary(box, sales)
        rows.append(
            [
                box.id,
                names.get(box.user_id, reports.UNKNOWN_USER),
                f"{box.opened_at:%Y-%m-%d %H:%M}",
                f"{box.closed_at:%Y-%m-%d %H:%M}" if box.closed_at else "open",
                summary.count,
                format_money(summary.amount),
            ]
        )
    return rows


class ReportsScreen(BaseScreen):
    """
    Totals, per-seller figures, cash boxes and recent sales for a period.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(PERIOD_OPTIONS, value="today", allow_blank=False, id="select-period")
            yield MarkdownViewer(id="md-report", show_table_of_contents=False)

    @on(Select.Changed, "#select-period")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        period = self.query_one("#select-period", Select).value
        now = datetime.now()
        start, _ = reports.period_bounds(period, now)

        # open registers count every sale they hold, not only the period's
        all_sales = await crud.list_sales()
        sales = reports.filter_sales(all_sales, period, now)
        users = await crud.list_users()
        boxes = await crud.list_cash_boxes()
        names = {u.id: u.name for u in users}

        t = reports.totals(sales)
        md = (
            "### Summary\n\n"
            f"- Sales: {t.count}\n"
            f"- Amount: {format_money(t.amount)}\n"
            f"- Average sale: {format_money(t.average)}\n"
            f"- Cash: {t.cash_count} ({_pct(t.cash_count, t.count)}) {format_money(t.cash_amount)}\n"
            f"- Transfer: {t.transfer_count} ({_pct(t.transfer_count, t.count)}) "
            f"{format_money(t.transfer_amount)}\n\n"
        )

        seller_rows = [
            [
                r.user_name,
                r.totals.count,
                format_money(r.totals.amount),
                format_money(r.totals.average),
                format_money(r.totals.cash_amount),
                format_money(r.totals.transfer_amount),
            ]
            for r in reports.per_seller(sales, users)
        ]
        md += "### By Seller\n\n" + (
            generate_markdown_table(
                ["Seller", "Sales", "Amount", "Average", "Cash", "Transfer"],
                seller_rows,
                ["l", "r", "r", "r", "r", "r"],
            )
            or "_No sales in this period._"
        )

        if start is not None:
            boxes = [b for b in boxes if b.opened_at >= start or b.is_open]
        md += "\n\n### Cash Registers\n\n" + (
            generate_markdown_table(
                ["#", "Seller", "Opened", "Closed", "Sales", "Amount"],
                _cash_box_rows(boxes, all_sales, names),
                ["r", "l", "l", "l", "r", "r"],
            )
            or "_No registers in this period._"
        )

        recent = reports.sales_rows(sales[:RECENT_LIMIT], users)
        md += "\n\n### Recent Sales\n\n" + (
            generate_markdown_table(
                ["#", "Date", "Seller", "Total", "Payment", "Products", "Register"],
                [
                    [
                        r.id,
                        f"{r.date:%Y-%m-%d %H:%M}",
                        r.seller,
                        format_money(r.total),
                        r.payment,
                        r.products,
                        r.cash_box_id,
                    ]
                    for r in recent
                ],
                ["r", "l", "l", "r", "l", "l", "r"],
            )
            or "_No sales in this period._"
        )
        await self.query_one("#md-report", MarkdownViewer).document.update(md)
