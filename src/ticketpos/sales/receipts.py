"""
Receipt generation.

A sale prints one ticket per physical unit: a line of quantity 3 becomes
three receipts numbered 1/3, 2/3 and 3/3. Receipts are plain fixed-width
text; a batch is the receipts joined by form feeds so each one lands on its
own page.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

from ticketpos.db.models import SaleLine
from ticketpos.sales.errors import ReceiptError
from ticketpos.utils import config
from ticketpos.utils.logger import get_logger
from ticketpos.utils.pure import format_money, payment_label

_logger = get_logger(__name__)

RECEIPT_WIDTH = 32
PAGE_BREAK = "\f"


@dataclass(frozen=True)
class ReceiptUnit:
    product_name: str
    unit_price: Decimal
    unit_index: int  # 1..units_in_line
    units_in_line: int
    seller_name: str
    payment_method: str
    sale_total: Decimal
    printed_at: datetime
    sequence: int  # 1..sequence_total across the whole sale
    sequence_total: int


def generate_receipts(
    lines: Sequence[SaleLine],
    seller_name: str,
    payment_method: str,
    total: Decimal,
    now: Optional[datetime] = None,
) -> Tuple[ReceiptUnit, ...]:
    """Expand sale lines into one receipt per unit, in line order."""
    now = now or datetime.now()
    count = sum(line.quantity for line in lines)
    units = []
    for line in lines:
        for idx in range(1, line.quantity + 1):
            units.append(
                ReceiptUnit(
                    product_name=line.product_name,
                    unit_price=line.unit_price,
                    unit_index=idx,
                    units_in_line=line.quantity,
                    seller_name=seller_name,
                    payment_method=payment_method,
                    sale_total=total,
                    printed_at=now,
                    sequence=len(units) + 1,
                    sequence_total=count,
                )
            )
    return tuple(units)


def _center(text: str) -> str:
    return text[:RECEIPT_WIDTH].center(RECEIPT_WIDTH).rstrip()


def render_receipt(
    unit: ReceiptUnit,
    company_name: str = config.COMPANY_NAME,
    currency: str = config.CURRENCY,
) -> str:
    rule = "-" * RECEIPT_WIDTH
    rows = [
        _center(company_name),
        _center("SALES TICKET"),
        _center(f"Date: {unit.printed_at:%Y-%m-%d %H:%M}"),
        _center(f"Seller: {unit.seller_name}"),
        _center(f"Ticket {unit.sequence} of {unit.sequence_total}"),
        rule,
        unit.product_name[:RECEIPT_WIDTH],
        f"Unit: {unit.unit_index} of {unit.units_in_line}",
        f"Price: {format_money(unit.unit_price, currency)}",
        rule,
        _center(f"Payment: {payment_label(unit.payment_method)}"),
        _center(f"Sale total: {format_money(unit.sale_total, currency)}"),
        _center("Thank you for your purchase!"),
    ]
    return "\n".join(rows) + "\n"


def render_batch(units: Iterable[ReceiptUnit], **kwargs) -> str:
    """All receipts as one document, each but the last followed by a page break."""
    return PAGE_BREAK.join(render_receipt(unit, **kwargs) for unit in units)


class FilePrinter:
    """
    Print surface that spools receipt batches to text files, one per sale.
    """

    def __init__(self, directory: str = config.RECEIPTS_DIR):
        self.directory = directory

    def print_batch(self, sale_id: int, units: Sequence[ReceiptUnit]) -> str:
        if not units:
            raise ReceiptError(f"Sale {sale_id} has no receipts to print.")
        stamp = units[0].printed_at.strftime("%Y%m%d-%H%M%S")
        path = os.path.join(self.directory, f"sale-{sale_id}-{stamp}.txt")
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(render_batch(units))
        except OSError as e:
            _logger.error(f"Printing receipts for sale {sale_id} failed: {e}")
            raise ReceiptError(f"Could not print receipts for sale {sale_id}: {e}") from e
        _logger.info(f"Printed {len(units)} receipt(s) for sale {sale_id} to {path}")
        return path
