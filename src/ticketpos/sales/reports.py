"""Sales reporting over stored sales: period filters, totals and per-seller figures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from ticketpos.db.models import CashBox, Sale, User
from ticketpos.utils.pure import payment_label

Period = Literal["today", "week", "month", "all"]
PERIODS: Tuple[str, ...] = ("today", "week", "month", "all")

UNKNOWN_USER = "Unknown user"
ZERO = Decimal("0")


@dataclass(frozen=True)
class SalesTotals:
    count: int = 0
    amount: Decimal = ZERO
    cash_count: int = 0
    cash_amount: Decimal = ZERO
    transfer_count: int = 0
    transfer_amount: Decimal = ZERO

    @property
    def average(self) -> Decimal:
        return self.amount / self.count if self.count else ZERO


@dataclass(frozen=True)
class SellerReport:
    user_id: int
    user_name: str
    totals: SalesTotals


@dataclass(frozen=True)
class SaleRow:
    id: int
    date: datetime
    seller: str
    total: Decimal
    payment: str
    products: str
    cash_box_id: int


def period_bounds(period: str, now: datetime) -> Tuple[Optional[datetime], datetime]:
    """[start, end] for a period ending at ``now``; start is None for 'all'."""
    today = datetime.combine(now.date(), time.min)
    if period == "today":
        return today, datetime.combine(now.date(), time.max)
    if period == "week":
        return today - timedelta(days=today.weekday()), now
    if period == "month":
        return today.replace(day=1), now
    if period == "all":
        return None, now
    raise ValueError(f"Unknown period: {period}")


def filter_sales(sales: Iterable[Sale], period: str, now: Optional[datetime] = None) -> List[Sale]:
    now = now or datetime.now()
    start, end = period_bounds(period, now)
    if start is None:
        return list(sales)
    return [s for s in sales if start <= s.created_at <= end]


def totals(sales: Iterable[Sale]) -> SalesTotals:
    count = cash_count = transfer_count = 0
    amount = cash_amount = transfer_amount = ZERO
    for sale in sales:
        count += 1
        amount += sale.total
        if sale.payment_method == "cash":
            cash_count += 1
            cash_amount += sale.total
        else:
            transfer_count += 1
            transfer_amount += sale.total
    return SalesTotals(
        count, amount, cash_count, cash_amount, transfer_count, transfer_amount
    )


def _names(users: Iterable[User]) -> Dict[int, str]:
    return {u.id: u.name for u in users}


def products_summary(sale: Sale) -> str:
    return ", ".join(f"{line.quantity}x {line.product_name}" for line in sale.lines)


def sales_rows(sales: Iterable[Sale], users: Iterable[User]) -> List[SaleRow]:
    names = _names(users)
    return [
        SaleRow(
            id=sale.id,
            date=sale.created_at,
            seller=names.get(sale.user_id, UNKNOWN_USER),
            total=sale.total,
            payment=payment_label(sale.payment_method),
            products=products_summary(sale),
            cash_box_id=sale.cash_box_id,
        )
        for sale in sales
    ]


def per_seller(sales: Sequence[Sale], users: Iterable[User]) -> List[SellerReport]:
    """One report per seller with sales, largest amount first."""
    names = _names(users)
    grouped: Dict[int, List[Sale]] = {}
    for sale in sales:
        grouped.setdefault(sale.user_id, []).append(sale)
    reports = [
        SellerReport(uid, names.get(uid, UNKNOWN_USER), totals(group))
        for uid, group in grouped.items()
    ]
    reports.sort(key=lambda r: (-r.totals.amount, r.user_id))
    return reports


def cash_box_summary(cash_box: CashBox, sales: Iterable[Sale]) -> SalesTotals:
    """Totals of the sales recorded under one cash box."""
    return totals(s for s in sales if s.cash_box_id == cash_box.id)
