"""
Sale transaction processing: turns a cart into a stored sale.

The sale row and its lines are written in one store transaction. Receipts
are produced afterwards and handed to a subscriber through ``publish``;
whatever happens while printing, the committed sale stands.
"""

from __future__ import annotations

import asyncio
import inspect
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional, Tuple, Union

from ticketpos.db import crud
from ticketpos.db.models import PAYMENT_METHODS, CashBox, Sale, User
from ticketpos.sales.cart import Cart
from ticketpos.sales.errors import (
    PersistenceError,
    ReceiptError,
    SaleInProgressError,
    SaleValidationError,
)
from ticketpos.sales.receipts import ReceiptUnit, generate_receipts
from ticketpos.utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class SaleCompleted:
    """Emitted once a sale is committed."""

    sale: Sale
    seller: User
    receipts: Tuple[ReceiptUnit, ...]


@dataclass(frozen=True)
class SaleResult:
    sale: Sale
    receipts: Tuple[ReceiptUnit, ...]
    cart: Cart  # what the caller's cart becomes: always empty
    print_error: Optional[ReceiptError] = None


Publisher = Callable[[SaleCompleted], Union[None, Awaitable[None]]]


def validate_sale(
    cart: Cart,
    user: Optional[User],
    cash_box: Optional[CashBox],
    payment_method: str,
) -> None:
    """Raise SaleValidationError unless a sale may be recorded."""
    if user is None:
        raise SaleValidationError("No user is logged in.")
    if cash_box is None or not cash_box.is_open:
        raise SaleValidationError("Open the cash register before selling.")
    if cash_box.user_id != user.id:
        raise SaleValidationError("The cash register belongs to another user.")
    if cart.is_empty:
        raise SaleValidationError("The cart is empty.")
    if payment_method not in PAYMENT_METHODS:
        raise SaleValidationError(f"Unknown payment method: {payment_method}")


class SaleProcessor:
    def __init__(self, publish: Optional[Publisher] = None):
        self._publish = publish
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def process_sale(
        self,
        cart: Cart,
        user: Optional[User],
        cash_box: Optional[CashBox],
        payment_method: str,
    ) -> SaleResult:
        """
        Record ``cart`` as a sale made by ``user`` under ``cash_box``.

        Raises SaleValidationError before writing anything, PersistenceError
        if the store write fails (the cart is still valid, try again) and
        SaleInProgressError while a previous call has not finished.
        """
        if self._lock.locked():
            raise SaleInProgressError("A sale is already being processed.")

        async with self._lock:
            validate_sale(cart, user, cash_box, payment_method)

            total = cart.total()
            lines = cart.snapshot()
            try:
                sale = await crud.add_sale(
                    user_id=user.id,
                    lines=lines,
                    total=total,
                    payment_method=payment_method,
                    cash_box_id=cash_box.id,
                    created_at=datetime.now(),
                )
            except (sqlite3.Error, OSError) as e:
                _logger.error(f"Storing sale for user {user.id} failed: {e}")
                raise PersistenceError(f"The sale could not be saved: {e}") from e

            _logger.info(
                f"Sale {sale.id} recorded: {len(lines)} line(s), total {total}, "
                f"{payment_method}, cash box {cash_box.id}."
            )

            receipts = generate_receipts(lines, user.name, payment_method, total)
            print_error = await self._emit(SaleCompleted(sale, user, receipts))
            return SaleResult(sale, receipts, cart.clear(), print_error)

    async def _emit(self, event: SaleCompleted) -> Optional[ReceiptError]:
        if self._publish is None:
            return None
        try:
            result = self._publish(event)
            if inspect.isawaitable(result):
                await result
        except ReceiptError as e:
            return e
        except Exception as e:  # the sale is committed, report instead of raising
            _logger.exception(f"Receipt handling for sale {event.sale.id} failed")
            return ReceiptError(f"Receipts for sale {event.sale.id} failed: {e}")
        return None
