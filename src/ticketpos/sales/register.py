"""
Cash register (cash box) lifecycle.

A cash box is created open and closed exactly once; a closed box is never
reopened, a new one is opened instead. Each user has at most one open box:
opening while one is open hands back the existing box.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ticketpos.db import crud
from ticketpos.db.models import CashBox
from ticketpos.sales.errors import RegisterError
from ticketpos.utils.logger import get_logger

_logger = get_logger(__name__)


async def current_register(user_id: int) -> Optional[CashBox]:
    """The user's open cash box, if any."""
    return await crud.find_open_cash_box(user_id)


async def open_register(user_id: int, now: Optional[datetime] = None) -> CashBox:
    existing = await crud.find_open_cash_box(user_id)
    if existing is not None:
        _logger.warning(
            f"User {user_id} already has cash box {existing.id} open, resuming it."
        )
        return existing

    box = await crud.add_cash_box(user_id, now or datetime.now())
    _logger.info(f"Cash box {box.id} opened by user {user_id}.")
    return box


async def close_register(cash_box: CashBox, now: Optional[datetime] = None) -> CashBox:
    """
    Close ``cash_box`` and return the stored record.

    Closing a box that is already closed changes nothing.
    """
    stored = await crud.get_cash_box(cash_box.id)
    if stored is None:
        raise RegisterError(f"Cash box {cash_box.id} does not exist.")
    if not stored.is_open:
        return stored

    await crud.close_cash_box(stored.id, now or datetime.now())
    closed = await crud.get_cash_box(stored.id)
    _logger.info(f"Cash box {closed.id} closed by user {closed.user_id}.")
    return closed
