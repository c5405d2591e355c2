from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from ticketpos.db.models import CashBox, User
from ticketpos.sales.cart import Cart


@dataclass(frozen=True)
class AppState:
    """
    Application state shared by screens.

    Immutable: every transition returns a new AppState, the app swaps its
    reference and screens re-read it.

    Fields:
      - user: logged-in user, None before login
      - cart: pending sale, never persisted
      - cash_box: the user's open cash box, None while the register is closed
      - dark_mode, is_online, last_sync: UI and connectivity flags
    """

    user: Optional[User] = None
    cart: Cart = field(default_factory=Cart)
    cash_box: Optional[CashBox] = None
    dark_mode: bool = False
    is_online: bool = True
    last_sync: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def can_sell(self) -> bool:
        return self.user is not None and self.cash_box is not None and self.cash_box.is_open

    def logged_in(self, user: User, cash_box: Optional[CashBox] = None) -> "AppState":
        return replace(self, user=user, cart=Cart(), cash_box=cash_box)

    def logged_out(self) -> "AppState":
        return replace(self, user=None, cart=Cart(), cash_box=None)

    def with_user(self, user: User) -> "AppState":
        """Refresh the stored user record (profile or shortcut edits)."""
        return replace(self, user=user)

    def with_cart(self, cart: Cart) -> "AppState":
        return replace(self, cart=cart)

    def register_opened(self, cash_box: CashBox) -> "AppState":
        return replace(self, cash_box=cash_box)

    def register_closed(self) -> "AppState":
        return replace(self, cash_box=None)

    def toggled_dark_mode(self) -> "AppState":
        return replace(self, dark_mode=not self.dark_mode)

    def with_online(self, is_online: bool) -> "AppState":
        return replace(self, is_online=is_online)

    def synced(self, when: Optional[datetime] = None) -> "AppState":
        return replace(self, last_sync=when or datetime.now())
