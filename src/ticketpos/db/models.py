# provide dataclass models

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Literal, Optional, Tuple

Role = Literal["admin", "seller"]
PaymentMethod = Literal["cash", "transfer"]

PAYMENT_METHODS: Tuple[str, ...] = ("cash", "transfer")
ROLES: Tuple[str, ...] = ("admin", "seller")


@dataclass(frozen=True)
class User:
    id: int
    username: str
    name: str
    password_hash: str
    role: Role
    shortcuts: Dict[str, int] = field(default_factory=dict)  # key -> product id
    profile_photo: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Decimal
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SaleLine:
    """Product name and price as they were when the sale was made."""

    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Sale:
    id: int
    user_id: int
    lines: Tuple[SaleLine, ...]
    total: Decimal
    payment_method: PaymentMethod
    cash_box_id: int
    created_at: datetime


@dataclass(frozen=True)
class CashBox:
    id: int
    user_id: int
    opened_at: datetime
    closed_at: Optional[datetime] = None
    is_open: bool = True


@dataclass(frozen=True)
class AppSettings:
    dark_mode: bool = False
    company_logo: Optional[str] = None
    last_sync: Optional[datetime] = None
