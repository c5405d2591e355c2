# src/ticketpos/db/crud.py
from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Sequence

from ticketpos.db import models
from ticketpos.db.database import connect
from ticketpos.sales.errors import UsernameTakenError, ValidationError
from ticketpos.utils import shortcuts as shortcut_codec
from ticketpos.utils.logger import get_logger
from ticketpos.utils.pure import iso_timestamp
from ticketpos.utils.security import hash_password, verify_password

_logger = get_logger(__name__)


def _to_dt(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _to_decimal(value) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e


def _positive_price(price) -> Decimal:
    price = _to_decimal(price)
    if not price.is_finite() or price <= 0:
        raise ValueError("Price must be greater than zero.")
    return price


def _row_to_user(row) -> models.User:
    return models.User(
        id=int(row["id"]),
        username=row["username"],
        name=row["name"],
        password_hash=row["password_hash"],
        role=row["role"],
        shortcuts=shortcut_codec.loads(row["shortcuts"]),
        profile_photo=row["profile_photo"],
        created_at=_to_dt(row["created_at"]),
        updated_at=_to_dt(row["updated_at"]),
    )


def _row_to_product(row) -> models.Product:
    return models.Product(
        id=int(row["id"]),
        name=row["name"],
        price=_to_decimal(row["price"]),
        image=row["image"],
        created_at=_to_dt(row["created_at"]),
        updated_at=_to_dt(row["updated_at"]),
    )


def _row_to_cash_box(row) -> models.CashBox:
    return models.CashBox(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        opened_at=_to_dt(row["opened_at"]),
        closed_at=_to_dt(row["closed_at"]),
        is_open=bool(row["is_open"]),
    )


USER_COLUMNS = (
    "id, username, name, password_hash, role, shortcuts, profile_photo, "
    "created_at, updated_at"
)
PRODUCT_COLUMNS = "id, name, price, image, created_at, updated_at"
CASH_BOX_COLUMNS = "id, user_id, opened_at, closed_at, is_open"


# ---------------------------
# Users & Auth
# ---------------------------


async def username_available(username: str, exclude_id: Optional[int] = None) -> bool:
    """True if no other user has the given username."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id FROM users WHERE username = ? LIMIT 1;", (username,)
        )
        row = await cur.fetchone()
        await cur.close()
    return row is None or (exclude_id is not None and int(row[0]) == exclude_id)


async def login(username: str, password: str) -> Optional[models.User]:
    """Return the User if the password matches the stored hash; otherwise None."""
    user = await get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def get_user(user_id: int) -> Optional[models.User]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = ?;", (user_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_user(row) if row else None


async def get_user_by_username(username: str) -> Optional[models.User]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE username = ?;",
            ((username or "").strip(),),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_user(row) if row else None


async def list_users() -> List[models.User]:
    async with connect() as conn:
        cur = await conn.execute(f"SELECT {USER_COLUMNS} FROM users ORDER BY id;")
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_user(row) for row in rows]


async def add_user(
    username: str,
    name: str,
    password: str,
    role: str = "seller",
    profile_photo: Optional[str] = None,
) -> models.User:
    """
    Create a user with a bcrypt-hashed password and return it.
    Raises UsernameTakenError if the username exists.
    """
    username = username.strip()
    if role not in models.ROLES:
        raise ValueError(f"Unknown role: {role}")
    if not username or not password:
        raise ValueError("Username and password are required.")
    now = iso_timestamp(datetime.now())
    async with connect() as conn:
        try:
            cur = await conn.execute(
                """
                INSERT INTO users(username, name, password_hash, role, shortcuts,
                                  profile_photo, created_at, updated_at)
                VALUES (?, ?, ?, ?, '{}', ?, ?, ?);
                """,
                (username, name, hash_password(password), role, profile_photo, now, now),
            )
        except sqlite3.IntegrityError as e:
            raise UsernameTakenError(username) from e
        user_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    _logger.info(f"User '{username}' created with role {role}.")
    return await get_user(user_id)


async def update_user(
    user_id: int,
    username: Optional[str] = None,
    name: Optional[str] = None,
    password: Optional[str] = None,
    role: Optional[str] = None,
    profile_photo: Optional[str] = None,
) -> Optional[models.User]:
    """
    Update only the provided fields; a new password is re-hashed.
    Returns the updated User, or None if it does not exist.
    """
    fields: Dict[str, object] = {}
    if username is not None:
        fields["username"] = username.strip()
    if name is not None:
        fields["name"] = name
    if password:
        fields["password_hash"] = hash_password(password)
    if role is not None:
        if role not in models.ROLES:
            raise ValueError(f"Unknown role: {role}")
        fields["role"] = role
    if profile_photo is not None:
        fields["profile_photo"] = profile_photo

    if fields:
        fields["updated_at"] = iso_timestamp(datetime.now())
        assignments = ", ".join(f"{col} = ?" for col in fields)
        async with connect() as conn:
            try:
                await conn.execute(
                    f"UPDATE users SET {assignments} WHERE id = ?;",
                    (*fields.values(), user_id),
                )
            except sqlite3.IntegrityError as e:
                raise UsernameTakenError(str(fields.get("username"))) from e
            await conn.commit()
    return await get_user(user_id)


async def set_user_shortcuts(user_id: int, shortcuts: Dict[str, int]) -> models.User:
    """Validate and store a user's key -> product id bindings."""
    products = await list_products()
    clean = shortcut_codec.validate(shortcuts, [p.id for p in products])
    async with connect() as conn:
        await conn.execute(
            "UPDATE users SET shortcuts = ?, updated_at = ? WHERE id = ?;",
            (shortcut_codec.dumps(clean), iso_timestamp(datetime.now()), user_id),
        )
        await conn.commit()
    return await get_user(user_id)


async def delete_user(user_id: int, acting_user_id: Optional[int] = None) -> bool:
    """Delete a user. Users cannot delete their own account."""
    if acting_user_id is not None and acting_user_id == user_id:
        raise ValidationError("You cannot delete your own account.")
    async with connect() as conn:
        cur = await conn.execute("DELETE FROM users WHERE id = ?;", (user_id,))
        deleted = cur.rowcount > 0
        await cur.close()
        await conn.commit()
    return deleted


# ---------------------------
# Products
# ---------------------------


async def list_products() -> List[models.Product]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products ORDER BY name COLLATE NOCASE, id;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def get_product(product_id: int) -> Optional[models.Product]:
    """Fetch a product by id."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = ?;", (product_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_product(row) if row else None


async def add_product(name: str, price, image: Optional[str] = None) -> models.Product:
    name = (name or "").strip()
    if not name:
        raise ValueError("Product name is required.")
    price = _positive_price(price)
    now = iso_timestamp(datetime.now())
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO products(name, price, image, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (name, str(price), image, now, now),
        )
        product_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return await get_product(product_id)


async def update_product(
    product_id: int,
    name: Optional[str] = None,
    price=None,
    image: Optional[str] = None,
) -> Optional[models.Product]:
    """
    Update only the provided fields. Stored sale lines keep their own copy of
    name and price, so past sales are unaffected.
    """
    fields: Dict[str, object] = {}
    if name is not None:
        if not name.strip():
            raise ValueError("Product name is required.")
        fields["name"] = name.strip()
    if price is not None:
        fields["price"] = str(_positive_price(price))
    if image is not None:
        fields["image"] = image
    if fields:
        fields["updated_at"] = iso_timestamp(datetime.now())
        assignments = ", ".join(f"{col} = ?" for col in fields)
        async with connect() as conn:
            await conn.execute(
                f"UPDATE products SET {assignments} WHERE id = ?;",
                (*fields.values(), product_id),
            )
            await conn.commit()
    return await get_product(product_id)


async def delete_product(product_id: int) -> bool:
    async with connect() as conn:
        cur = await conn.execute("DELETE FROM products WHERE id = ?;", (product_id,))
        deleted = cur.rowcount > 0
        await cur.close()
        await conn.commit()
    return deleted


# ---------------------------
# Cash boxes
# ---------------------------


async def add_cash_box(user_id: int, opened_at: datetime) -> models.CashBox:
    async with connect() as conn:
        cur = await conn.execute(
            "INSERT INTO cash_boxes(user_id, opened_at, closed_at, is_open) VALUES (?, ?, NULL, 1);",
            (user_id, iso_timestamp(opened_at)),
        )
        box_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return await get_cash_box(box_id)


async def get_cash_box(box_id: int) -> Optional[models.CashBox]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {CASH_BOX_COLUMNS} FROM cash_boxes WHERE id = ?;", (box_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_cash_box(row) if row else None


async def find_open_cash_box(user_id: int) -> Optional[models.CashBox]:
    """Most recently opened cash box of the user that is still open."""
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {CASH_BOX_COLUMNS}
            FROM cash_boxes
            WHERE user_id = ? AND is_open = 1
            ORDER BY opened_at DESC, id DESC
            LIMIT 1;
            """,
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_cash_box(row) if row else None


async def close_cash_box(box_id: int, closed_at: datetime) -> bool:
    """Close an open cash box. Returns False if it was missing or already closed."""
    async with connect() as conn:
        cur = await conn.execute(
            "UPDATE cash_boxes SET closed_at = ?, is_open = 0 WHERE id = ? AND is_open = 1;",
            (iso_timestamp(closed_at), box_id),
        )
        changed = cur.rowcount > 0
        await cur.close()
        await conn.commit()
    return changed


async def list_cash_boxes(user_id: Optional[int] = None) -> List[models.CashBox]:
    query = f"SELECT {CASH_BOX_COLUMNS} FROM cash_boxes"
    params: tuple = ()
    if user_id is not None:
        query += " WHERE user_id = ?"
        params = (user_id,)
    async with connect() as conn:
        cur = await conn.execute(query + " ORDER BY opened_at DESC, id DESC;", params)
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_cash_box(row) for row in rows]


# ---------------------------
# Sales
# ---------------------------


async def add_sale(
    user_id: int,
    lines: Sequence[models.SaleLine],
    total: Decimal,
    payment_method: str,
    cash_box_id: int,
    created_at: datetime,
) -> models.Sale:
    """
    Insert a sale and its snapshot lines in a single transaction.
    Either everything is written or nothing is.
    """
    async with connect() as conn:
        try:
            cur = await conn.execute(
                """
                INSERT INTO sales(user_id, total, payment_method, cash_box_id, created_at)
                VALUES (?, ?, ?, ?, ?);
                """,
                (user_id, str(total), payment_method, cash_box_id, iso_timestamp(created_at)),
            )
            sale_id = cur.lastrowid
            await cur.close()
            await conn.executemany(
                """
                INSERT INTO sale_lines(sale_id, line_no, product_id, product_name,
                                       unit_price, quantity)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                [
                    (
                        sale_id,
                        line_no,
                        line.product_id,
                        line.product_name,
                        str(line.unit_price),
                        line.quantity,
                    )
                    for line_no, line in enumerate(lines, start=1)
                ],
            )
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
    return models.Sale(
        id=sale_id,
        user_id=user_id,
        lines=tuple(lines),
        total=total,
        payment_method=payment_method,
        cash_box_id=cash_box_id,
        created_at=created_at,
    )


async def _load_lines(conn, sale_ids: Iterable[int]) -> Dict[int, List[models.SaleLine]]:
    sale_ids = list(sale_ids)
    lines: Dict[int, List[models.SaleLine]] = {sid: [] for sid in sale_ids}
    if not sale_ids:
        return lines
    marks = ", ".join("?" * len(sale_ids))
    cur = await conn.execute(
        f"""
        SELECT sale_id, product_id, product_name, unit_price, quantity
        FROM sale_lines
        WHERE sale_id IN ({marks})
        ORDER BY sale_id, line_no;
        """,
        tuple(sale_ids),
    )
    rows = await cur.fetchall()
    await cur.close()
    for row in rows:
        lines[int(row["sale_id"])].append(
            models.SaleLine(
                product_id=int(row["product_id"]),
                product_name=row["product_name"],
                unit_price=_to_decimal(row["unit_price"]),
                quantity=int(row["quantity"]),
            )
        )
    return lines


def _row_to_sale(row, lines: List[models.SaleLine]) -> models.Sale:
    return models.Sale(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        lines=tuple(lines),
        total=_to_decimal(row["total"]),
        payment_method=row["payment_method"],
        cash_box_id=int(row["cash_box_id"]),
        created_at=_to_dt(row["created_at"]),
    )


SALE_COLUMNS = "id, user_id, total, payment_method, cash_box_id, created_at"


async def get_sale(sale_id: int) -> Optional[models.Sale]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {SALE_COLUMNS} FROM sales WHERE id = ?;", (sale_id,)
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        lines = await _load_lines(conn, [sale_id])
    return _row_to_sale(row, lines[sale_id])


async def list_sales(
    user_id: Optional[int] = None,
    cash_box_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[models.Sale]:
    """
    Sales newest first, filtered by seller, cash box and/or a closed
    created_at range [start, end].
    """
    conds: List[str] = []
    params: List[object] = []
    if user_id is not None:
        conds.append("user_id = ?")
        params.append(user_id)
    if cash_box_id is not None:
        conds.append("cash_box_id = ?")
        params.append(cash_box_id)
    if start is not None:
        conds.append("created_at >= ?")
        params.append(iso_timestamp(start))
    if end is not None:
        conds.append("created_at <= ?")
        params.append(iso_timestamp(end))
    where = f"WHERE {' AND '.join(conds)}" if conds else ""

    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {SALE_COLUMNS} FROM sales {where} ORDER BY created_at DESC, id DESC;",
            tuple(params),
        )
        rows = await cur.fetchall()
        await cur.close()
        lines = await _load_lines(conn, [int(r["id"]) for r in rows])
    return [_row_to_sale(row, lines[int(row["id"])]) for row in rows]


# ---------------------------
# Settings
# ---------------------------


async def get_settings() -> models.AppSettings:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT dark_mode, company_logo, last_sync FROM settings WHERE id = 'settings';"
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return models.AppSettings()
    return models.AppSettings(
        dark_mode=bool(row["dark_mode"]),
        company_logo=row["company_logo"],
        last_sync=_to_dt(row["last_sync"]),
    )


async def update_settings(
    dark_mode: Optional[bool] = None,
    company_logo: Optional[str] = None,
    last_sync: Optional[datetime] = None,
) -> models.AppSettings:
    fields: Dict[str, object] = {}
    if dark_mode is not None:
        fields["dark_mode"] = int(dark_mode)
    if company_logo is not None:
        fields["company_logo"] = company_logo
    if last_sync is not None:
        fields["last_sync"] = iso_timestamp(last_sync)
    if fields:
        assignments = ", ".join(f"{col} = ?" for col in fields)
        async with connect() as conn:
            await conn.execute(
                f"UPDATE settings SET {assignments} WHERE id = 'settings';",
                tuple(fields.values()),
            )
            await conn.commit()
    return await get_settings()
