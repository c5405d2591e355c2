# manages connection to db, provides helper methods internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from datetime import datetime
from sqlite3 import Row

import aiosqlite

from ticketpos.utils import config
from ticketpos.utils.logger import get_logger
from ticketpos.utils.pure import iso_timestamp
from ticketpos.utils.security import hash_password

_logger = get_logger(__name__)

DB_PATH = config.DB_PATH
SCHEMA_SCRIPT = os.path.join(os.path.dirname(__file__), "schema.sql")

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

_initialized = False
_init_lock = asyncio.Lock()


async def _seed_defaults(conn: aiosqlite.Connection) -> None:
    now = iso_timestamp(datetime.now())

    cur = await conn.execute("SELECT COUNT(*) FROM users;")
    (user_count,) = await cur.fetchone()
    await cur.close()
    if user_count == 0:
        await conn.execute(
            """
            INSERT INTO users(username, name, password_hash, role, shortcuts,
                              created_at, updated_at)
            VALUES (?, ?, ?, 'admin', '{}', ?, ?);
            """,
            (
                DEFAULT_ADMIN_USERNAME,
                "Administrator",
                hash_password(DEFAULT_ADMIN_PASSWORD),
                now,
                now,
            ),
        )
        _logger.info("Default administrator account created.")

    await conn.execute(
        "INSERT OR IGNORE INTO settings(id, dark_mode, last_sync) VALUES ('settings', 0, ?);",
        (now,),
    )


async def _init_db(conn: aiosqlite.Connection) -> None:
    _logger.info(f"Initializing database with script {SCHEMA_SCRIPT}...")
    with open(SCHEMA_SCRIPT, "r") as f:
        await conn.executescript(f.read())
    await _seed_defaults(conn)
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Creates the schema and default rows on first use.
    """
    global _initialized
    directory = os.path.dirname(DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                if not await _table_exists(conn, "sales"):
                    await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
