# manages connection to db, provides helper methods internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import Awaitable, Optional, TypeVar

import aiosqlite

from storefront import config
from storefront.errors import InternalError
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

DB_PATH = config.DB_PATH
_SQL_DIR = os.path.dirname(os.path.abspath(__file__))
DB_INIT_SCRIPTS = [
    os.path.join(_SQL_DIR, "tables.sql"),
    os.path.join(_SQL_DIR, "seed.sql"),
]

_initialized = False
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    for script in DB_INIT_SCRIPTS:
        if not os.path.exists(script) or os.path.getsize(script) == 0:
            continue
        _logger.info(f"Initializing database with script {os.path.basename(script)}...")
        with open(script, "r") as f:
            await conn.executescript(f.read())
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

    Ensures the database is initialized (tables and seed catalog) on first use.
    """
    global _initialized
    parent = os.path.dirname(DB_PATH)
    if parent:
        os.makedirs(parent, exist_ok=True)
    conn = await aiosqlite.connect(DB_PATH, timeout=config.STORE_TIMEOUT)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                exists = await _table_exists(conn, "users")
                if not exists:
                    _logger.info("Initializing database...")
                    await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()


@asynccontextmanager
async def transaction() -> aiosqlite.Connection:
    """Connection holding a write transaction.

    Commits when the block exits normally, rolls back on any exception
    (cancellation included) and re-raises.
    """
    async with connect() as conn:
        await conn.execute("BEGIN IMMEDIATE;")
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            raise
        else:
            await conn.commit()


async def guarded(call: Awaitable[T], timeout: Optional[float] = None) -> T:
    """
    Await a store call with the configured timeout.

    Timeouts and driver errors surface as InternalError with the original
    message; errors already in the shop taxonomy pass through untouched.
    """
    try:
        return await asyncio.wait_for(call, timeout or config.STORE_TIMEOUT)
    except asyncio.TimeoutError as e:
        raise InternalError("Store call timed out") from e
    except aiosqlite.Error as e:
        raise InternalError(str(e)) from e
