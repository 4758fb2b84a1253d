"""PostgreSQL connection pool for the gamification tables"""
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from edubot.config import DATABASE_URL

logger = logging.getLogger(__name__)

# Connection of the transaction() block running in the current task, if any
_transaction_conn: ContextVar[Optional[psycopg.AsyncConnection]] = ContextVar("edubot_transaction_conn", default=None)


class Database:
    """
    Owns the process-wide AsyncConnectionPool

    The pool is only opened when STORAGE_BACKEND=postgres; in-memory runs
    never touch it, which the health check reports as not_configured.
    """

    def __init__(self, connection_string: str = DATABASE_URL, min_size: int = 2, max_size: int = 10):
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def init_pool(self) -> None:
        logger.info(f"Opening database pool (min={self.min_size}, max={self.max_size})")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        if self._pool:
            logger.info("Closing database pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Pooled connection returning rows as dicts

        Inside transaction() this is the transaction's own connection.
        """
        active = _transaction_conn.get()
        if active is not None:
            yield active
            return

        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Run every query in the block on one connection, committed once at the end

        Any exception rolls the whole block back. A nested transaction() joins
        the outer one.
        """
        active = _transaction_conn.get()
        if active is not None:
            yield active
            return

        async with self.connection() as conn:
            token = _transaction_conn.set(conn)
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                _transaction_conn.reset(token)

    async def commit(self, conn: psycopg.AsyncConnection) -> None:
        """Commit a single statement's work unless transaction() owns the connection"""
        if _transaction_conn.get() is not conn:
            await conn.commit()

    async def ping(self) -> bool:
        """Round-trip a trivial query; False on any driver error"""
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1")
                    await cur.fetchone()
            return True
        except (psycopg.Error, RuntimeError) as e:
            logger.error(f"Database ping failed: {e}")
            return False


# Global database instance
db = Database()
