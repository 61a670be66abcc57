"""
Snowflake connection pool.

snowflake-connector-python is blocking, so connects and queries run on a
thread executor sized to the pool. The pool holds at most
pool_size + max_overflow connections; a checkout beyond that waits for a
connection to be returned, and raises PoolExhaustedError only if none is
returned within checkout_timeout.
"""

import asyncio
import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

import snowflake.connector
from snowflake.connector import SnowflakeConnection
from snowflake.connector.errors import OperationalError

from dbcompare.config import settings
from dbcompare.core.errors import PoolExhaustedError
from dbcompare.models.benchmark_config import SnowflakeConfig

logger = logging.getLogger(__name__)

Statement = tuple[str, Optional[Sequence[Any]]]

QUERY_TAG = "dbcompare_benchmark"


class SnowflakeConnectionPool:
    """Bounded pool of Snowflake connections."""

    def __init__(
        self,
        account: str,
        user: str,
        password: Optional[str] = None,
        warehouse: Optional[str] = None,
        database: Optional[str] = None,
        schema: Optional[str] = None,
        role: Optional[str] = None,
        pool_size: int = 5,
        max_overflow: int = 10,
        recycle: int = 3600,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        *,
        executor: Executor | None = None,
        max_parallel_creates: int = 8,
        checkout_timeout: Optional[float] = None,
    ):
        """
        Args:
            account: Snowflake account identifier
            user: Username
            password: Password (omitted from connect() when empty)
            warehouse / database / schema / role: Session defaults
            pool_size: Connections opened by initialize()
            max_overflow: Extra connections opened on demand
            recycle: Close connections older than this many seconds
            max_retries: Connect attempts on OperationalError
            retry_delay: Base delay between attempts (linear backoff)
            executor: Executor for blocking calls; owned and shut down if omitted
            max_parallel_creates: Bound on concurrent connect() calls
            checkout_timeout: Seconds to wait for a free connection (None waits forever)
        """
        self.account = account
        self.user = user
        self.password = password
        self.session_defaults = {
            "warehouse": warehouse,
            "database": database,
            "schema": schema,
            "role": role,
        }
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.recycle = recycle
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.checkout_timeout = checkout_timeout

        self._idle: List[SnowflakeConnection] = []
        self._opened_at: Dict[int, float] = {}
        # Checked-out connections plus connects in flight.
        self._reserved = 0
        self._checkout_slots = asyncio.Semaphore(self.max_connections())
        self._lock = asyncio.Lock()
        self._connect_slots = asyncio.Semaphore(max(1, max_parallel_creates))
        self._initialized = False

        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=self.max_connections(), thread_name_prefix="snowflake-bench"
        )

    @classmethod
    def from_config(cls, cfg: SnowflakeConfig) -> "SnowflakeConnectionPool":
        return cls(
            account=cfg.account,
            user=cfg.user,
            password=cfg.password.get_secret_value() or None,
            warehouse=cfg.warehouse,
            database=cfg.database,
            schema=cfg.schema_name,
            role=cfg.role,
            pool_size=cfg.pool_size,
            max_overflow=cfg.max_overflow,
            recycle=settings.SNOWFLAKE_POOL_RECYCLE,
            max_parallel_creates=settings.SNOWFLAKE_POOL_MAX_PARALLEL_CREATES,
            checkout_timeout=settings.SNOWFLAKE_POOL_CHECKOUT_TIMEOUT,
        )

    def max_connections(self) -> int:
        return self.pool_size + self.max_overflow

    def _run_in_executor(self, func, *args):
        return asyncio.get_running_loop().run_in_executor(self._executor, func, *args)

    def _get_connection_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "account": self.account,
            "user": self.user,
            "paramstyle": "qmark",
            "login_timeout": settings.SNOWFLAKE_CONNECT_LOGIN_TIMEOUT,
            "network_timeout": settings.SNOWFLAKE_CONNECT_NETWORK_TIMEOUT,
            "socket_timeout": settings.SNOWFLAKE_CONNECT_SOCKET_TIMEOUT,
            "session_parameters": {"QUERY_TAG": QUERY_TAG},
        }
        if self.password:
            params["password"] = self.password
        params.update({k: v for k, v in self.session_defaults.items() if v})
        return params

    async def initialize(self) -> None:
        """Open pool_size connections. Fails only if none could be opened."""
        async with self._lock:
            if self._initialized:
                return
            logger.info(f"Opening {self.pool_size} Snowflake connections to {self.account}")
            opened = await asyncio.gather(
                *(self._create_connection() for _ in range(self.pool_size)),
                return_exceptions=True,
            )
            errors = [c for c in opened if isinstance(c, BaseException)]
            self._idle.extend(c for c in opened if not isinstance(c, BaseException))
            if errors and not self._idle:
                raise errors[0]
            for error in errors:
                logger.error(f"Failed to open Snowflake connection: {error}")
            self._initialized = True

    async def _create_connection(self) -> SnowflakeConnection:
        params = self._get_connection_params()
        async with self._connect_slots:
            for attempt in range(1, self.max_retries + 1):
                try:
                    conn = await self._run_in_executor(
                        lambda: snowflake.connector.connect(**params)
                    )
                except OperationalError as e:
                    if attempt == self.max_retries:
                        raise
                    logger.warning(
                        f"Snowflake connect attempt {attempt} failed, retrying: {e}"
                    )
                    await asyncio.sleep(self.retry_delay * attempt)
                else:
                    self._opened_at[id(conn)] = time.monotonic()
                    return conn
        raise RuntimeError("unreachable")

    def _usable(self, conn: SnowflakeConnection) -> bool:
        if conn.is_closed():
            return False
        opened = self._opened_at.get(id(conn))
        return opened is None or time.monotonic() - opened <= self.recycle

    def _discard(self, conn: SnowflakeConnection) -> None:
        self._opened_at.pop(id(conn), None)
        try:
            conn.close()
        except Exception as e:
            logger.debug(f"Error closing Snowflake connection: {e}")

    @asynccontextmanager
    async def get_connection(self):
        """
        Borrow a connection for the duration of the block.

        When the pool is full the caller waits until another block returns
        its connection.

        Raises:
            PoolExhaustedError: No connection was returned within checkout_timeout
        """
        if not self._initialized:
            await self.initialize()

        try:
            await asyncio.wait_for(
                self._checkout_slots.acquire(), timeout=self.checkout_timeout
            )
        except asyncio.TimeoutError:
            raise PoolExhaustedError(
                f"No Snowflake connection returned within {self.checkout_timeout}s "
                f"(max: {self.max_connections()})"
            ) from None

        conn: Optional[SnowflakeConnection] = None
        try:
            async with self._lock:
                self._reserved += 1
                while self._idle and conn is None:
                    candidate = self._idle.pop()
                    if self._usable(candidate):
                        conn = candidate
                    else:
                        self._discard(candidate)
            if conn is None:
                conn = await self._create_connection()
            yield conn
        finally:
            async with self._lock:
                self._reserved -= 1
                if conn is not None:
                    self._idle.append(conn)
            self._checkout_slots.release()

    @staticmethod
    def _execute_sync(
        conn: SnowflakeConnection,
        query: str,
        params: Optional[Sequence[Any]],
        fetch: bool,
    ) -> List[tuple]:
        cursor = conn.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall() if fetch else []
        finally:
            cursor.close()

    @staticmethod
    def _execute_many_sync(
        conn: SnowflakeConnection, query: str, rows: Sequence[Sequence[Any]]
    ) -> int:
        cursor = conn.cursor()
        try:
            cursor.executemany(query, rows)
            return len(rows) if cursor.rowcount is None else cursor.rowcount
        finally:
            cursor.close()

    @staticmethod
    def _transaction_sync(
        conn: SnowflakeConnection, statements: Sequence[Statement]
    ) -> None:
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN")
            try:
                for query, params in statements:
                    cursor.execute(query, params)
            except Exception:
                conn.rollback()
                raise
            conn.commit()
        finally:
            cursor.close()

    async def execute_query(
        self,
        query: str,
        params: Optional[Sequence[Any]] = None,
        *,
        fetch: bool = True,
    ) -> List[tuple]:
        """Run one statement with `?` placeholders; rows unless fetch is False."""
        async with self.get_connection() as conn:
            return await self._run_in_executor(
                self._execute_sync, conn, query, params, fetch
            )

    async def fetch_one(
        self, query: str, params: Optional[Sequence[Any]] = None
    ) -> Optional[tuple]:
        rows = await self.execute_query(query, params)
        return rows[0] if rows else None

    async def execute_many(self, query: str, rows: Sequence[Sequence[Any]]) -> int:
        """Run one statement per parameter row; returns the affected row count."""
        async with self.get_connection() as conn:
            return await self._run_in_executor(
                self._execute_many_sync, conn, query, rows
            )

    async def execute_transaction(self, statements: Sequence[Statement]) -> None:
        """Run statements in one explicit transaction, rolled back on error."""
        async with self.get_connection() as conn:
            await self._run_in_executor(self._transaction_sync, conn, statements)

    def get_pool_stats(self) -> Dict[str, Any]:
        return {
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "available": len(self._idle),
            "in_use": self._reserved,
            "initialized": self._initialized,
        }

    async def close_all(self) -> None:
        async with self._lock:
            for conn in self._idle:
                self._discard(conn)
            self._idle.clear()
            self._initialized = False
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        logger.info("Snowflake connections closed")
