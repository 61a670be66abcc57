"""
Postgres connection pool.

Thin wrapper over an asyncpg pool: lazy creation with retries on transient
startup errors, a connection context manager, and the query helpers the
benchmark and table manager use.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import asyncpg
from asyncpg import Pool
from asyncpg.exceptions import CannotConnectNowError, TooManyConnectionsError

from dbcompare.config import settings
from dbcompare.models.benchmark_config import PostgresConfig

logger = logging.getLogger(__name__)

# Server still starting, or out of slots: worth another attempt.
TRANSIENT_ERRORS = (CannotConnectNowError, TooManyConnectionsError)


class PostgresConnectionPool:
    """asyncpg pool sized for one benchmark run."""

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        min_size: int = 2,
        max_size: int = 20,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        command_timeout: float = 60.0,
        ssl: Optional[str] = None,
    ):
        self.dsn_label = f"{user}@{host}:{port}/{database}"
        self._connect_kwargs: Dict[str, Any] = dict(
            host=host,
            port=port,
            database=database,
            user=user,
            password=password,
            command_timeout=command_timeout,
            ssl=ssl,
        )
        self.max_size = max_size
        self.min_size = min(min_size, max_size)
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

        self._pool: Optional[Pool] = None

    @classmethod
    def from_config(cls, cfg: PostgresConfig) -> "PostgresConnectionPool":
        return cls(
            host=cfg.host,
            port=cfg.port,
            database=cfg.database,
            user=cfg.user,
            password=cfg.password.get_secret_value(),
            min_size=settings.POSTGRES_POOL_MIN_SIZE,
            max_size=cfg.max_connections,
            max_retries=settings.POSTGRES_POOL_MAX_RETRIES,
            command_timeout=cfg.command_timeout,
            ssl=cfg.sslmode,
        )

    @property
    def initialized(self) -> bool:
        return self._pool is not None

    async def initialize(self) -> None:
        """Create the pool; a no-op once created."""
        if self._pool is not None:
            return

        logger.info(
            f"Connecting to Postgres {self.dsn_label} "
            f"(pool {self.min_size}-{self.max_size})"
        )
        for attempt in range(1, self.max_retries + 1):
            try:
                self._pool = await asyncpg.create_pool(
                    min_size=self.min_size,
                    max_size=self.max_size,
                    **self._connect_kwargs,
                )
                return
            except TRANSIENT_ERRORS as e:
                if attempt == self.max_retries:
                    logger.error(
                        f"Postgres unavailable after {self.max_retries} attempts: {e}"
                    )
                    raise
                logger.warning(f"Postgres connect attempt {attempt} failed, retrying: {e}")
                await asyncio.sleep(self.retry_delay * attempt)

    @asynccontextmanager
    async def get_connection(self):
        """
        Borrow a connection for the duration of the block.

        Usage:
            async with pool.get_connection() as conn:
                await conn.fetch("SELECT 1")
        """
        await self.initialize()
        async with self._pool.acquire() as conn:
            yield conn

    async def execute_query(self, query: str, *args) -> str:
        """Run a statement; returns the command status (e.g. "UPDATE 1")."""
        async with self.get_connection() as conn:
            return await conn.execute(query, *args)

    async def fetch_all(self, query: str, *args) -> List[asyncpg.Record]:
        async with self.get_connection() as conn:
            return await conn.fetch(query, *args)

    async def fetch_one(self, query: str, *args) -> Optional[asyncpg.Record]:
        async with self.get_connection() as conn:
            return await conn.fetchrow(query, *args)

    async def fetch_val(self, query: str, *args) -> Any:
        async with self.get_connection() as conn:
            return await conn.fetchval(query, *args)

    def get_pool_stats(self) -> Dict[str, Any]:
        if self._pool is None:
            return {"initialized": False, "size": 0, "free": 0}
        size = self._pool.get_size()
        free = self._pool.get_idle_size()
        return {
            "initialized": True,
            "min_size": self.min_size,
            "max_size": self.max_size,
            "size": size,
            "free": free,
            "in_use": size - free,
        }

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info(f"Postgres pool for {self.dsn_label} closed")
