"""
Snowflake Table Manager

Standard Snowflake table with an AUTOINCREMENT identity. Standard tables have
no secondary indexes, so only the table itself is created.
"""

from __future__ import annotations

import logging
from typing import Any

from dbcompare.connectors.snowflake_pool import SnowflakeConnectionPool
from dbcompare.core.table_managers.base import BENCHMARK_TABLE, KeyRange, TableManager

logger = logging.getLogger(__name__)


class SnowflakeTableManager(TableManager):
    """Manages the benchmark table on Snowflake."""

    def __init__(self, pool: SnowflakeConnectionPool, table_name: str = BENCHMARK_TABLE):
        super().__init__(table_name)
        self.pool = pool

    async def drop_table(self) -> None:
        await self.pool.execute_query(
            f"DROP TABLE IF EXISTS {self.table_name}", fetch=False
        )

    async def create_table(self) -> None:
        await self.pool.execute_query(
            f"""
            CREATE TABLE {self.table_name} (
                id NUMBER AUTOINCREMENT START 1 INCREMENT 1 PRIMARY KEY,
                name VARCHAR(100) NOT NULL,
                email VARCHAR(100) NOT NULL,
                age NUMBER NOT NULL,
                balance NUMBER(10,2) NOT NULL,
                created_at TIMESTAMP_TZ NOT NULL,
                description VARCHAR,
                is_active BOOLEAN NOT NULL DEFAULT TRUE
            )
            """,
            fetch=False,
        )

    async def get_key_range(self) -> KeyRange:
        row = await self.pool.fetch_one(
            f"SELECT COALESCE(MIN(id), 0), COALESCE(MAX(id), 0), COUNT(*) "
            f"FROM {self.table_name}"
        )
        if row is None:
            return KeyRange(0, 0, 0)
        return KeyRange(int(row[0]), int(row[1]), int(row[2]))

    async def get_table_stats(self) -> dict[str, Any]:
        row = await self.pool.fetch_one(
            "SELECT ROW_COUNT, BYTES FROM INFORMATION_SCHEMA.TABLES "
            "WHERE TABLE_SCHEMA = CURRENT_SCHEMA() AND TABLE_NAME = ?",
            [self.table_name.upper()],
        )
        if row is None:
            return {"row_count": 0, "bytes": 0}
        return {"row_count": int(row[0] or 0), "bytes": int(row[1] or 0)}
