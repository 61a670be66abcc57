"""
Postgres Table Manager

Owns the benchmark table DDL on Postgres: a SERIAL identity plus secondary
indexes on every filterable column.
"""

from __future__ import annotations

import logging
from typing import Any

from dbcompare.connectors.postgres_pool import PostgresConnectionPool
from dbcompare.core.table_managers.base import BENCHMARK_TABLE, KeyRange, TableManager

logger = logging.getLogger(__name__)

INDEXED_COLUMNS = ("email", "age", "balance", "created_at", "is_active")


class PostgresTableManager(TableManager):
    """Manages the benchmark table on Postgres."""

    def __init__(self, pool: PostgresConnectionPool, table_name: str = BENCHMARK_TABLE):
        super().__init__(table_name)
        self.pool = pool

    def create_statements(self) -> list[str]:
        statements = [
            f"""
            CREATE TABLE {self.table_name} (
                id SERIAL PRIMARY KEY,
                name VARCHAR(100) NOT NULL,
                email VARCHAR(100) NOT NULL,
                age INTEGER NOT NULL,
                balance DECIMAL(10,2) NOT NULL,
                created_at TIMESTAMPTZ NOT NULL,
                description TEXT,
                is_active BOOLEAN NOT NULL DEFAULT true
            )
            """
        ]
        for column in INDEXED_COLUMNS:
            statements.append(
                f"CREATE INDEX idx_{self.table_name}_{column} "
                f"ON {self.table_name}({column})"
            )
        return statements

    async def drop_table(self) -> None:
        await self.pool.execute_query(f"DROP TABLE IF EXISTS {self.table_name} CASCADE")

    async def create_table(self) -> None:
        for statement in self.create_statements():
            await self.pool.execute_query(statement)

    async def get_key_range(self) -> KeyRange:
        row = await self.pool.fetch_one(
            f"SELECT COALESCE(MIN(id), 0) AS min_id, COALESCE(MAX(id), 0) AS max_id, "
            f"COUNT(*) AS row_count FROM {self.table_name}"
        )
        if row is None:
            return KeyRange(0, 0, 0)
        return KeyRange(int(row["min_id"]), int(row["max_id"]), int(row["row_count"]))

    async def get_table_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {}
        stats["row_count"] = int(
            await self.pool.fetch_val(f"SELECT COUNT(*) FROM {self.table_name}") or 0
        )
        stats["table_size"] = await self.pool.fetch_val(
            "SELECT pg_size_pretty(pg_total_relation_size($1::regclass))",
            self.table_name,
        )
        rows = await self.pool.fetch_all(
            """
            SELECT indexrelname AS name, pg_size_pretty(pg_relation_size(indexrelid)) AS size
            FROM pg_stat_user_indexes
            WHERE relname = $1
            """,
            self.table_name,
        )
        stats["indexes"] = {row["name"]: row["size"] for row in rows}
        return stats
