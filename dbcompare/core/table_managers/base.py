"""
Base Table Manager

Abstract interface for the benchmark table's lifecycle on each backend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict
import logging

from dbcompare.core.errors import EmptyDatasetError

logger = logging.getLogger(__name__)

BENCHMARK_TABLE = "benchmark_records"

RECORD_COLUMNS = (
    "name",
    "email",
    "age",
    "balance",
    "created_at",
    "description",
    "is_active",
)


@dataclass(frozen=True)
class KeyRange:
    """Identity range currently present in the benchmark table."""

    min_id: int
    max_id: int
    row_count: int

    @property
    def is_empty(self) -> bool:
        return self.row_count <= 0

    @property
    def span(self) -> int:
        return self.max_id - self.min_id + 1

    def require_rows(self, operation: str) -> "KeyRange":
        if self.is_empty:
            raise EmptyDatasetError(operation)
        return self

    def random_id(self, rng) -> int:
        """Pick an id inside the range using `rng` (a random.Random)."""
        return self.min_id + rng.randrange(self.span)


class TableManager(ABC):
    """
    Abstract base class for managing the benchmark table.

    Each backend implements this interface so adapters can reset the table,
    find the populated key range and report table statistics.
    """

    def __init__(self, table_name: str = BENCHMARK_TABLE):
        self.table_name = table_name
        self._stats: Dict[str, Any] = {}

    @abstractmethod
    async def drop_table(self) -> None:
        """Drop the table; succeeds when it does not exist."""

    @abstractmethod
    async def create_table(self) -> None:
        """Create the table and its indexes."""

    @abstractmethod
    async def get_key_range(self) -> KeyRange:
        """Current id range and row count."""

    @abstractmethod
    async def get_table_stats(self) -> Dict[str, Any]:
        """Table statistics (row count, size, ...)."""

    async def reset(self) -> None:
        """Drop and recreate the table, leaving it empty."""
        logger.info(f"Resetting table: {self.table_name}")
        await self.drop_table()
        await self.create_table()

    async def collect_stats(self) -> Dict[str, Any]:
        """Fetch statistics, recording a failure instead of raising."""
        try:
            self._stats = await self.get_table_stats()
        except Exception as e:
            logger.warning(f"Could not collect stats for {self.table_name}: {e}")
            self._stats = {"error": str(e)}
        return self._stats

    @property
    def stats(self) -> Dict[str, Any]:
        return dict(self._stats)
