"""
Benchmark Configuration Models

Defines Pydantic models for the YAML run configuration:
- Per-backend connection settings and enabled flags
- Workload sizing shared by every backend
- Report output selection
"""

from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator


class OutputFormat(str, Enum):
    """Supported report sinks."""

    CONSOLE = "console"
    CSV = "csv"
    JSON = "json"
    PARQUET = "parquet"


class PostgresConfig(BaseModel):
    """Postgres connection settings."""

    enabled: bool = Field(False, description="Run the Postgres benchmarks")
    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    user: str = Field("postgres", description="Username")
    password: SecretStr = Field(SecretStr(""), description="Password")
    database: str = Field("dbcompare", description="Database name")
    sslmode: Optional[str] = Field(None, description="libpq sslmode")
    max_connections: int = Field(20, ge=1, description="Pool max size")
    command_timeout: float = Field(60.0, gt=0, description="Command timeout (s)")


class SnowflakeConfig(BaseModel):
    """Snowflake connection settings."""

    enabled: bool = Field(False, description="Run the Snowflake benchmarks")
    account: str = Field("", description="Account identifier")
    user: str = Field("", description="Username")
    password: SecretStr = Field(SecretStr(""), description="Password")
    warehouse: Optional[str] = Field(None, description="Warehouse")
    database: Optional[str] = Field(None, description="Database")
    schema_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("schema_name", "schema"),
        description="Schema",
    )
    role: Optional[str] = Field(None, description="Role")
    pool_size: int = Field(5, ge=1, description="Base pool size")
    max_overflow: int = Field(10, ge=0, description="Extra connections allowed")


class DatabasesConfig(BaseModel):
    """All configurable backends, in run order."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    snowflake: SnowflakeConfig = Field(default_factory=SnowflakeConfig)


class WorkloadConfig(BaseModel):
    """Sizing shared by every backend's operation catalog."""

    record_count: int = Field(100_000, ge=0, description="Rows for bulk insert")
    batch_size: int = Field(1_000, ge=1, description="Rows per insert transaction")
    random_reads: int = Field(10_000, ge=0, description="Point lookups")
    updates: int = Field(10_000, ge=0, description="Single-row updates")
    transactions: int = Field(1_000, ge=0, description="Multi-step transactions")
    concurrent_workers: int = Field(
        10,
        ge=1,
        validation_alias=AliasChoices("concurrent_workers", "concurrent_goroutines"),
        description="Workers in the concurrent stress phases",
    )
    indexed_queries: int = Field(1_000, ge=0, description="Indexed filter queries")
    reads_per_worker: int = Field(1_000, ge=0, description="Reads per stress worker")
    writes_per_worker: int = Field(100, ge=0, description="Writes per stress worker")
    seed: Optional[int] = Field(None, description="Record generator seed")

    @field_validator("record_count", "batch_size", mode="before")
    @classmethod
    def zero_means_default(cls, v, info):
        # An explicit 0 in the YAML means "use the default".
        if v == 0 or v is None:
            return cls.model_fields[info.field_name].default
        return v


class OutputConfig(BaseModel):
    """Report output selection."""

    format: List[OutputFormat] = Field(
        default_factory=lambda: [OutputFormat.CONSOLE], description="Report sinks"
    )
    directory: str = Field("./results", description="Directory for report files")
    filename_prefix: str = Field("dbcompare", description="Report file prefix")

    @field_validator("directory", "filename_prefix", mode="before")
    @classmethod
    def empty_means_default(cls, v, info):
        if not v:
            return cls.model_fields[info.field_name].default
        return v


class BenchmarkConfig(BaseModel):
    """Complete run configuration."""

    databases: DatabasesConfig = Field(default_factory=DatabasesConfig)
    benchmark: WorkloadConfig = Field(default_factory=WorkloadConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def enabled_backends(self) -> List[str]:
        """Keys of enabled backends, in configuration order."""
        return [
            name
            for name in DatabasesConfig.model_fields
            if getattr(self.databases, name).enabled
        ]
