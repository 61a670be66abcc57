"""
Application settings and run configuration loading.

Process-level settings (logging, connector timeouts, credential fallbacks)
come from the environment / .env via pydantic-settings. The benchmark run
itself is described by a YAML file loaded into BenchmarkConfig.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbcompare.core.errors import ConfigurationError
from dbcompare.models.benchmark_config import BenchmarkConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Environment-driven settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None

    # Default run configuration path (overridden by --config)
    DBCOMPARE_CONFIG: str = "configs/config.yml"

    # Credential fallbacks when the YAML leaves passwords empty
    POSTGRES_PASSWORD: str = ""
    SNOWFLAKE_PASSWORD: str = ""

    # Postgres pool
    POSTGRES_POOL_MIN_SIZE: int = 2
    POSTGRES_POOL_MAX_RETRIES: int = 3

    # Snowflake connector timeouts (seconds)
    SNOWFLAKE_CONNECT_LOGIN_TIMEOUT: int = 30
    SNOWFLAKE_CONNECT_NETWORK_TIMEOUT: int = 60
    SNOWFLAKE_CONNECT_SOCKET_TIMEOUT: int = 60
    SNOWFLAKE_POOL_MAX_PARALLEL_CREATES: int = 8
    SNOWFLAKE_POOL_RECYCLE: int = 3600
    SNOWFLAKE_POOL_CHECKOUT_TIMEOUT: float = 300.0


settings = Settings()


def load_config(path: str | Path) -> BenchmarkConfig:
    """
    Load and validate a YAML run configuration.

    Args:
        path: Path to the YAML file

    Returns:
        BenchmarkConfig with defaults applied

    Raises:
        ConfigurationError: If the file cannot be read, parsed, or validated
    """
    config_path = Path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"failed to read config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"config file {config_path} must contain a mapping at the top level"
        )

    try:
        cfg = BenchmarkConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid config file {config_path}: {e}") from e

    _apply_credential_fallbacks(cfg)
    logger.debug(f"Loaded config from {config_path}: {cfg.enabled_backends()}")
    return cfg


def _apply_credential_fallbacks(cfg: BenchmarkConfig) -> None:
    pg = cfg.databases.postgres
    if not pg.password.get_secret_value() and settings.POSTGRES_PASSWORD:
        pg.password = SecretStr(settings.POSTGRES_PASSWORD)

    sf = cfg.databases.snowflake
    if not sf.password.get_secret_value() and settings.SNOWFLAKE_PASSWORD:
        sf.password = SecretStr(settings.SNOWFLAKE_PASSWORD)
