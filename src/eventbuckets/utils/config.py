"""
Configuration Management

Loads the tool's config file (YAML, which also accepts the legacy JSON
format) and process-wide settings from the environment.
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from eventbuckets.errors import ConfigInvalid

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::(-)?([^}]*))?\}")


def load_config(config_path: str) -> dict[str, Any]:
    """
    Load configuration from a YAML/JSON file with environment variable substitution.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary with configuration values

    Raises:
        ConfigInvalid: If the file cannot be opened or parsed
    """
    path = Path(config_path)

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigInvalid("opening config file", e) from e
    except yaml.YAMLError as e:
        raise ConfigInvalid("parsing config file", e) from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigInvalid("parsing config file", f"expected a mapping in {config_path}")

    return _substitute_env_vars(config)


def _substitute_env_vars(obj: Any) -> Any:
    """
    Recursively substitute environment variables in config values.

    Supports formats:
    - ${VAR_NAME} - Required variable
    - ${VAR_NAME:default} - Variable with default value
    - ${VAR_NAME:-default} - Variable with default value (bash-style)
    """
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return _expand_env_var(obj)
    return obj


def _expand_env_var(value: str) -> str:
    """Expand environment variables in a string value."""

    def replacer(match):
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        if match.group(3) is not None:
            return match.group(3)
        return match.group(0)  # Keep original if no env var and no default

    return _ENV_PATTERN.sub(replacer, value)


def get_database_dsn(config: dict[str, Any]) -> str:
    """
    Pull the connection string out of a loaded config.

    Accepts `database: {dsn: ...}` or the legacy `DBConn: [dsn, ...]`,
    where the first entry wins.
    """
    database = config.get("database")
    if isinstance(database, dict) and database.get("dsn"):
        return str(database["dsn"])

    legacy = config.get("DBConn")
    if isinstance(legacy, str) and legacy:
        return legacy
    if isinstance(legacy, list) and legacy and legacy[0]:
        return str(legacy[0])

    raise ConfigInvalid("reading config file", "no database connection string (database.dsn or DBConn)")


class BackfillConfig(BaseModel):
    batch_size: int | None = Field(default=None, ge=1)


class MetricsConfig(BaseModel):
    pushgateway: str | None = None
    job: str | None = None


class RunConfig(BaseModel):
    """
    The `backfill` and `metrics` sections of the config file.

    Unset values fall back to the process settings.
    """

    model_config = ConfigDict(extra="ignore")

    backfill: BackfillConfig = Field(default_factory=BackfillConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    def scan_batch_size(self, settings: "Settings") -> int:
        return self.backfill.batch_size or settings.scan_batch_size

    def metrics_target(self, settings: "Settings") -> tuple[str | None, str]:
        gateway = self.metrics.pushgateway or settings.metrics_pushgateway
        job = self.metrics.job or settings.metrics_job
        return gateway, job


def get_run_config(config: dict[str, Any]) -> RunConfig:
    """
    Validate the run tuning sections of a loaded config.

    Raises:
        ConfigInvalid: If a section is not a mapping or holds a bad value
    """
    sections = {
        name: config[name] for name in ("backfill", "metrics") if config.get(name) is not None
    }
    try:
        return RunConfig.model_validate(sections)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigInvalid("reading config file", problems) from e


class Settings(BaseSettings):
    """
    Process settings loaded from environment variables.

    Every field can be overridden by an EVENTBUCKETS_-prefixed variable
    (case-insensitive) or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVENTBUCKETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="WARNING")
    log_format: str = Field(default="text")
    log_file: str | None = Field(default=None)

    # Metrics
    metrics_pushgateway: str | None = Field(
        default=None,
        description="Prometheus Pushgateway address; metrics are not pushed when unset",
    )
    metrics_job: str = Field(default="eventbuckets_add_filter")

    # Backfill
    scan_batch_size: int = Field(default=2000, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Get cached process settings."""
    return Settings()
