"""Configuration schema and loader.

Validates on load and fails fast on invalid config.  The resulting
``AppConfig`` is handed explicitly to the composition root; nothing in
the domain or application layers reads configuration on its own.
"""

from __future__ import annotations

import os
from datetime import datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

CONFIG_ENV_VAR = "FOODCOOP_CONFIG"
DEFAULT_CONFIG_FILE = Path("foodcoop.yaml")


class ConfigError(ValueError):
    """The configuration file exists but is not valid."""


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class AllocationPolicyName(str, Enum):
    FIRST_COME = "first_come"
    PROPORTIONAL = "proportional"


class OrderScheduleConfig(BaseModel):
    """Weekly rhythm used to suggest the end of a new order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial: Optional[datetime] = Field(
        default=None, description="Reference start of the first order cycle"
    )
    ends_weekday: int = Field(ge=0, le=6, description="0 = Monday")
    ends_time: time = time(20, 0)
    interval_weeks: int = Field(default=1, ge=1)


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    data_dir: Path = Path("data")
    price_markup: Decimal = Field(
        default=Decimal("0"), ge=Decimal("0"), description="Foodcoop markup in percent"
    )
    allocation_policy: AllocationPolicyName = AllocationPolicyName.FIRST_COME
    stock_order_name: str = Field(default="Stock", min_length=1)
    log_level: LogLevel = LogLevel.INFO
    order_schedule: Optional[OrderScheduleConfig] = None


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from YAML.

    Lookup order: *path*, then ``$FOODCOOP_CONFIG``, then ``./foodcoop.yaml``.
    Defaults apply when no file was requested and the default file is
    absent.

    Raises:
        FileNotFoundError: If an explicitly requested file doesn't exist
        ConfigError: If the file content is invalid
    """
    explicit = path is not None or CONFIG_ENV_VAR in os.environ
    if path is None:
        path = Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Configuration file not found: {path}")
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw: Any = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed configuration file {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    try:
        return AppConfig.model_validate(raw)
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc
