"""Configuration management for forestdot using Pydantic models."""

import json
import logging
import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILE_NAME = ".forestdot.json"

DEFAULT_MAX_LEVELS_PER_EDGE = 10
DEFAULT_FONT_SIZE = 14
ALL_TREES = -1


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"

    def to_logging_level(self) -> int:
        """Map to a level of the standard logging module."""
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.TRACE: logging.DEBUG,
        }[self]


def round_half_away_from_zero(value: float, places: int) -> float:
    """Round ``value`` to ``places`` decimals, ties going away from zero."""
    if not math.isfinite(value):
        return value
    exact = Decimal(repr(float(value)))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return float(exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


class PrintTreeOptions(BaseModel):
    """Formatting options shared by the converter and the DOT renderer."""
    round_decimals: bool = False
    decimal_places: int = Field(default=0, ge=0)
    font_size: int = Field(default=DEFAULT_FONT_SIZE, gt=0)
    internal: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_cli(cls, decimal_places: int | None, font_size: int, internal: bool) -> "PrintTreeOptions":
        """Build options the way the command line expresses them.

        Giving a number of decimal places is what switches rounding on.
        """
        if decimal_places is None:
            return cls(font_size=font_size, internal=internal)
        return cls(
            round_decimals=True,
            decimal_places=decimal_places,
            font_size=font_size,
            internal=internal,
        )

    def round_value(self, value: float) -> float:
        """Round a numeric label, or return it untouched when rounding is off."""
        if not self.round_decimals:
            return value
        return round_half_away_from_zero(value, self.decimal_places)


class RenderRequest(BaseModel):
    """What to render: which tree, how deep and with which decorations."""
    tree_index: int = Field(default=ALL_TREES, ge=ALL_TREES)
    max_levels_per_edge: int = Field(default=DEFAULT_MAX_LEVELS_PER_EDGE, ge=1)
    title: str | None = None
    detail: bool = False
    raw_dump: bool = False

    model_config = ConfigDict(frozen=True)


class RenderDefaults(BaseModel):
    """Render defaults section, used when a flag is not given."""
    levels: int = Field(default=DEFAULT_MAX_LEVELS_PER_EDGE)
    font_size: int = Field(alias="fontSize", default=DEFAULT_FONT_SIZE)
    decimal_places: int | None = Field(alias="decimalPlaces", default=None)

    @field_validator("levels")
    @classmethod
    def validate_levels(cls, v):
        if v < 1:
            raise ValueError("levels must be >= 1")
        return v

    @field_validator("font_size")
    @classmethod
    def validate_font_size(cls, v):
        if v < 1:
            raise ValueError("fontSize must be >= 1")
        return v

    @field_validator("decimal_places")
    @classmethod
    def validate_decimal_places(cls, v):
        if v is not None and v < 0:
            raise ValueError("decimalPlaces must be >= 0")
        return v

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(extra="forbid")


class ForestdotConfig(BaseModel):
    """Complete forestdot configuration model."""
    render: RenderDefaults = Field(default_factory=RenderDefaults)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> ForestdotConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .forestdot.json

    Returns:
        ForestdotConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid, or an explicitly given
                    file does not exist
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ValueError(f"Config file not found: {config_path}")

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return ForestdotConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return ForestdotConfig()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .forestdot.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None
