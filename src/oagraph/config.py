"""Configuration management for oagraph using Pydantic models."""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from rich.console import Console
from rich.logging import RichHandler

CONFIG_FILE_NAME = ".oagraph.json"


class ReferenceResolution(str, Enum):
    """When references are checked after reading."""
    NONE = "none"
    LOCAL = "local"


class OutputFormat(str, Enum):
    """Output text formats."""
    JSON = "json"
    YAML = "yaml"


class TargetVersion(str, Enum):
    """Dialects documents can be written in."""
    V2 = "2.0"
    V3 = "3.0"
    V3_1 = "3.1"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"


LOG_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.TRACE: logging.DEBUG,
}


class ReaderConfig(BaseModel):
    """Reader configuration section."""
    reference_resolution: ReferenceResolution = Field(
        alias="referenceResolution", default=ReferenceResolution.NONE
    )
    base_url: str | None = Field(alias="baseUrl", default=None)

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class WriterConfig(BaseModel):
    """Writer configuration section."""
    spec_version: TargetVersion = Field(alias="specVersion", default=TargetVersion.V3)
    format: OutputFormat = OutputFormat.JSON
    indent: int = 2
    inline_local_references: bool = Field(alias="inlineLocalReferences", default=False)
    inline_external_references: bool = Field(alias="inlineExternalReferences", default=False)

    @field_validator("indent")
    @classmethod
    def validate_indent(cls, v):
        if v < 0:
            raise ValueError("indent must be >= 0")
        return v

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(use_enum_values=True)


class OagraphConfig(BaseModel):
    """Complete oagraph configuration model."""
    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    writer: WriterConfig = Field(default_factory=WriterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> OagraphConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .oagraph.json

    Returns:
        OagraphConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return OagraphConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .oagraph.json configuration file by searching up directory tree.

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
        if parent == current:
            break
        current = parent

    return None


def create_default_config() -> OagraphConfig:
    """Create default configuration: no reference check, 3.0 JSON output."""
    return OagraphConfig()


def setup_logging(level: LogLevel | str = LogLevel.WARN) -> None:
    """Send log records to stderr through rich at the configured level."""
    logging.basicConfig(
        level=LOG_LEVELS[LogLevel(level)],
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
