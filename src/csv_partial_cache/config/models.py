from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from csv_partial_cache.fetcher import FetchPolicy
from csv_partial_cache.models import OffsetWidth
from csv_partial_cache.rows import CsvDialect


class FileRotationSettings(BaseModel):
    """Number of daily log files kept next to the active one."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""
    rotation: FileRotationSettings = FileRotationSettings()


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: FileLoggingSettings = FileLoggingSettings()


class CacheSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    encoding: str = "utf-8"
    fetch_policy: FetchPolicy = "per_call"

    # Must bound the file size; narrower widths keep cached rows smaller.
    offset_width: OffsetWidth = OffsetWidth.U64

    # Columns held in memory, by header name. key_column must be one of them.
    key_column: str
    cached_columns: Sequence[str] = ()

    dialect: CsvDialect = CsvDialect()

    def effective_columns(self) -> tuple[str, ...]:
        columns = tuple(self.cached_columns)
        if self.key_column not in columns:
            columns = (self.key_column,) + columns
        return columns


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache: CacheSettings
    logging: LoggingSettings = LoggingSettings()


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """Where `YamlConfigLoader` reads the YAML file, the .env file and overrides from."""

    yaml_path: str = "config.yaml"
    env_prefix: str = "CSVPC__"
    dotenv_path: Optional[str] = ".env"
