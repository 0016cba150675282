"""
Logging Configuration.
"""

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..levels import parse_level


class LogFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """Access and error sink configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DUOLOG_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    project_name: str = Field(default="", description="Anchor directory for relative caller paths")
    format: LogFormat = Field(default=LogFormat.TEXT, description="Local output format")
    access_log: str = Field(default="stdout", description="stdout, stderr or a file path")
    access_level: str = Field(default="info", description="Minimum level of the access sink")
    error_log: str = Field(default="stderr", description="stdout, stderr or a file path")
    error_level: str = Field(default="error", description="Minimum level of the error sink")
    timestamp_format: str = Field(
        default="%Y-%m-%dT%H:%M:%S",
        description="Text timestamp format (strftime, %3f for milliseconds)",
    )
    disable_sorting: bool = Field(default=False, description="Keep field insertion order")
    quote_empty_fields: bool = Field(default=False, description="Quote empty field values")

    @field_validator("access_level", "error_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        parse_level(value)
        return value.strip().lower()
