"""
duolog Configuration Module.

Each sub-module is an independent concern with its own environment variable
prefix:

    DUOLOG_LOG_*    sinks (levels, outputs, text format)
    DUOLOG_AGENT_*  remote log agent

Usage:
    from duolog.config import Settings

    settings = Settings()
    settings.logging.access_level
    settings.agent.enabled
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .agent import AgentSettings
from .logging import LogFormat, LoggingSettings


class Settings(BaseSettings):
    """Composite settings aggregating the logging and agent domains."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @cached_property
    def agent(self) -> AgentSettings:
        return AgentSettings()


__all__ = [
    "Settings",
    "AgentSettings",
    "LoggingSettings",
    "LogFormat",
]
