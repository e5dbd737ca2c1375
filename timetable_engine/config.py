# timetable_engine/config.py

"""
Configuration module for the timetable engine.
Defaults live in the dataclasses below; environment variables prefixed with
TIMETABLE_ENGINE_ override them when the module is imported.
"""

from typing import Literal, Optional
from dataclasses import dataclass, field
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass
class SearchConfig:
    """Configuration for the backtracking search"""

    # Upper bound on visited search nodes; None leaves the search unbounded.
    max_nodes: Optional[int] = None
    progress_log_interval: int = 100_000  # nodes between debug progress lines


@dataclass
class TimetableEngineConfig:
    """Main configuration for the timetable engine"""

    search: SearchConfig = field(default_factory=SearchConfig)

    # Global settings
    enable_logging: bool = True
    log_level: str = "INFO"
    enable_profiling: bool = True


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="TIMETABLE_ENGINE_LOG_LEVEL"
    )
    ENABLE_LOGGING: bool = Field(
        default=True, validation_alias="TIMETABLE_ENGINE_ENABLE_LOGGING"
    )
    ENABLE_PROFILING: bool = Field(
        default=True, validation_alias="TIMETABLE_ENGINE_ENABLE_PROFILING"
    )
    MAX_NODES: Optional[int] = Field(
        default=None, validation_alias="TIMETABLE_ENGINE_MAX_NODES", gt=0
    )
    PROGRESS_LOG_INTERVAL: int = Field(
        default=100_000, validation_alias="TIMETABLE_ENGINE_PROGRESS_LOG_INTERVAL", gt=0
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalise_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


def load_config(settings: Optional[EngineSettings] = None) -> TimetableEngineConfig:
    """Build the engine configuration from environment-backed settings"""
    settings = settings or EngineSettings()
    return TimetableEngineConfig(
        search=SearchConfig(
            max_nodes=settings.MAX_NODES,
            progress_log_interval=settings.PROGRESS_LOG_INTERVAL,
        ),
        enable_logging=settings.ENABLE_LOGGING,
        log_level=settings.LOG_LEVEL,
        enable_profiling=settings.ENABLE_PROFILING,
    )


# Global configuration instance
config = load_config()


def get_logger(name: str) -> logging.Logger:
    """Get configured logger for the timetable engine"""
    logger = logging.getLogger(f"timetable_engine.{name}")
    if config.enable_logging and not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, config.log_level, logging.INFO))
        # the package logger has its own structured handler
        logger.propagate = False
    return logger
