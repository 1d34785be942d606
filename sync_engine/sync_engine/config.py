"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sync_engine.dialects.type_map import Dialect
from sync_engine.models.schema_graph import SchemaSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Engine settings loaded from environment variables with SCHEMASYNC_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMASYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Forces DEBUG on the root logger regardless of log_level
    debug: bool = False

    # Generation defaults
    default_dialect: Dialect = Dialect.POSTGRESQL
    case_sensitive_identifiers: bool = False
    use_inline_constraints: bool = True

    # Telemetry
    structured_logging: bool = False
    log_level: str = "INFO"
    profiling_enabled: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    def schema_settings(self) -> SchemaSettings:
        """Default rendering settings for newly created graphs."""
        return SchemaSettings(
            case_sensitive_identifiers=self.case_sensitive_identifiers,
            use_inline_constraints=self.use_inline_constraints,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings (default dialect: %s)", settings.default_dialect.value)

    return settings
