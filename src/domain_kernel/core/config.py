"""Configuration management.

Loads from an optional TOML config file + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


class EventConfig(BaseModel):
    stamp_correlation_id: bool = True  # Copy the context correlation id onto dispatched events


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level kernel settings.

    Loaded from a TOML config file, overridden by environment variables.
    """

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    events: EventConfig = Field(default_factory=EventConfig)

    model_config = {"env_prefix": "DOMAIN_KERNEL_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).  A missing file
            is ignored; an unreadable or malformed one raises ``ConfigError``.
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except (OSError, tomli.TOMLDecodeError) as exc:
                raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    return Settings(**data)
