"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .enums import CollisionPolicy, CopyMode
from .errors import ConfigError

# Field annotation keys looked up in dataclass metadata, pydantic
# json_schema_extra and SQLAlchemy Column.info.
DEFAULT_NAME_KEY = "patch_name"
DEFAULT_EXCLUDE_KEY = "patch_exclude"
DEFAULT_NAME_SENTINEL = "-"


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level record updater settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    # Schema derivation
    collision_policy: CollisionPolicy = CollisionPolicy.ERROR
    name_key: str = DEFAULT_NAME_KEY
    exclude_key: str = DEFAULT_EXCLUDE_KEY
    default_name_sentinel: str = DEFAULT_NAME_SENTINEL
    honor_pydantic_alias: bool = True
    legacy_whitespace_folding: bool = False

    # Conversion table
    numeric_widening: bool = True  # int -> float, int/float -> Decimal
    enum_lookup: bool = True  # Raw value -> Enum member

    # Merge
    strict_source_type: bool = False  # Existing must be the bound type
    copy_mode: CopyMode = CopyMode.REFERENCE

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "RECORD_UPDATER_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: The file is unreadable or the values fail validation.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
