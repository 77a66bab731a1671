"""Configuration schema and loading for checkpoint-stats.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Example YAML:
    history_size: 20
    log_level: DEBUG
    json_logs: true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

ENVVAR_PREFIX = "CHECKPOINT_STATS"


class StatsSettings(BaseModel):
    """Top-level checkpoint-stats configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    history_size: int = Field(
        default=10,
        ge=1,
        description="Number of recent checkpoints retained in the history ring",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit structured JSON logs instead of console output",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )


def load_settings(config_path: Path | None = None) -> StatsSettings:
    """Load settings from a YAML file (optional) with environment variable overrides.

    Precedence:
    1. Environment variables (CHECKPOINT_STATS_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file, or None to read only
            the environment and the schema defaults

    Returns:
        Validated StatsSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys and mixes in its own bookkeeping keys
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    return StatsSettings(**raw_config)
