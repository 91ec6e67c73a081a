"""
Shooting Pulse - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variable overrides
- Type validation via Pydantic

Usage:
    from shooting_pulse.shared.config import get_config

    config = get_config()  # Uses SP_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    url = config.source.url
    trees = config.model.n_estimators
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Configuration Models
# =============================================================================

NYPD_SHOOTING_URL = (
    "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
)


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "shooting-pulse"
    version: str = "0.1.0"
    description: str = "NYPD shooting incident analysis and borough classification"


class SourceConfig(BaseModel):
    """Remote CSV source configuration."""

    url: str = NYPD_SHOOTING_URL
    local_path: str | None = None  # read this file instead of downloading
    timeout_seconds: int = 120
    na_values: list[str] = Field(default_factory=lambda: ["NA"])


class CleaningConfig(BaseModel):
    """Cleaner configuration."""

    retained_column_count: int = 16
    date_format: str = "%m/%d/%Y"
    time_format: str = "%H:%M:%S"

    @field_validator("retained_column_count")
    @classmethod
    def validate_retained_column_count(cls, v: int) -> int:
        """Column prefix must keep at least one column."""
        if v < 1:
            raise ValueError(f"retained_column_count must be positive, got {v}")
        return v


class FilteringConfig(BaseModel):
    """Sentinel values and column selection for the modeling path."""

    vic_sex_unknown: list[str] = Field(default_factory=lambda: ["U"])
    vic_age_group_excluded: list[str] = Field(default_factory=lambda: ["UNKNOWN", "1022"])
    location_desc_null: list[str] = Field(default_factory=lambda: ["(null)"])
    perp_sex_unknown: list[str] = Field(default_factory=lambda: ["U"])
    dropped_columns: list[str] = Field(
        default_factory=lambda: ["precinct", "statistical_murder_flag", "loc_classfctn_desc"]
    )
    model_columns: list[str] = Field(
        default_factory=lambda: [
            "boro",
            "vic_sex",
            "vic_age_group",
            "perp_sex",
            "location_desc",
            "occur_date",
            "occur_time",
        ]
    )
    categorical_columns: list[str] = Field(
        default_factory=lambda: ["boro", "vic_sex", "vic_age_group", "perp_sex", "location_desc"]
    )
    # Columns listed here get a fixed vocabulary; the rest are frozen from data
    vocabularies: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "boro": ["BRONX", "BROOKLYN", "MANHATTAN", "QUEENS", "STATEN ISLAND"],
        }
    )


class ModelConfig(BaseModel):
    """Random forest classifier configuration."""

    target: str = "boro"
    n_estimators: int = 200
    split_ratio: float = 0.9
    random_seed: int | None = 42

    @field_validator("split_ratio")
    @classmethod
    def validate_split_ratio(cls, v: float) -> float:
        """Train fraction must leave rows on both sides."""
        if not 0.0 < v < 1.0:
            raise ValueError(f"split_ratio must be between 0 and 1, got {v}")
        return v


class ReportingConfig(BaseModel):
    """Plot and statistics output configuration."""

    output_dir: str = "reports"
    statistics_dir: str = "reports/statistics"
    plots_enabled: bool = True
    save_statistics: bool = False
    figure_dpi: int = 120


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for Shooting Pulse.

    Loads configuration from:
    1. YAML files in configs/environments/
    2. Environment variables

    Environment variables take precedence over YAML values, except that an
    environment passed to get_config() wins over SP_ENVIRONMENT.
    """

    model_config = SettingsConfigDict(
        env_prefix="SP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    cleaning: CleaningConfig = Field(default_factory=CleaningConfig)
    filtering: FilteringConfig = Field(default_factory=FilteringConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"dev", "prod"}
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment variables win over YAML values passed as init kwargs
        return env_settings, init_settings, dotenv_settings, file_secret_settings


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _get_config_dir() -> Path | None:
    """Get the configuration directory path, or None when there is none."""
    # Try relative path from the repository root
    config_dir = Path(__file__).parent.parent.parent / "configs"
    if config_dir.exists():
        return config_dir

    # Try from current working directory
    config_dir = Path.cwd() / "configs"
    if config_dir.exists():
        return config_dir

    # Built-in defaults apply
    return None


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_config_for_environment(environment: str) -> dict[str, Any]:
    """Load and merge configuration for a specific environment."""
    config_dir = _get_config_dir()
    if config_dir is None:
        return {"environment": environment}
    env_dir = config_dir / "environments"

    base_config = _load_yaml_file(env_dir / "base.yaml")
    env_config = _load_yaml_file(env_dir / f"{environment}.yaml")

    # Remove inheritance marker if present
    env_config.pop("_inherit", None)

    merged = _deep_merge(base_config, env_config)
    merged["environment"] = environment

    return merged


@lru_cache(maxsize=4)
def get_config(environment: str | None = None) -> Settings:
    """
    Get configuration for the specified environment.

    Args:
        environment: Environment name (dev, prod).
                    If None, uses SP_ENVIRONMENT env var, defaulting to "dev".

    Returns:
        Settings: Validated configuration object.

    Example:
        config = get_config()  # Uses SP_ENVIRONMENT or defaults to dev
        config = get_config("prod")  # Explicit production config

        # Access values
        seed = config.model.random_seed
    """
    if environment is None:
        environment = os.getenv("SP_ENVIRONMENT", "dev")

    yaml_config = _load_config_for_environment(environment)

    settings = Settings(**yaml_config)
    if settings.environment != environment:
        # SP_ENVIRONMENT only picks the environment when none is passed;
        # model_validate skips the env source so the explicit name sticks
        settings = Settings.model_validate({**settings.model_dump(), "environment": environment})
    return settings


def reload_config(environment: str | None = None) -> Settings:
    """
    Reload configuration, clearing the cache.

    Useful for testing or when config files have changed.
    """
    get_config.cache_clear()
    return get_config(environment)


def get_dataset_config(dataset: str) -> dict[str, Any]:
    """
    Load the per-dataset YAML file (configs/datasets/<dataset>.yaml).

    Returns an empty dict when the file does not exist.
    """
    config_dir = _get_config_dir()
    if config_dir is None:
        return {}
    return _load_yaml_file(config_dir / "datasets" / f"{dataset}.yaml")
