from shooting_pulse.shared.config import Settings, get_config, get_dataset_config, reload_config
from shooting_pulse.shared.errors import (
    IngestionError,
    InsufficientDataError,
    PipelineError,
    ShootingPulseError,
    UnknownCategoryError,
)
from shooting_pulse.shared.logging_utils import configure_logging

__all__ = [
    "get_config",
    "get_dataset_config",
    "reload_config",
    "Settings",
    "configure_logging",
    "ShootingPulseError",
    "IngestionError",
    "UnknownCategoryError",
    "InsufficientDataError",
    "PipelineError",
]
