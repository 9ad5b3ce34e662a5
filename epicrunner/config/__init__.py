"""Configuration for epicrunner."""

from .loader import create_default_config, load_config, save_config
from .models import EpicRunnerConfig, parse_duration

__all__ = [
    "EpicRunnerConfig",
    "create_default_config",
    "load_config",
    "parse_duration",
    "save_config",
]
