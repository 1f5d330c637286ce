"""
Configuration module for pulse.

This module provides centralized configuration constants and the
YAML-backed Config used across the entire project.
"""

from .config import Config, config_path, expand_path, load_config, social_data_dir
from .settings import DEFAULT_DAYS, DEFAULT_LIMIT

__all__ = [
    "Config",
    "DEFAULT_DAYS",
    "DEFAULT_LIMIT",
    "config_path",
    "expand_path",
    "load_config",
    "social_data_dir",
]
