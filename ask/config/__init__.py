"""Configuration module for ask."""

from ask.config.loader import get_config_dir, load_config
from ask.config.schema import AskConfig

__all__ = ["AskConfig", "get_config_dir", "load_config"]
