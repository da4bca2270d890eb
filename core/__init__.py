"""
Core Module - Foundation components for Reihtuag
================================================

This module provides the foundational components including:
- Configuration management
- Logging setup
- Exception handling
"""

from .config import Config, load_config, save_config
from .exceptions import (
    ReihtuagError,
    ConfigError,
    InvalidInput,
    EmptyAlternativeSet,
    TemplateError,
    ChannelError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "Config",
    "load_config",
    "save_config",
    "ReihtuagError",
    "ConfigError",
    "InvalidInput",
    "EmptyAlternativeSet",
    "TemplateError",
    "ChannelError",
    "setup_logging",
    "get_logger",
]
