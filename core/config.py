"""
Configuration Management - YAML-based configuration with environment overrides
=============================================================================

This module handles all configuration aspects including:
- Loading from YAML files
- Environment variable overrides
- Default values
- Configuration validation
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, asdict

from .exceptions import ConfigError


@dataclass
class ServerConfig:
    """
    Server configuration.

    Where the web application binds. The chat page and the
    WebSocket route share this single port.
    """
    host: str = "127.0.0.1"
    port: int = 8088
    debug: bool = False

    def validate(self) -> None:
        """Validate server configuration."""
        if self.port < 1 or self.port > 65535:
            raise ConfigError(f"Invalid server port: {self.port}")


@dataclass
class EngineConfig:
    """
    Response engine configuration.

    Controls which catalog of categories is loaded, which generator
    answers unmatched utterances, and whether randomness is seeded.
    """
    # Empty means the built-in catalog
    categories_file: str = ""

    # stock, deflection
    fallback: str = "stock"

    # Seed for a reproducible random source; None draws from the OS
    seed: Optional[int] = None

    def validate(self) -> None:
        """Validate engine configuration."""
        if self.fallback not in ["stock", "deflection"]:
            raise ConfigError(f"Invalid fallback generator: {self.fallback}")

        if self.categories_file and not Path(self.categories_file).exists():
            raise ConfigError(
                "Categories file not found",
                {"path": self.categories_file}
            )


@dataclass
class ChannelConfig:
    """
    Message channel configuration.

    Event names match the ones the bundled chat page emits and listens to.
    """
    inbound_event: str = "message from human"
    outbound_event: str = "message from robot"

    # default: broadcast a stock reply when generation fails; silent: broadcast nothing
    on_error: str = "default"

    # Sent only to a newly connected client; empty disables it
    greeting: str = ""

    # Seconds a client may take to accept one frame before it is dropped
    send_timeout: float = 5.0

    def validate(self) -> None:
        """Validate channel configuration."""
        if self.on_error not in ["default", "silent"]:
            raise ConfigError(f"Invalid on_error policy: {self.on_error}")

        if not self.inbound_event or not self.outbound_event:
            raise ConfigError("Event names cannot be empty")

        if self.send_timeout <= 0:
            raise ConfigError(f"Send timeout must be positive: {self.send_timeout}")

        if self.inbound_event == self.outbound_event:
            raise ConfigError(
                "Inbound and outbound event names must differ",
                {"event": self.inbound_event}
            )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    json_format: bool = False
    # Empty means console only
    log_dir: str = ""

    def validate(self) -> None:
        """Validate logging configuration."""
        if self.level.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ConfigError(f"Invalid log level: {self.level}")


@dataclass
class Config:
    """
    Main configuration container.

    Aggregates all configuration sections into a single object
    and provides methods for loading, saving, and validating.
    """
    # Application settings
    app_name: str = "Reihtuag"
    version: str = "1.0.0"

    # Configuration sections
    server: ServerConfig = field(default_factory=ServerConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Paths (set at runtime)
    config_dir: str = ""

    def validate(self) -> None:
        """
        Validate all configuration sections.

        Raises:
            ConfigError: If any configuration section is invalid
        """
        self.server.validate()
        self.engine.validate()
        self.channel.validate()
        self.logging.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "app_name": self.app_name,
            "version": self.version,
            "server": asdict(self.server),
            "engine": asdict(self.engine),
            "channel": asdict(self.channel),
            "logging": asdict(self.logging),
        }


SECTIONS = ("server", "engine", "channel", "logging")


def get_default_config_dir() -> Path:
    """
    Get the default configuration directory path.

    Returns:
        Path to the configuration directory
    """
    if "REIHTUAG_CONFIG_DIR" in os.environ:
        return Path(os.environ["REIHTUAG_CONFIG_DIR"])

    if "XDG_CONFIG_HOME" in os.environ:
        return Path(os.environ["XDG_CONFIG_HOME"]) / "reihtuag"

    home = Path.home()
    config_home = home / ".config"

    if config_home.exists():
        return config_home / "reihtuag"

    return home / ".reihtuag"


def load_config(config_path: Optional[str] = None, load_env: bool = True) -> Config:
    """
    Load configuration from YAML file with environment variable overrides.

    This function loads configuration in the following order:
    1. Default values from dataclass
    2. Values from YAML file
    3. Environment variable overrides

    Args:
        config_path: Path to configuration file (optional)
        load_env: Whether to load environment variable overrides

    Returns:
        Config object with loaded values

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    config = Config()
    config.config_dir = str(get_default_config_dir())

    if config_path:
        yaml_path = Path(config_path)
        config.config_dir = str(yaml_path.parent)
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    if yaml_path.exists():
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}", {"path": str(yaml_path)})
        except IOError as e:
            raise ConfigError(f"Failed to read config file: {e}", {"path": str(yaml_path)})

        if not isinstance(yaml_config, dict):
            raise ConfigError("Config file must contain a mapping", {"path": str(yaml_path)})

        _apply_yaml_config(config, yaml_config)
    elif config_path:
        raise ConfigError("Config file not found", {"path": str(yaml_path)})

    if load_env:
        _apply_env_overrides(config)

    config.validate()

    return config


def _apply_yaml_config(config: Config, yaml_config: Dict[str, Any]) -> None:
    """
    Apply YAML configuration values to Config object.

    Unknown keys are ignored.
    """
    if "app_name" in yaml_config:
        config.app_name = yaml_config["app_name"]
    if "version" in yaml_config:
        config.version = str(yaml_config["version"])

    for section in SECTIONS:
        values = yaml_config.get(section)
        if not values:
            continue
        if not isinstance(values, dict):
            raise ConfigError(f"Section '{section}' must be a mapping")
        section_obj = getattr(config, section)
        for key, value in values.items():
            if hasattr(section_obj, key):
                setattr(section_obj, key, value)


def _to_optional_int(value: str) -> Optional[int]:
    return int(value) if value.strip() else None


def _apply_env_overrides(config: Config) -> None:
    """
    Apply environment variable overrides to Config object.

    Environment variables follow the pattern: REIHTUAG_SECTION_KEY
    For example: REIHTUAG_SERVER_PORT, REIHTUAG_ENGINE_FALLBACK

    Args:
        config: Config object to update

    Raises:
        ConfigError: If a value cannot be converted
    """
    env_mappings = {
        # Server settings
        "REIHTUAG_SERVER_HOST": ("server", "host"),
        "REIHTUAG_SERVER_PORT": ("server", "port", int),
        "REIHTUAG_SERVER_DEBUG": ("server", "debug", bool),

        # Engine settings
        "REIHTUAG_ENGINE_CATEGORIES_FILE": ("engine", "categories_file"),
        "REIHTUAG_ENGINE_FALLBACK": ("engine", "fallback"),
        "REIHTUAG_ENGINE_SEED": ("engine", "seed", _to_optional_int),

        # Channel settings
        "REIHTUAG_CHANNEL_ON_ERROR": ("channel", "on_error"),
        "REIHTUAG_CHANNEL_GREETING": ("channel", "greeting"),
        "REIHTUAG_CHANNEL_SEND_TIMEOUT": ("channel", "send_timeout", float),

        # Logging settings
        "REIHTUAG_LOGGING_LEVEL": ("logging", "level"),
        "REIHTUAG_LOGGING_JSON_FORMAT": ("logging", "json_format", bool),
        "REIHTUAG_LOGGING_LOG_DIR": ("logging", "log_dir"),
    }

    for env_var, mapping in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section = mapping[0]
        key = mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str

        section_obj = getattr(config, section)

        if converter == bool:
            converted = value.lower() in ("true", "1", "yes", "on")
        else:
            try:
                converted = converter(value)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_var}: {e}", {"value": value})

        setattr(section_obj, key, converted)


def save_config(config: Config, config_path: Optional[str] = None) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save
        config_path: Path to save configuration (optional)

    Raises:
        ConfigError: If configuration cannot be saved
    """
    if config_path:
        yaml_path = Path(config_path)
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    except IOError as e:
        raise ConfigError(f"Failed to save config file: {e}", {"path": str(yaml_path)})


def create_default_config(config_dir: Optional[str] = None) -> Config:
    """
    Create a default configuration file with sensible defaults.

    Args:
        config_dir: Directory to create configuration in (optional)

    Returns:
        Config object with default values
    """
    config = Config()
    config.config_dir = config_dir or str(get_default_config_dir())

    Path(config.config_dir).mkdir(parents=True, exist_ok=True)

    save_config(config)

    return config
