"""
================================================================================
Global Configuration for the SPARC Automation Suite
================================================================================

Centralized configuration management and logging setup shared by the UI
interaction engine, the page objects and the test runner.

Features:
    - YAML-based configuration loading (config/config.yaml)
    - Environment-specific overlay (config/{ENV}.yaml)
    - Environment variable overrides
    - Centralized Loguru logging configuration

Author: Automation Team
License: MIT
================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger


# Global configuration storage
_config: Dict[str, Any] = {}
_logger_initialized: bool = False

# Searched in order, first existing directory wins
CONFIG_DIR_CANDIDATES: List[Path] = [
    Path("config"),
    Path(__file__).parent.parent.parent / "config",
]

# Flat environment switches mapped onto config keys
ENV_MAPPING: Dict[str, str] = {
    "BROWSER_HEADLESS": "browser.headless",
    "BROWSER_TYPE": "browser.type",
    "UI_BASE_URL": "ui.base_url",
    "LOG_LEVEL": "logging.level",
    "LOG_FILE": "logging.file",
}

TRUTHY = ("true", "1", "yes", "on")

DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    Safe to call repeatedly; only the first call configures sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Custom log format string. Defaults to config value.
        log_file: Optional file path for a rotating file sink.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    _ensure_config_loaded()

    log_level = str(level or get_config("logging.level", "INFO")).upper()
    log_format = format_string or get_config("logging.format", DEFAULT_LOG_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=log_format,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def _ensure_config_loaded() -> None:
    if not _config:
        _load_config()


def _find_config_dir() -> Optional[Path]:
    for dir_path in CONFIG_DIR_CANDIDATES:
        if dir_path.exists():
            return dir_path
    return None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e


def _load_config() -> None:
    """
    Loads configuration from YAML files and environment variables.

    Configuration loading order:
        1. Built-in defaults
        2. Default configuration file (config/config.yaml)
        3. Environment-specific configuration (config/{ENV}.yaml)
        4. Environment variables (override YAML settings)
    """
    global _config

    _config = _get_defaults()

    config_dir = _find_config_dir()
    if config_dir is None:
        logger.warning("No configuration directory found. Using defaults.")
    else:
        default_config_path = config_dir / "config.yaml"
        if default_config_path.exists():
            _config = _deep_merge(_config, _read_yaml(default_config_path))
            logger.debug(f"Loaded configuration from {default_config_path}")

        env = os.getenv("ENVIRONMENT", os.getenv("ENV", "dev"))
        env_config_path = config_dir / f"{env}.yaml"
        if env_config_path.exists():
            _config = _deep_merge(_config, _read_yaml(env_config_path))
            logger.debug(f"Merged environment config: {env_config_path}")

    _apply_env_overrides()


def _get_defaults() -> Dict[str, Any]:
    return {
        "logging": {
            "level": "INFO",
            "format": DEFAULT_LOG_FORMAT,
        },
        "browser": {
            "headless": False,
            "type": "chromium",
        },
        "ui": {
            "base_url": "http://localhost:3000",
        },
    }


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merges two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides() -> None:
    """
    Applies environment variable overrides to the configuration.

    Two conventions are honoured:
        - Flat switches listed in ENV_MAPPING (BROWSER_HEADLESS=true)
        - Double underscore for nested keys (TIMEOUTS__HEADLESS__GRACE_MS=1500)
    """
    for key, value in os.environ.items():
        if "__" in key:
            parts = [p.lower() for p in key.split("__")]
            _set_nested(_config, parts, value)

    for env_key, config_key in ENV_MAPPING.items():
        if env_key in os.environ:
            _set_nested(_config, config_key.split("."), os.environ[env_key])


def _set_nested(d: Dict, keys: list, value: Any) -> None:
    for key in keys[:-1]:
        child = d.get(key)
        if not isinstance(child, dict):
            child = {}
            d[key] = child
        d = child
    d[keys[-1]] = value


def get_config(key: str, default: Any = None) -> Any:
    """
    Retrieves a configuration value using a dot-separated key path.

    Args:
        key: Dot-separated key path (e.g., "logging.level", "browser.headless").
        default: Default value to return if key is not found.

    Returns:
        The configuration value, or the default if not found.

    Examples:
        >>> get_config("logging.level", "INFO")
        'DEBUG'
        >>> get_config("timeouts.settle.modal", 500)
        500
    """
    _ensure_config_loaded()

    value: Any = _config
    for k in key.split("."):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


def get_bool(key: str, default: bool = False) -> bool:
    """
    Retrieves a boolean-like configuration value.

    Environment overrides always arrive as strings, so "true", "1", "yes"
    and "on" (any case) are treated as True.
    """
    value = get_config(key, default)
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    return str(value).strip().lower() in TRUTHY


def get_int(key: str, default: int) -> int:
    """Retrieves an integer configuration value, raising on garbage."""
    value = get_config(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config key '{key}' is not an integer: {value!r}") from e


def set_config(key: str, value: Any) -> None:
    """
    Sets a configuration value at runtime.

    Args:
        key: Dot-separated key path.
        value: Value to set.
    """
    _ensure_config_loaded()
    _set_nested(_config, key.split("."), value)


def reload_config() -> None:
    """Reloads the configuration from files and environment."""
    global _config
    _config = {}
    _load_config()
    logger.info("Configuration reloaded.")


def reset_config() -> None:
    """
    Drops loaded configuration and logger state.

    Used by tests that point CONFIG_DIR_CANDIDATES somewhere else.
    """
    global _config, _logger_initialized
    _config = {}
    _logger_initialized = False
