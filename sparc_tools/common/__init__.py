"""
================================================================================
SPARC Tools Common Utilities
================================================================================

Shared configuration management and logging setup.

Exports:
    - get_config / get_bool / get_int: Dot-notation configuration access
    - set_config / reload_config / reset_config: Runtime configuration control
    - init_logger: Initialize the loguru logger with standard settings

Usage:
    from sparc_tools.common import get_config, init_logger

    init_logger()
    base_url = get_config("ui.base_url", "http://localhost:3000")

================================================================================
"""

from .global_config import (
    ConfigurationError,
    get_bool,
    get_config,
    get_int,
    init_logger,
    reload_config,
    reset_config,
    set_config,
)

__all__ = [
    "ConfigurationError",
    "get_config",
    "get_bool",
    "get_int",
    "set_config",
    "reload_config",
    "reset_config",
    "init_logger",
]
