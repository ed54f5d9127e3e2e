"""
================================================================================
SPARC Tools
================================================================================

Shared infrastructure for the SPARC console automation suite.

Modules:
    - common: Configuration loading and Loguru logging setup
    - report_tools: Allure attachment helpers for UI diagnostics

Example:
    from sparc_tools.common import get_config, init_logger

    init_logger()
    headless = get_config("browser.headless", False)

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
