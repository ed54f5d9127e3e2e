"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for UI automation.

Features:
    - One browser per manager, one isolated context per driver
    - Headless switch and browser type read from configuration
    - Hands out PlaywrightDriver instances for the interaction engine

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Playwright,
)

from sparc_tools.common import get_config

from .driver import PlaywrightDriver
from .timeouts import is_headless_mode


class BrowserManager:
    """
    Manages the browser instance and its contexts.

    Usage:
        async with BrowserManager() as manager:
            driver = await manager.new_driver()
            await driver.goto("https://console.example.com/login")
    """

    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "args": [
            "--ignore-certificate-errors",
            "--disable-popup-blocking",
        ],
    }

    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
    ):
        """
        Args:
            headless: Run headless; browser.headless / BROWSER_HEADLESS if omitted
            browser_type: 'chromium', 'firefox' or 'webkit'; browser.type if omitted
        """
        self.headless = is_headless_mode() if headless is None else headless
        self.browser_type = browser_type or get_config("browser.type", "chromium")

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Start Playwright and launch the browser."""
        self._playwright = await async_playwright().start()

        if self.browser_type == "firefox":
            browser_launcher = self._playwright.firefox
        elif self.browser_type == "webkit":
            browser_launcher = self._playwright.webkit
        else:
            browser_launcher = self._playwright.chromium

        launch_options = {**self.DEFAULT_LAUNCH_OPTIONS, "headless": self.headless}
        self._browser = await browser_launcher.launch(**launch_options)
        logger.debug(f"Browser started: {self.browser_type} (headless={self.headless})")

    async def close(self) -> None:
        """Close all contexts, the browser and Playwright."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.warning(f"Context close failed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(self, **options: Any) -> BrowserContext:
        """
        Create an isolated browser context (own cookies and storage).

        Args:
            **options: Extra Playwright context options
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context = await self._browser.new_context(**{**self.DEFAULT_CONTEXT_OPTIONS, **options})
        self._contexts.append(context)
        return context

    async def new_driver(self, **context_options: Any) -> PlaywrightDriver:
        """Create a fresh context with one page and wrap it in a PlaywrightDriver."""
        context = await self.new_context(**context_options)
        page = await context.new_page()
        return PlaywrightDriver(context, page)

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser


__all__ = [
    "BrowserManager",
]
