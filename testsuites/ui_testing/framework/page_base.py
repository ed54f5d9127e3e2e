"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - LocatorSpec-based interactions through the resolver and executor
    - Navigation tracking across spawned windows
    - Named settle delays for screens that keep rendering after load
    - Screenshot and failure-capture utilities

Page objects only declare LocatorSpecs and sequence calls; locating,
fallback and window bookkeeping all live in the framework.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional

import allure
from loguru import logger

from sparc_tools.common import get_config
from sparc_tools.report_tools.allure_utils import attach_engine_reports, attach_page_state

from .driver import BrowserDriver
from .element_actions import Click, ElementActions, InteractionOutcome, ReadText, TypeText
from .locator_spec import LocatorSpec
from .session_tracker import NavigationResult, SessionTracker
from .smart_locator import LocatorResolver
from .timeouts import TimeoutProfile, get_settle_delay_ms, get_timeout_profile


# Default output directory for screenshots
SCREENSHOT_DIR = Path(__file__).parent.parent / "screenshots"


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/login"
            EMAIL = LocatorSpec.of("email input", by_attribute("name", "loginEmail"))

            async def enter_email(self, email: str):
                await self.fill(self.EMAIL, email)
    """

    # Override in subclasses
    URL_PATH: str = "/"

    def __init__(
        self,
        driver: BrowserDriver,
        base_url: str = "",
        profile: Optional[TimeoutProfile] = None,
        tracker: Optional[SessionTracker] = None,
    ):
        """
        Args:
            driver: Browser driver for the current browser context
            base_url: Console base URL; ui.base_url from config if empty
            profile: Timeout profile; the configured one if omitted
            tracker: Session tracker shared with other page objects of the
                same workflow; a new one if omitted
        """
        self.driver = driver
        self.base_url = (base_url or get_config("ui.base_url", "http://localhost:3000")).rstrip("/")
        self.profile = profile or get_timeout_profile()
        self.resolver = LocatorResolver(driver, self.profile)
        self.actions = ElementActions(driver, self.profile)
        self.tracker = tracker or SessionTracker(driver, self.profile, self.resolver)

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.URL_PATH}"

    async def navigate(self) -> None:
        """Open this page's URL in the active window and wait for it to settle."""
        with allure.step(f"Navigate to {self.URL_PATH}"):
            await self.driver.goto(self.url)
            logger.debug(f"Navigated to: {self.url}")
            await self.wait_until_settled("after_navigation")

    # =========================================================================
    # Interactions
    # =========================================================================

    async def click(self, spec: LocatorSpec, timeout_ms: Optional[int] = None) -> InteractionOutcome:
        """
        Resolve and click a target.

        Raises:
            ElementNotFoundError / StaleElementError / ActionBlockedError
        """
        with allure.step(f"Click: {spec.name}"):
            element = await self.resolver.require(spec, timeout_ms=timeout_ms)
            outcome = await self.actions.perform(element, Click())
            return outcome.raise_for_failure()

    async def fill(
        self,
        spec: LocatorSpec,
        value: str,
        per_character: bool = False,
        secret: bool = False,
        timeout_ms: Optional[int] = None,
    ) -> InteractionOutcome:
        """
        Resolve an input and replace its content.

        Args:
            spec: Input to fill
            value: Text to enter
            per_character: Type key by key with the profile's pacing
            secret: Mask the value in the report step
            timeout_ms: Resolution timeout override
        """
        shown = "*" * len(value) if secret else value
        with allure.step(f"Fill {spec.name}: {shown}"):
            element = await self.resolver.require(spec, timeout_ms=timeout_ms)
            outcome = await self.actions.perform(
                element, TypeText(value, per_character=per_character)
            )
            return outcome.raise_for_failure()

    async def read_text(self, spec: LocatorSpec, timeout_ms: Optional[int] = None) -> str:
        """Resolve a target (displayed, not necessarily enabled) and return its trimmed text."""
        element = await self.resolver.require(spec, require_interactable=False, timeout_ms=timeout_ms)
        outcome = await self.actions.perform(element, ReadText())
        return outcome.raise_for_failure().value

    async def is_present(self, spec: LocatorSpec, timeout_ms: int = 2000) -> bool:
        return await self.resolver.is_present(spec, timeout_ms=timeout_ms)

    async def click_and_follow(
        self,
        spec: LocatorSpec,
        expect_new_window: Optional[bool] = None,
        window_timeout_ms: Optional[int] = None,
    ) -> NavigationResult:
        """
        Click a target that navigates, then follow the navigation.

        A new window, if one opens, becomes the active session.
        """
        with allure.step(f"Click and follow: {spec.name}"):
            element = await self.resolver.require(spec)
            outcome = await self.actions.perform(element, Click())
            return await self.tracker.follow_navigation(
                outcome,
                expect_new_window=expect_new_window,
                window_timeout_ms=window_timeout_ms,
            )

    # =========================================================================
    # Waits
    # =========================================================================

    async def wait_until_settled(self, scenario: str = "default") -> bool:
        """Wait for the document to load, then the named grace delay."""
        return await self.tracker.await_dom_settled(grace_ms=get_settle_delay_ms(scenario))

    async def pause(self, scenario: str) -> None:
        """Fixed delay for animations that have no readiness signal (menus, modals)."""
        await asyncio.sleep(get_settle_delay_ms(scenario) / 1000)

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(self, name: str, attach_to_allure: bool = True) -> Path:
        """
        Take a full-page screenshot and optionally attach it to Allure.

        Returns:
            Path to saved screenshot
        """
        SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = SCREENSHOT_DIR / f"{name}_{timestamp}.png"

        png = await self.driver.screenshot()
        filepath.write_bytes(png)

        if attach_to_allure:
            allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    async def capture_failure(self, test_name: str) -> None:
        """
        Capture debugging information on test failure.

        Saves:
            - Screenshot, URL and page source of the active window
            - Locator health and interaction fallback reports
        """
        with allure.step("Capture failure details"):
            await self.screenshot(f"failure_{test_name}", attach_to_allure=False)
            attach_page_state(
                url=await self.driver.current_url(),
                window_handle=await self.driver.current_handle(),
                page_source=await self.driver.page_source(),
                screenshot=await self.driver.screenshot(),
            )
            attach_engine_reports(
                self.resolver.get_health_report(),
                self.actions.get_fallback_report(),
            )

    def get_locator_health_report(self) -> str:
        return self.resolver.get_health_report()


__all__ = [
    "BasePage",
]
