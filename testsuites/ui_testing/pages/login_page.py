"""
================================================================================
Login Page Object
================================================================================

Console login: email/password, optional OTP boxes, optional wallet picker,
then a role-specific dashboard check.

Each role has a sidebar entry only it can see; that entry is how the
dashboard is identified after login.

NOTE:
  Credentials come from config (credentials.<role>.username/password).
  Retrieving the OTP from a mailbox is not supported; the code under
  auth.test_otp (or an explicit argument) is typed instead.

================================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

import allure
from loguru import logger

from sparc_tools.common import ConfigurationError, get_config
from testsuites.ui_testing.framework.exceptions import ElementNotFoundError
from testsuites.ui_testing.framework.locator_spec import (
    LocatorSpec,
    by_css,
    by_placeholder,
    by_role,
    by_xpath,
)
from testsuites.ui_testing.framework.page_base import BasePage
from testsuites.ui_testing.framework.session_tracker import ElementVisible, PageCheck


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ENTERPRISE = "enterprise"
    RESELLER = "reseller"


def get_credentials(role: UserRole) -> Tuple[str, str]:
    """
    Read username and password for a role from config.

    Raises:
        ConfigurationError: either value is missing
    """
    username = get_config(f"credentials.{role.value}.username")
    password = get_config(f"credentials.{role.value}.password")
    if not username or not password:
        raise ConfigurationError(f"Missing credentials for role '{role.value}'")
    return username, password


def _sidebar_entry(label: str) -> LocatorSpec:
    return LocatorSpec.of(
        f"sidebar '{label}'",
        by_xpath(f"//span[normalize-space()='{label}']"),
        by_role("link", name=label, exact=True),
    )


class LoginPage(BasePage):
    """Login page object."""

    URL_PATH = "/login"

    EMAIL_INPUT = LocatorSpec.of(
        "email input",
        by_css("#loginEmail"),
        by_css("input[type='email']"),
        by_placeholder("Email"),
    )
    PASSWORD_INPUT = LocatorSpec.of(
        "password input",
        by_css("#cst_login_pwd"),
        by_css("input[type='password']"),
    )
    LOGIN_BUTTON = LocatorSpec.of(
        "login button",
        by_xpath("//button[@value='Login']"),
        by_role("button", name="Login"),
    )
    OTP_BOXES = LocatorSpec.of(
        "OTP boxes",
        by_xpath("//div[@id='verify_otp_sec']//input[@type='text']"),
        by_css("input[autocomplete='one-time-code']"),
    )
    VERIFY_BUTTON = LocatorSpec.of(
        "verify button",
        by_xpath("//span[contains(text(), 'Verify')]"),
        by_role("button", name="Verify"),
    )
    WALLET_OPEN_BUTTON = LocatorSpec.of(
        "wallet open button",
        by_xpath("//button[contains(text(), 'Open')]"),
        by_role("button", name="Open"),
    )
    INVALID_CREDENTIALS_ALERT = LocatorSpec.of(
        "invalid credentials alert",
        by_xpath("//div[contains(@class, 'alert-error')]//p[@class='alert-sub-title']"),
        by_css(".alert-error"),
    )

    DASHBOARD_CHECKS: Dict[UserRole, Sequence[PageCheck]] = {
        UserRole.SUPER_ADMIN: (ElementVisible(_sidebar_entry("Customer Org")),),
        UserRole.ENTERPRISE: (ElementVisible(_sidebar_entry("Rate Card")),),
        UserRole.RESELLER: (ElementVisible(_sidebar_entry("User Management")),),
    }

    @allure.step("Open login page")
    async def open(self) -> "LoginPage":
        await self.navigate()
        return self

    async def enter_credentials(self, username: str, password: str) -> None:
        await self.fill(self.EMAIL_INPUT, username)
        await self.fill(self.PASSWORD_INPUT, password, secret=True)
        await self.click(self.LOGIN_BUTTON)

    async def is_otp_required(self, timeout_ms: int = 5000) -> bool:
        return await self.is_present(self.OTP_BOXES, timeout_ms=timeout_ms)

    @allure.step("Enter OTP")
    async def enter_otp(self, otp: str) -> None:
        """
        Type one character per OTP box, then verify.

        Raises:
            ElementNotFoundError: no OTP boxes are shown
            ValueError: more characters than boxes
        """
        boxes = await self.resolver.resolve_all(self.OTP_BOXES)
        if not boxes:
            raise ElementNotFoundError(
                "No OTP input boxes visible",
                target=self.OTP_BOXES.name,
                strategies=[c.describe() for c in self.OTP_BOXES],
            )
        outcome = await self.actions.fill_boxes(boxes, otp)
        outcome.raise_for_failure()
        await self.click(self.VERIFY_BUTTON)

    async def handle_otp(self, otp: Optional[str] = None) -> bool:
        """
        Enter the OTP if the console asks for one.

        Returns:
            True if an OTP was entered
        """
        if not await self.is_otp_required():
            logger.info("OTP not requested, continuing to dashboard")
            return False
        await self.enter_otp(otp or str(get_config("auth.test_otp", "")))
        return True

    async def open_wallet_if_shown(self, timeout_ms: int = 5000) -> bool:
        """Open the first wallet when the wallet picker appears (enterprise users)."""
        if not await self.is_present(self.WALLET_OPEN_BUTTON, timeout_ms=timeout_ms):
            logger.info("No wallet selection screen, direct dashboard access")
            return False
        await self.click(self.WALLET_OPEN_BUTTON)
        return True

    async def is_dashboard_loaded(self, role: UserRole, timeout_ms: Optional[int] = None) -> bool:
        matched = await self.tracker.identify_page(self.DASHBOARD_CHECKS[role], timeout_ms)
        if matched:
            url = await self.driver.current_url()
            if "dashboard" not in url and "customer" not in url:
                logger.warning(f"⚠️ Dashboard identified but URL looks unusual: {url}")
        return bool(matched)

    async def login_as(self, role: UserRole, otp: Optional[str] = None) -> None:
        """
        Full login for a role, ending on its dashboard.

        Raises:
            NavigationTimeoutError: the role's dashboard never appeared
        """
        username, password = get_credentials(role)
        with allure.step(f"Login as {role.value} ({username})"):
            await self.enter_credentials(username, password)
            await self.handle_otp(otp)
            if role is UserRole.ENTERPRISE:
                await self.open_wallet_if_shown()

            matched = await self.tracker.identify_page(self.DASHBOARD_CHECKS[role])
            if not matched:
                logger.error(f"❌ {role.value} dashboard did not load")
                matched.raise_error()
            logger.info(f"✅ Logged in as {role.value}")

    async def get_error_message(self, timeout_ms: int = 3000) -> str:
        """Text of the invalid-credentials alert, or "" when none is shown."""
        if not await self.is_present(self.INVALID_CREDENTIALS_ALERT, timeout_ms=timeout_ms):
            return ""
        return await self.read_text(self.INVALID_CREDENTIALS_ALERT)


__all__ = [
    "LoginPage",
    "UserRole",
    "get_credentials",
]
