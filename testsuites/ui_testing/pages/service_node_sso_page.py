"""
================================================================================
Service Node SSO Page Object
================================================================================

Super Admin "Service Nodes SSO" screen: one card per service node, each with
a Login button that opens a role menu. Picking a role signs in to the
service node, usually in a new tab, sometimes in place.

Workflow:
    sso = ServiceNodeSSOPage(driver, tracker=tracker)
    await sso.navigate_to_sso()
    result = await sso.perform_sso_login("Voice Node", "Admin")
    assert await sso.is_redirected_to_service()
    assert await sso.validate_carried_role()
    await sso.return_to_sso()

The chosen service and role are carried across the navigation through the
session tracker and validated on the destination page.

================================================================================
"""

from __future__ import annotations

from typing import List, Optional

import allure
from loguru import logger

from testsuites.ui_testing.framework.element_actions import Click, InteractionOutcome, ReadText
from testsuites.ui_testing.framework.locator_spec import (
    LocatorSpec,
    by_css,
    by_role,
    by_text,
    by_xpath,
    xpath_literal,
)
from testsuites.ui_testing.framework.page_base import BasePage
from testsuites.ui_testing.framework.session_tracker import (
    ElementVisible,
    NavigationResult,
    SourceContains,
    TitleContains,
    UrlContains,
)


CARRIED_SERVICE = "sso.service"
CARRIED_ROLE = "sso.role"


class ServiceNodeSSOPage(BasePage):
    """Service Node SSO page object."""

    URL_PATH = "/service-nodes-sso"
    URL_FRAGMENT = "service-nodes-sso"

    SSO_MENU = LocatorSpec.of(
        "Service Nodes SSO menu",
        by_xpath("//span[contains(text(), 'Service Nodes SSO')]"),
        by_css("a[href*='service-nodes-sso']"),
        by_text("SSO"),
    )
    SERVICE_NAMES = LocatorSpec.of(
        "service names",
        by_xpath("//div[contains(@class, 'service-cards')]//h6"),
    )
    ROLE_MENU = LocatorSpec.of(
        "role menu",
        by_xpath("//div[@role='menu']"),
        by_role("menu"),
    )
    ROLE_OPTIONS = LocatorSpec.of(
        "role options",
        by_xpath("//div[@role='menu']//button[@role='menuitem']"),
        by_role("menuitem"),
    )
    SERVICE_DASHBOARD = LocatorSpec.of(
        "service dashboard",
        by_xpath("//h1[contains(@class, 'dashboard')]"),
        by_css(".dashboard-header"),
        by_css("div.service-home"),
    )

    @staticmethod
    def login_button_for(service: str) -> LocatorSpec:
        return LocatorSpec.of(
            f"Login button of '{service}'",
            by_xpath(
                f"//div[contains(@class, 'service-cards')][.//h6[contains(text(), {xpath_literal(service)})]]"
                f"//button[contains(text(), 'Login')]"
            ),
            by_xpath(
                f"//h6[contains(text(), {xpath_literal(service)})]"
                f"/ancestor::div[contains(@class, 'service-cards')][1]//button"
            ),
        )

    @staticmethod
    def role_option(role: str) -> LocatorSpec:
        # Closed menus stay in the DOM, open menu first
        return LocatorSpec.of(
            f"role option '{role}'",
            by_xpath(
                f"//div[@role='menu']//button[@role='menuitem'][.//span[contains(text(), {xpath_literal(role)})]]"
            ),
            by_xpath(f"//button[@role='menuitem'][.//span[contains(text(), {xpath_literal(role)})]]"),
            by_role("menuitem", name=role),
        )

    @staticmethod
    def service_header(service: str) -> LocatorSpec:
        return LocatorSpec.of(
            f"'{service}' header",
            by_xpath(f"//h1[contains(text(), {xpath_literal(service)})]"),
            by_xpath(f"//h2[contains(text(), {xpath_literal(service)})]"),
            by_xpath(f"//*[contains(@class, 'page-title') and contains(text(), {xpath_literal(service)})]"),
        )

    # =========================================================================
    # Navigation
    # =========================================================================

    @allure.step("Open Service Nodes SSO")
    async def navigate_to_sso(self) -> None:
        """
        Open the SSO screen from the side menu.

        Raises:
            NavigationTimeoutError: the URL never reached the SSO screen
        """
        await self.click(self.SSO_MENU)
        await self.wait_until_settled("after_navigation")
        matched = await self.tracker.identify_page([UrlContains(self.URL_FRAGMENT)])
        if not matched:
            matched.raise_error()
        if self.tracker.primary is None:
            await self.tracker.record_primary()
        logger.info("✅ Service Nodes SSO page loaded")

    async def is_page_loaded(self, timeout_ms: int = 2000) -> bool:
        return bool(await self.tracker.identify_page([UrlContains(self.URL_FRAGMENT)], timeout_ms))

    # =========================================================================
    # Services and roles
    # =========================================================================

    async def _visible_texts(self, spec: LocatorSpec, timeout_ms: Optional[int]) -> List[str]:
        texts: List[str] = []
        for element in await self.resolver.resolve_all(spec, require_interactable=False, timeout_ms=timeout_ms):
            outcome = await self.actions.perform(element, ReadText())
            if outcome.succeeded and outcome.value and outcome.value not in texts:
                texts.append(outcome.value)
        return texts

    async def get_available_services(self, timeout_ms: Optional[int] = None) -> List[str]:
        services = await self._visible_texts(self.SERVICE_NAMES, timeout_ms)
        logger.info(f"Found {len(services)} service(s): {services}")
        return services

    async def is_service_available(self, service: str) -> bool:
        return any(s.lower() == service.lower() for s in await self.get_available_services())

    async def open_service_login(self, service: str) -> InteractionOutcome:
        """
        Click a service's Login button.

        Records the current window as primary when none is recorded yet, and
        carries the service name for validation after the redirect.
        """
        if self.tracker.primary is None:
            await self.tracker.record_primary()
        self.tracker.capture_value(CARRIED_SERVICE, service)
        with allure.step(f"Click Login for {service}"):
            element = await self.resolver.require(self.login_button_for(service))
            outcome = await self.actions.perform(element, Click())
            outcome.raise_for_failure()
        await self.pause("menu")
        return outcome

    async def is_role_menu_displayed(self, timeout_ms: int = 3000) -> bool:
        return await self.is_present(self.ROLE_MENU, timeout_ms=timeout_ms)

    async def get_available_roles(self, timeout_ms: Optional[int] = None) -> List[str]:
        roles = await self._visible_texts(self.ROLE_OPTIONS, timeout_ms)
        logger.info(f"Found {len(roles)} role(s): {roles}")
        return roles

    async def select_role(
        self,
        role: str,
        expect_new_window: Optional[bool] = None,
    ) -> NavigationResult:
        """Pick a role from the open menu and follow the sign-in navigation."""
        self.tracker.capture_value(CARRIED_ROLE, role)
        return await self.click_and_follow(self.role_option(role), expect_new_window=expect_new_window)

    async def perform_sso_login(
        self,
        service: str,
        role: str,
        expect_new_window: Optional[bool] = None,
        menu_timeout_ms: int = 3000,
    ) -> NavigationResult:
        """
        Sign in to a service node as a role.

        Services with a single role skip the menu; the Login click itself
        navigates then.
        """
        with allure.step(f"SSO login: {service} as {role}"):
            login_outcome = await self.open_service_login(service)
            if await self.is_role_menu_displayed(menu_timeout_ms):
                return await self.select_role(role, expect_new_window)

            logger.warning(f"⚠️ No role menu for '{service}', following the Login click")
            self.tracker.capture_value(CARRIED_ROLE, role)
            return await self.tracker.follow_navigation(
                login_outcome, expect_new_window=expect_new_window
            )

    # =========================================================================
    # Validation
    # =========================================================================

    async def is_redirected_to_service(
        self,
        service: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> bool:
        """
        Check that the active window shows the service node.

        Args:
            service: Expected service; the carried service name if omitted
        """
        service = service or self.tracker.consume_value(CARRIED_SERVICE)
        checks = [
            ElementVisible(self.service_header(service)),
            TitleContains(service),
            ElementVisible(self.SERVICE_DASHBOARD),
        ]
        matched = await self.tracker.identify_page(checks, timeout_ms)
        if matched:
            logger.info(f"✅ Redirected to {service} ({matched.describe()})")
        else:
            logger.error(f"❌ Not redirected to {service}: {await self.driver.current_url()}")
        return bool(matched)

    async def validate_carried_role(self, timeout_ms: Optional[int] = None) -> bool:
        """Check that the role chosen before the redirect appears on the destination page."""
        role = self.tracker.consume_value(CARRIED_ROLE)
        return bool(await self.tracker.identify_page([SourceContains(role)], timeout_ms))

    # =========================================================================
    # Cleanup
    # =========================================================================

    @allure.step("Return to Service Nodes SSO")
    async def return_to_sso(self) -> None:
        """Close the service node tab (if any) and make sure the SSO screen is shown."""
        await self.tracker.close_and_return_to_primary()
        self.tracker.clear_value(CARRIED_SERVICE)
        self.tracker.clear_value(CARRIED_ROLE)
        if not await self.is_page_loaded():
            logger.info("Not on the SSO screen after returning, opening it from the menu")
            await self.navigate_to_sso()


__all__ = [
    "ServiceNodeSSOPage",
    "CARRIED_SERVICE",
    "CARRIED_ROLE",
]
