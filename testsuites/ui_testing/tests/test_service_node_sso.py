"""
================================================================================
Service Node SSO UI Tests (Async / Playwright)
================================================================================

Covers:
  - Super Admin signs in to a service node through the SSO role menu
  - The service node tab is tracked, validated and closed again
  - The chosen role is carried across the window switch

Service names and roles come from the `sso` section of the configuration;
the defaults match the demo console.

================================================================================
"""

from typing import List

import allure
import pytest
from loguru import logger

from sparc_tools.common import get_config
from testsuites.ui_testing.pages.login_page import LoginPage, UserRole
from testsuites.ui_testing.pages.service_node_sso_page import ServiceNodeSSOPage


def sso_targets() -> List[tuple]:
    targets = get_config("sso.targets") or [{"service": "Voice Node", "role": "Admin"}]
    return [(t["service"], t["role"]) for t in targets]


@pytest.fixture
async def sso_screen(login_page: LoginPage, sso_page: ServiceNodeSSOPage) -> ServiceNodeSSOPage:
    """Super Admin session parked on the Service Nodes SSO screen."""
    await login_page.open()
    await login_page.login_as(UserRole.SUPER_ADMIN)
    await sso_page.navigate_to_sso()
    return sso_page


@allure.epic("UI Testing")
@allure.feature("Service Node SSO")
@pytest.mark.e2e
@pytest.mark.sso
class TestServiceNodeSSO:
    """Service node single sign-on suite (async)."""

    @allure.story("Service Discovery")
    @allure.title("SSO screen lists service nodes")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P1
    @pytest.mark.smoke
    @pytest.mark.asyncio
    async def test_services_are_listed(self, sso_screen: ServiceNodeSSOPage):
        services = await sso_screen.get_available_services()
        assert services, "No service nodes shown on the SSO screen"

    @allure.story("Role Login")
    @allure.title("SSO login to {service} as {role}")
    @allure.severity(allure.severity_level.BLOCKER)
    @pytest.mark.P0
    @pytest.mark.regression
    @pytest.mark.asyncio
    @pytest.mark.parametrize("service, role", sso_targets())
    async def test_sso_login(self, sso_screen: ServiceNodeSSOPage, service: str, role: str):
        """Login opens the service node, the role carries over, and the tab closes cleanly."""
        if not await sso_screen.is_service_available(service):
            pytest.skip(f"{service} is not offered on this console")

        result = await sso_screen.perform_sso_login(service, role)
        logger.info(f"Navigation trail: {[state.value for state in result.trail]}")

        with allure.step("Verify service node session"):
            assert result.settled, f"{service} did not finish loading"
            assert await sso_screen.is_redirected_to_service()
            assert await sso_screen.validate_carried_role()

        with allure.step("Return to SSO screen"):
            await sso_screen.return_to_sso()
            assert sso_screen.tracker.active.is_primary
            assert await sso_screen.is_page_loaded()
