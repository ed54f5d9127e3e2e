from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from testsuites.ui_testing.framework.driver import BrowserDriver, PlaywrightDriver
from testsuites.ui_testing.framework.exceptions import (
    ActionBlockedError,
    LocatorQueryError,
    SessionStateError,
    StaleElementError,
)
from testsuites.ui_testing.framework.locator_spec import by_attribute, by_css, by_role, by_xpath
from testsuites.ui_testing.framework.session_tracker import SessionTracker


def fake_page(url: str = "about:blank") -> MagicMock:
    page = MagicMock()
    page.url = url
    page.is_closed.return_value = False
    page.bring_to_front = AsyncMock()
    return page


@pytest.fixture
def context():
    ctx = MagicMock()
    ctx.pages = []
    return ctx


def attach(context, page):
    context.pages.append(page)

    async def close():
        page.is_closed.return_value = True
        context.pages.remove(page)

    page.close = AsyncMock(side_effect=close)
    return page


def test_adapter_satisfies_driver_protocol(context):
    page = attach(context, fake_page())
    assert isinstance(PlaywrightDriver(context, page), BrowserDriver)


@pytest.mark.asyncio
async def test_new_pages_get_sequential_handles(context):
    primary = attach(context, fake_page("https://console.example.com"))
    driver = PlaywrightDriver(context, primary)
    context.on.assert_called_once_with("page", driver._on_new_page)

    spawned = attach(context, fake_page("https://voice.example.com"))
    driver._on_new_page(spawned)

    assert await driver.window_handles() == ["window-1", "window-2"]
    assert await driver.current_handle() == "window-1"


@pytest.mark.asyncio
async def test_switch_and_close_window(context):
    primary = attach(context, fake_page())
    driver = PlaywrightDriver(context, primary)
    spawned = attach(context, fake_page())
    driver._on_new_page(spawned)

    await driver.switch_to_window("window-2")
    spawned.bring_to_front.assert_awaited_once()
    assert await driver.current_handle() == "window-2"

    await driver.close_window()
    assert await driver.window_handles() == ["window-1"]
    assert driver.page is primary


@pytest.mark.asyncio
async def test_tracker_returns_to_primary_when_spawned_page_closed_itself(context, profile):
    primary = attach(context, fake_page("https://console.example.com/service-nodes-sso"))
    driver = PlaywrightDriver(context, primary)
    tracker = SessionTracker(driver, profile)
    await tracker.record_primary()

    spawned = attach(context, fake_page("https://voice.example.com/home"))
    driver._on_new_page(spawned)
    await tracker.switch_to(await tracker.await_spawned_window(timeout_ms=50))
    await spawned.close()

    back = await tracker.close_and_return_to_primary()

    assert back.is_primary
    assert driver.page is primary
    assert await driver.window_handles() == ["window-1"]
    spawned.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_switch_to_unknown_window_raises(context):
    driver = PlaywrightDriver(context, attach(context, fake_page()))
    with pytest.raises(SessionStateError):
        await driver.switch_to_window("window-9")


@pytest.mark.asyncio
async def test_detached_errors_become_stale(context):
    driver = PlaywrightDriver(context, attach(context, fake_page()))
    node = MagicMock()
    node.click = AsyncMock(side_effect=PlaywrightError("Element is not attached to the DOM"))

    with pytest.raises(StaleElementError):
        await driver.native_click(node, timeout_ms=50)


@pytest.mark.asyncio
async def test_intercepted_click_becomes_action_blocked(context):
    driver = PlaywrightDriver(context, attach(context, fake_page()))
    node = MagicMock()
    node.click = AsyncMock(
        side_effect=PlaywrightError("Timeout 50ms exceeded. <div class=overlay> intercepts pointer events")
    )

    with pytest.raises(ActionBlockedError) as exc_info:
        await driver.native_click(node, timeout_ms=50)
    assert exc_info.value.action == "click"


@pytest.mark.asyncio
async def test_query_maps_candidates_to_playwright_selectors(context):
    page = attach(context, fake_page())
    locator = MagicMock()
    locator.element_handles = AsyncMock(return_value=["node"])
    page.locator.return_value = locator
    page.get_by_role.return_value = locator
    driver = PlaywrightDriver(context, page)

    assert await driver.query(by_css("#submit")) == ["node"]
    page.locator.assert_called_with("#submit")

    await driver.query(by_xpath("//button"))
    page.locator.assert_called_with("xpath=//button")

    await driver.query(by_attribute("data-test", "close"))
    page.locator.assert_called_with('[data-test="close"]')

    await driver.query(by_role("button", name="Close"))
    page.get_by_role.assert_called_with("button", name="Close", exact=False)


@pytest.mark.asyncio
async def test_query_error_becomes_locator_query_error(context):
    page = attach(context, fake_page())
    locator = MagicMock()
    locator.element_handles = AsyncMock(side_effect=PlaywrightError("Unexpected token in selector"))
    page.locator.return_value = locator
    driver = PlaywrightDriver(context, page)

    with pytest.raises(LocatorQueryError):
        await driver.query(by_xpath("//div["))


@pytest.mark.asyncio
async def test_ready_state_reports_loading_during_navigation(context):
    page = attach(context, fake_page())
    page.evaluate = AsyncMock(side_effect=PlaywrightError("Execution context was destroyed"))
    driver = PlaywrightDriver(context, page)

    assert await driver.ready_state() == "loading"
