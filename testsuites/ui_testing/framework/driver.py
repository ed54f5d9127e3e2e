"""
================================================================================
Browser Driver Surface
================================================================================

The narrow set of browser operations the interaction engine consumes, and
the Playwright adapter that provides them.

Everything above this module (resolver, executor, session tracker, page
objects) talks to a `BrowserDriver`; only `PlaywrightDriver` talks to
Playwright. Driver failures are translated into the engine's own taxonomy:

    - detached node / destroyed execution context -> StaleElementError
    - any other failed action                     -> ActionBlockedError
    - a candidate that cannot be evaluated        -> LocatorQueryError

Window handles are opaque strings ("window-1", "window-2", ...) assigned to
each Page the moment the adapter first sees it.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from loguru import logger
from playwright.async_api import (
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Locator,
    Page,
)

from .exceptions import (
    ActionBlockedError,
    LocatorQueryError,
    SessionStateError,
    StaleElementError,
)
from .locator_spec import LocatorCandidate, Strategy


@runtime_checkable
class BrowserDriver(Protocol):
    """Browser operations consumed by the interaction engine."""

    # DOM query (read-only)
    async def query(self, candidate: LocatorCandidate) -> List[Any]: ...
    async def is_displayed(self, node: Any) -> bool: ...
    async def is_enabled(self, node: Any) -> bool: ...
    async def is_attached(self, node: Any) -> bool: ...

    # Interaction
    async def scroll_into_view(self, node: Any) -> None: ...
    async def native_click(self, node: Any, timeout_ms: int) -> None: ...
    async def script_click(self, node: Any) -> None: ...
    async def clear(self, node: Any) -> None: ...
    async def fill(self, node: Any, text: str) -> None: ...
    async def type_keys(self, node: Any, text: str, delay_ms: int) -> None: ...
    async def script_set_value(self, node: Any, text: str) -> None: ...
    async def read_text(self, node: Any) -> Optional[str]: ...
    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    # Windows
    async def window_handles(self) -> List[str]: ...
    async def current_handle(self) -> str: ...
    async def switch_to_window(self, handle: str) -> None: ...
    async def close_window(self) -> None: ...

    # Document
    async def goto(self, url: str) -> None: ...
    async def current_url(self) -> str: ...
    async def title(self) -> str: ...
    async def page_source(self) -> str: ...
    async def ready_state(self) -> str: ...
    async def screenshot(self) -> bytes: ...


# Lower-cased fragments of Playwright messages that mean the node is gone
STALE_MARKERS = (
    "not attached",
    "detached",
    "execution context was destroyed",
    "has been closed",
    "disposed",
    "cannot find context",
)

SCROLL_INTO_VIEW_JS = "el => el.scrollIntoView({behavior: 'auto', block: 'center'})"
SCRIPT_CLICK_JS = "el => el.click()"
IS_CONNECTED_JS = "el => el.isConnected"
SET_VALUE_JS = """(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}"""


class PlaywrightDriver:
    """
    BrowserDriver backed by a Playwright BrowserContext.

    Usage:
        context = await browser.new_context()
        page = await context.new_page()
        driver = PlaywrightDriver(context, page)
        handles = await driver.window_handles()   # ["window-1"]
    """

    def __init__(self, context: BrowserContext, page: Page):
        self._context = context
        self._pages: Dict[str, Page] = {}
        self._counter = itertools.count(1)
        self._active: Optional[Page] = page

        for existing in context.pages:
            self._register(existing)
        self._register(page)
        self._context.on("page", self._on_new_page)

    # =========================================================================
    # Page bookkeeping
    # =========================================================================

    def _register(self, page: Page) -> str:
        for handle, known in self._pages.items():
            if known is page:
                return handle
        handle = f"window-{next(self._counter)}"
        self._pages[handle] = page
        return handle

    def _on_new_page(self, page: Page) -> None:
        handle = self._register(page)
        logger.debug(f"New window detected: {handle}")

    def _prune(self) -> None:
        live = self._context.pages
        for handle, page in list(self._pages.items()):
            if page.is_closed() or not any(page is p for p in live):
                del self._pages[handle]
        for page in live:
            if not page.is_closed():
                self._register(page)

    @property
    def page(self) -> Page:
        """The active Playwright page."""
        if self._active is None or self._active.is_closed():
            raise SessionStateError("No active window; switch to an open window first")
        return self._active

    @property
    def context(self) -> BrowserContext:
        return self._context

    # =========================================================================
    # Error translation
    # =========================================================================

    @staticmethod
    def _translate(error: PlaywrightError, action: str) -> Exception:
        message = str(error).splitlines()[0] if str(error) else type(error).__name__
        if any(marker in message.lower() for marker in STALE_MARKERS):
            return StaleElementError(f"{action}: element is stale ({message})")
        return ActionBlockedError(f"{action}: {message}", action=action)

    # =========================================================================
    # DOM query
    # =========================================================================

    def _to_locator(self, candidate: LocatorCandidate) -> Locator:
        page = self.page
        strategy = candidate.strategy
        if strategy is Strategy.CSS:
            return page.locator(candidate.value)
        if strategy is Strategy.XPATH:
            return page.locator(f"xpath={candidate.value}")
        if strategy is Strategy.ATTRIBUTE:
            escaped = candidate.value.replace("\\", "\\\\").replace('"', '\\"')
            return page.locator(f'[{candidate.attribute}="{escaped}"]')
        if strategy is Strategy.TEXT:
            return page.get_by_text(candidate.value, exact=candidate.exact)
        if strategy is Strategy.ROLE:
            if candidate.name is None:
                return page.get_by_role(candidate.value)
            return page.get_by_role(candidate.value, name=candidate.name, exact=candidate.exact)
        if strategy is Strategy.TEST_ID:
            return page.get_by_test_id(candidate.value)
        if strategy is Strategy.PLACEHOLDER:
            return page.get_by_placeholder(candidate.value, exact=candidate.exact)
        if strategy is Strategy.LABEL:
            return page.get_by_label(candidate.value, exact=candidate.exact)
        raise LocatorQueryError(f"Unsupported locator strategy: {strategy}")

    async def query(self, candidate: LocatorCandidate) -> List[ElementHandle]:
        try:
            return await self._to_locator(candidate).element_handles()
        except PlaywrightError as e:
            raise LocatorQueryError(f"{candidate.describe()}: {str(e)[:120]}") from e

    async def is_displayed(self, node: ElementHandle) -> bool:
        try:
            return await node.is_visible()
        except PlaywrightError:
            return False

    async def is_enabled(self, node: ElementHandle) -> bool:
        try:
            return await node.is_enabled()
        except PlaywrightError:
            return False

    async def is_attached(self, node: ElementHandle) -> bool:
        try:
            return bool(await node.evaluate(IS_CONNECTED_JS))
        except PlaywrightError:
            return False

    # =========================================================================
    # Interaction
    # =========================================================================

    async def scroll_into_view(self, node: ElementHandle) -> None:
        try:
            await node.evaluate(SCROLL_INTO_VIEW_JS)
        except PlaywrightError as e:
            raise self._translate(e, "scroll_into_view") from e

    async def native_click(self, node: ElementHandle, timeout_ms: int) -> None:
        try:
            await node.click(timeout=timeout_ms)
        except PlaywrightError as e:
            raise self._translate(e, "click") from e

    async def script_click(self, node: ElementHandle) -> None:
        try:
            await node.evaluate(SCRIPT_CLICK_JS)
        except PlaywrightError as e:
            raise self._translate(e, "script_click") from e

    async def clear(self, node: ElementHandle) -> None:
        try:
            await node.fill("")
        except PlaywrightError as e:
            raise self._translate(e, "clear") from e

    async def fill(self, node: ElementHandle, text: str) -> None:
        try:
            await node.fill(text)
        except PlaywrightError as e:
            raise self._translate(e, "fill") from e

    async def type_keys(self, node: ElementHandle, text: str, delay_ms: int) -> None:
        try:
            await node.type(text, delay=delay_ms)
        except PlaywrightError as e:
            raise self._translate(e, "type") from e

    async def script_set_value(self, node: ElementHandle, text: str) -> None:
        try:
            await node.evaluate(SET_VALUE_JS, text)
        except PlaywrightError as e:
            raise self._translate(e, "script_set_value") from e

    async def read_text(self, node: ElementHandle) -> Optional[str]:
        try:
            return await node.inner_text()
        except PlaywrightError as e:
            raise self._translate(e, "read_text") from e

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return await self.page.evaluate(expression, arg)

    # =========================================================================
    # Windows
    # =========================================================================

    async def window_handles(self) -> List[str]:
        self._prune()
        order = {id(page): index for index, page in enumerate(self._context.pages)}
        return sorted(self._pages, key=lambda h: order.get(id(self._pages[h]), len(order)))

    async def current_handle(self) -> str:
        page = self.page
        for handle, known in self._pages.items():
            if known is page:
                return handle
        return self._register(page)

    async def switch_to_window(self, handle: str) -> None:
        self._prune()
        page = self._pages.get(handle)
        if page is None:
            raise SessionStateError(f"No such window: {handle}")
        await page.bring_to_front()
        self._active = page
        logger.debug(f"Switched to window: {handle} ({page.url})")

    async def close_window(self) -> None:
        page = self.page
        await page.close()
        self._prune()
        remaining = [p for p in self._context.pages if not p.is_closed()]
        self._active = remaining[0] if remaining else None

    # =========================================================================
    # Document
    # =========================================================================

    async def goto(self, url: str) -> None:
        await self.page.goto(url, wait_until="domcontentloaded")

    async def current_url(self) -> str:
        return self.page.url

    async def title(self) -> str:
        return await self.page.title()

    async def page_source(self) -> str:
        return await self.page.content()

    async def ready_state(self) -> str:
        try:
            return await self.page.evaluate("() => document.readyState")
        except PlaywrightError:
            # Navigation in flight tears down the execution context
            return "loading"

    async def screenshot(self) -> bytes:
        return await self.page.screenshot(full_page=True)


__all__ = [
    "BrowserDriver",
    "PlaywrightDriver",
    "STALE_MARKERS",
]
