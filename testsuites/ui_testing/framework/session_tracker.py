"""
================================================================================
Session & Navigation Tracker
================================================================================

Window identity, cross-page carried values and page-readiness gating.

Windows:
    The tab a workflow starts in is recorded as PRIMARY. Tabs opened later
    (SSO "Login" buttons with target=_blank) are SPAWNED. Exactly one session
    is active at a time, and the primary stays resolvable after spawned
    windows close.

Carried values:
    A value captured before a navigation (e.g. the selected role name) and
    validated on the destination page. Capturing always overwrites; reading
    never clears.

Navigation:
    follow_navigation() runs one click-triggered navigation through

        IDLE -> ACTION_TRIGGERED -> NO_NEW_WINDOW ------------------> DOM_SETTLING
                                 -> NEW_WINDOW_DETECTED -> SWITCHED -> DOM_SETTLING
        DOM_SETTLING -> SETTLED | TIMED_OUT

    and returns the trail of states it went through.

Bounded waits return values (NotFound / False) instead of raising; callers
decide whether a missing tab or an unsettled DOM is fatal.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import copy
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger

from .driver import BrowserDriver
from .element_actions import InteractionOutcome
from .exceptions import SessionStateError
from .locator_spec import LocatorSpec
from .results import PAGE, WINDOW, CandidateAttempt, NotFound
from .smart_locator import LocatorResolver
from .timeouts import TimeoutProfile, get_settle_delay_ms, get_timeout_profile


class WindowRole(str, Enum):
    PRIMARY = "primary"
    SPAWNED = "spawned"


@dataclass(frozen=True)
class WindowSession:
    """One browser tab/window known to the tracker."""
    handle: str
    role: WindowRole

    @property
    def is_primary(self) -> bool:
        return self.role is WindowRole.PRIMARY


class NavigationState(str, Enum):
    IDLE = "idle"
    ACTION_TRIGGERED = "action_triggered"
    NO_NEW_WINDOW = "no_new_window"
    NEW_WINDOW_DETECTED = "new_window_detected"
    SWITCHED = "switched"
    DOM_SETTLING = "dom_settling"
    SETTLED = "settled"
    TIMED_OUT = "timed_out"


@dataclass
class NavigationResult:
    """
    How a navigation workflow ended.

    Attributes:
        state: Terminal state (SETTLED or TIMED_OUT)
        trail: Every state passed through, in order
        window: Session active at the end
        spawned: Whether the action opened a new window
        elapsed_ms: Wall time of the whole workflow
    """
    state: NavigationState
    trail: List[NavigationState] = field(default_factory=list)
    window: Optional[WindowSession] = None
    spawned: bool = False
    elapsed_ms: float = 0.0

    @property
    def settled(self) -> bool:
        return self.state is NavigationState.SETTLED


# =============================================================================
# Page identity checks
# =============================================================================

@dataclass(frozen=True)
class UrlContains:
    fragment: str

    async def matches(self, driver: BrowserDriver, resolver: LocatorResolver) -> bool:
        return self.fragment in await driver.current_url()

    def describe(self) -> str:
        return f"url contains '{self.fragment}'"


@dataclass(frozen=True)
class TitleContains:
    fragment: str

    async def matches(self, driver: BrowserDriver, resolver: LocatorResolver) -> bool:
        return self.fragment in await driver.title()

    def describe(self) -> str:
        return f"title contains '{self.fragment}'"


@dataclass(frozen=True)
class ElementVisible:
    spec: LocatorSpec

    async def matches(self, driver: BrowserDriver, resolver: LocatorResolver) -> bool:
        return await resolver.is_present(self.spec, timeout_ms=0)

    def describe(self) -> str:
        return f"element '{self.spec.name}' visible"


@dataclass(frozen=True)
class SourceContains:
    text: str

    async def matches(self, driver: BrowserDriver, resolver: LocatorResolver) -> bool:
        return self.text in await driver.page_source()

    def describe(self) -> str:
        return f"page source contains '{self.text}'"


PageCheck = Union[UrlContains, TitleContains, ElementVisible, SourceContains]


# =============================================================================
# Tracker
# =============================================================================

class SessionTracker:
    """
    Owns the window sessions, the active pointer and carried values.

    Usage:
        tracker = SessionTracker(driver)
        await tracker.record_primary()
        outcome = await actions.perform(login_button, Click())
        result = await tracker.follow_navigation(outcome)
        if result.spawned:
            ...
            await tracker.close_and_return_to_primary()
    """

    def __init__(
        self,
        driver: BrowserDriver,
        profile: Optional[TimeoutProfile] = None,
        resolver: Optional[LocatorResolver] = None,
    ):
        self.driver = driver
        self.profile = profile or get_timeout_profile()
        self.resolver = resolver or LocatorResolver(driver, self.profile)
        self._sessions: Dict[str, WindowSession] = {}
        self._primary: Optional[WindowSession] = None
        self._active: Optional[WindowSession] = None
        self._values: Dict[str, Any] = {}

    # =========================================================================
    # Window sessions
    # =========================================================================

    @property
    def primary(self) -> Optional[WindowSession]:
        return self._primary

    @property
    def active(self) -> Optional[WindowSession]:
        return self._active

    @property
    def sessions(self) -> List[WindowSession]:
        return list(self._sessions.values())

    def _require_primary(self) -> WindowSession:
        if self._primary is None:
            raise SessionStateError("No primary window recorded; call record_primary() first")
        return self._primary

    async def record_primary(self) -> WindowSession:
        """Record the current window as primary and forget earlier sessions."""
        handle = await self.driver.current_handle()
        session = WindowSession(handle=handle, role=WindowRole.PRIMARY)
        self._sessions = {handle: session}
        self._primary = session
        self._active = session
        logger.debug(f"Primary window recorded: {handle}")
        return session

    async def await_spawned_window(
        self,
        timeout_ms: Optional[int] = None,
        new_only: bool = False,
    ) -> Union[WindowSession, NotFound]:
        """
        Poll the open windows until one besides the primary exists.

        A window the tracker does not know yet is preferred over an already
        tracked spawned one. It is registered as SPAWNED but not switched to.

        Args:
            timeout_ms: Polling bound; profile window timeout if omitted
            new_only: Ignore spawned windows the tracker already knows

        Returns:
            WindowSession, or NotFound (kind "window") once the timeout expires
        """
        primary = self._require_primary()
        timeout_ms = self.profile.window_timeout_ms if timeout_ms is None else timeout_ms
        start = time.monotonic()
        deadline = start + timeout_ms / 1000
        interval = self.profile.poll_interval_ms / 1000
        polls = 0

        while True:
            polls += 1
            others = [h for h in await self.driver.window_handles() if h != primary.handle]
            new = [h for h in others if h not in self._sessions]
            candidates = new if new_only else (new or others)
            if candidates:
                handle = candidates[-1]
                session = self._sessions.setdefault(
                    handle, WindowSession(handle=handle, role=WindowRole.SPAWNED)
                )
                logger.info(f"🪟 Spawned window detected: {handle} (after {polls} poll(s))")
                return session

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

        not_found = NotFound(
            target="spawned window",
            kind=WINDOW,
            timeout_ms=timeout_ms,
            elapsed_ms=(time.monotonic() - start) * 1000,
            polls=polls,
        )
        logger.info(f"No new window opened within {timeout_ms}ms")
        return not_found

    async def switch_to(self, session: WindowSession) -> WindowSession:
        """Make a session the active one for all subsequent queries."""
        await self.driver.switch_to_window(session.handle)
        self._sessions.setdefault(session.handle, session)
        self._active = session
        logger.debug(f"Active window: {session.handle} ({session.role.value})")
        return session

    async def close_and_return_to_primary(self) -> WindowSession:
        """
        Close the active spawned window and switch back to primary.

        A no-op when the primary is already active.
        """
        primary = self._require_primary()
        active = self._active
        if active is None or active.handle == primary.handle:
            logger.debug("Already on primary window; nothing to close")
            return primary

        if active.handle in await self.driver.window_handles():
            await self.driver.close_window()
            logger.debug(f"Closed window: {active.handle}")
        else:
            logger.debug(f"Window {active.handle} already closed")
        self._sessions.pop(active.handle, None)
        return await self.switch_to(primary)

    async def close_spawned_windows(self) -> int:
        """
        Close every window except the primary and return to it.

        Returns:
            Number of windows closed
        """
        primary = self._require_primary()
        closed = 0
        for handle in await self.driver.window_handles():
            if handle == primary.handle:
                continue
            await self.driver.switch_to_window(handle)
            await self.driver.close_window()
            self._sessions.pop(handle, None)
            closed += 1

        await self.switch_to(primary)
        if closed:
            logger.info(f"Closed {closed} extra window(s), back on primary")
        return closed

    # =========================================================================
    # Carried values
    # =========================================================================

    def capture_value(self, key: str, value: Any) -> None:
        """Store a copy of value under key, replacing whatever was there."""
        self._values[key] = copy.deepcopy(value)
        logger.debug(f"Captured value [{key}] = {value!r}")

    def consume_value(self, key: str) -> Any:
        """
        Return a copy of the captured value. The value stays stored.

        Raises:
            SessionStateError: nothing was captured under key
        """
        if key not in self._values:
            raise SessionStateError(f"No value captured for '{key}'")
        return copy.deepcopy(self._values[key])

    def clear_value(self, key: str) -> None:
        self._values.pop(key, None)

    # =========================================================================
    # Readiness
    # =========================================================================

    async def await_dom_settled(
        self,
        timeout_ms: Optional[int] = None,
        grace_ms: Optional[int] = None,
    ) -> bool:
        """
        Wait for document.readyState == "complete", then a fixed grace delay.

        Args:
            timeout_ms: Bound for the ready-state wait; profile default if omitted
            grace_ms: Delay after the ready state; profile grace if omitted

        Returns:
            True when settled, False when the ready state never arrived
        """
        timeout_ms = self.profile.dom_settle_timeout_ms if timeout_ms is None else timeout_ms
        grace_ms = self.profile.grace_ms if grace_ms is None else grace_ms
        deadline = time.monotonic() + timeout_ms / 1000
        interval = self.profile.poll_interval_ms / 1000

        while True:
            if await self.driver.ready_state() == "complete":
                await asyncio.sleep(grace_ms / 1000)
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

        logger.warning(f"⚠️ DOM did not settle within {timeout_ms}ms")
        return False

    async def follow_navigation(
        self,
        outcome: InteractionOutcome,
        expect_new_window: Optional[bool] = None,
        window_timeout_ms: Optional[int] = None,
        settle_timeout_ms: Optional[int] = None,
    ) -> NavigationResult:
        """
        Track the navigation an interaction triggered.

        Args:
            outcome: Outcome of the triggering interaction; must have succeeded
            expect_new_window: True requires a new window, False skips the
                window wait, None accepts either
            window_timeout_ms: Bound for the spawned-window wait
            settle_timeout_ms: Bound for the ready-state wait

        Raises:
            StaleElementError / ActionBlockedError: the trigger failed
        """
        outcome.raise_for_failure()
        start = time.monotonic()
        trail = [NavigationState.IDLE, NavigationState.ACTION_TRIGGERED]
        spawned = False

        if expect_new_window is False:
            trail.append(NavigationState.NO_NEW_WINDOW)
            grace_ms = get_settle_delay_ms("after_navigation")
        else:
            window = await self.await_spawned_window(window_timeout_ms, new_only=True)
            if window:
                spawned = True
                trail.append(NavigationState.NEW_WINDOW_DETECTED)
                await self.switch_to(window)
                trail.append(NavigationState.SWITCHED)
                grace_ms = get_settle_delay_ms("new_window")
            elif expect_new_window:
                trail.append(NavigationState.TIMED_OUT)
                return self._navigation_result(trail, spawned, start)
            else:
                trail.append(NavigationState.NO_NEW_WINDOW)
                grace_ms = get_settle_delay_ms("after_navigation")

        trail.append(NavigationState.DOM_SETTLING)
        settled = await self.await_dom_settled(settle_timeout_ms, grace_ms)
        trail.append(NavigationState.SETTLED if settled else NavigationState.TIMED_OUT)
        return self._navigation_result(trail, spawned, start)

    def _navigation_result(
        self,
        trail: List[NavigationState],
        spawned: bool,
        start: float,
    ) -> NavigationResult:
        result = NavigationResult(
            state=trail[-1],
            trail=trail,
            window=self._active,
            spawned=spawned,
            elapsed_ms=(time.monotonic() - start) * 1000,
        )
        logger.info(
            f"Navigation {result.state.value}: "
            f"{' -> '.join(s.value for s in trail)} ({result.elapsed_ms:.0f}ms)"
        )
        return result

    # =========================================================================
    # Page identity
    # =========================================================================

    async def identify_page(
        self,
        checks: Sequence[PageCheck],
        timeout_ms: Optional[int] = None,
    ) -> Union[PageCheck, NotFound]:
        """
        Poll ordered page-identity checks; the first one that passes wins.

        Returns:
            The passing check, or NotFound (kind "page")
        """
        timeout_ms = self.profile.element_timeout_ms if timeout_ms is None else timeout_ms
        start = time.monotonic()
        deadline = start + timeout_ms / 1000
        interval = self.profile.poll_interval_ms / 1000
        polls = 0

        while checks:
            polls += 1
            for check in checks:
                if await check.matches(self.driver, self.resolver):
                    logger.debug(f"Page identified by: {check.describe()}")
                    return check
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

        not_found = NotFound(
            target=" | ".join(c.describe() for c in checks) or "<no checks>",
            kind=PAGE,
            timeout_ms=timeout_ms,
            elapsed_ms=(time.monotonic() - start) * 1000,
            polls=polls,
            attempts=[
                CandidateAttempt(strategy_index=i, candidate=c.describe())
                for i, c in enumerate(checks, start=1)
            ],
        )
        logger.info(f"Page not identified:\n{not_found.describe()}")
        return not_found


__all__ = [
    "SessionTracker",
    "WindowSession",
    "WindowRole",
    "NavigationState",
    "NavigationResult",
    "UrlContains",
    "TitleContains",
    "ElementVisible",
    "SourceContains",
    "PageCheck",
]
