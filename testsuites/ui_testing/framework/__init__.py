"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based resilient interaction engine for the SPARC console.

Components:
    - locator_spec: Ordered locator candidates per logical target
    - smart_locator: Resolver that walks candidates with polling
    - element_actions: Executor with native-then-scripted fallback
    - session_tracker: Window sessions, carried values, readiness gating
    - driver: BrowserDriver protocol and the Playwright adapter
    - page_base: Base page object composing the above
    - browser_manager: Browser lifecycle management

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager
from .driver import BrowserDriver, PlaywrightDriver
from .element_actions import (
    Click,
    ElementActions,
    FailureReason,
    InteractionOutcome,
    InteractionPath,
    OutcomeStatus,
    ReadText,
    TypeText,
)
from .exceptions import (
    ActionBlockedError,
    ElementNotFoundError,
    NavigationTimeoutError,
    SessionStateError,
    StaleElementError,
    UIAutomationError,
)
from .locator_spec import (
    LocatorCandidate,
    LocatorSpec,
    Strategy,
    by_attribute,
    by_css,
    by_label,
    by_placeholder,
    by_role,
    by_test_id,
    by_text,
    by_xpath,
    xpath_literal,
)
from .page_base import BasePage
from .results import NotFound
from .session_tracker import (
    ElementVisible,
    NavigationResult,
    NavigationState,
    SessionTracker,
    SourceContains,
    TitleContains,
    UrlContains,
    WindowRole,
    WindowSession,
)
from .smart_locator import LocatorResolver, ResolvedElement
from .timeouts import TimeoutProfile, get_settle_delay_ms, get_timeout_profile

__all__ = [
    "BrowserManager",
    "BrowserDriver",
    "PlaywrightDriver",
    "ElementActions",
    "Click",
    "TypeText",
    "ReadText",
    "InteractionOutcome",
    "OutcomeStatus",
    "InteractionPath",
    "FailureReason",
    "UIAutomationError",
    "ElementNotFoundError",
    "StaleElementError",
    "ActionBlockedError",
    "NavigationTimeoutError",
    "SessionStateError",
    "LocatorCandidate",
    "LocatorSpec",
    "Strategy",
    "by_attribute",
    "by_css",
    "by_label",
    "by_placeholder",
    "by_role",
    "by_test_id",
    "by_text",
    "by_xpath",
    "xpath_literal",
    "BasePage",
    "NotFound",
    "SessionTracker",
    "WindowSession",
    "WindowRole",
    "NavigationState",
    "NavigationResult",
    "UrlContains",
    "TitleContains",
    "ElementVisible",
    "SourceContains",
    "LocatorResolver",
    "ResolvedElement",
    "TimeoutProfile",
    "get_timeout_profile",
    "get_settle_delay_ms",
]
