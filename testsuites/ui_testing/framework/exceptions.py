"""
================================================================================
UI Automation Exceptions
================================================================================

Typed failures raised by the interaction engine.

Expected absence (an element that is not on the page, a tab that never
opened) is returned as a `NotFound` value. The exceptions below are what
that value turns into once a caller decides the absence is fatal, plus the
failures that are never expected.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import List, Optional


class UIAutomationError(Exception):
    """Base exception for the UI interaction engine."""
    pass


class ElementNotFoundError(UIAutomationError):
    """Raised when every strategy of a LocatorSpec failed within the timeout."""

    def __init__(
        self,
        message: str,
        target: str = "",
        strategies: Optional[List[str]] = None,
        timeout_ms: Optional[int] = None,
    ):
        super().__init__(message)
        self.target = target
        self.strategies = strategies or []
        self.timeout_ms = timeout_ms


class LocatorQueryError(UIAutomationError):
    """Raised by a driver when a single candidate cannot be evaluated (e.g. malformed XPath)."""
    pass


class StaleElementError(UIAutomationError):
    """Raised when a resolved element is no longer attached to the document."""

    def __init__(self, message: str, target: str = ""):
        super().__init__(message)
        self.target = target


class ActionBlockedError(UIAutomationError):
    """
    Raised when an interaction could not be delivered.

    The executor only raises this after the scripted fallback also failed.
    """

    def __init__(self, message: str, target: str = "", action: str = ""):
        super().__init__(message)
        self.target = target
        self.action = action


class NavigationTimeoutError(UIAutomationError):
    """Raised when a bounded window or DOM wait expired and the caller treats it as fatal."""

    def __init__(self, message: str, target: str = "", timeout_ms: Optional[int] = None):
        super().__init__(message)
        self.target = target
        self.timeout_ms = timeout_ms


class SessionStateError(UIAutomationError):
    """Raised when window tracking is used out of order (e.g. no primary recorded)."""
    pass


__all__ = [
    "UIAutomationError",
    "ElementNotFoundError",
    "LocatorQueryError",
    "StaleElementError",
    "ActionBlockedError",
    "NavigationTimeoutError",
    "SessionStateError",
]
