"""
================================================================================
Engine Result Values
================================================================================

Values returned (not raised) by bounded lookups and waits.

`NotFound` is falsy, so callers can branch on it directly:

    element = await resolver.resolve(CLOSE_BUTTON)
    if not element:
        logger.info(f"Close button absent: {element.describe()}")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NoReturn, Optional

from .exceptions import ElementNotFoundError, NavigationTimeoutError


ELEMENT = "element"
WINDOW = "window"
PAGE = "page"


@dataclass
class CandidateAttempt:
    """
    What one candidate produced during the last polling pass.

    Attributes:
        strategy_index: 1-based position of the candidate in its LocatorSpec
        candidate: Human-readable candidate description
        matches: Elements the query returned
        usable: Matches that passed the displayed/enabled filter
        error: Query error, if the candidate could not be evaluated
    """
    strategy_index: int
    candidate: str
    matches: int = 0
    usable: int = 0
    error: Optional[str] = None

    def describe(self) -> str:
        if self.error:
            return f"#{self.strategy_index} {self.candidate} -> error: {self.error}"
        return (
            f"#{self.strategy_index} {self.candidate} -> "
            f"{self.matches} match(es), {self.usable} usable"
        )


@dataclass
class NotFound:
    """
    Expected absence after a bounded search.

    Attributes:
        target: Logical name of what was searched for
        kind: "element", "window" or "page"
        timeout_ms: Budget the search ran under
        elapsed_ms: Time actually spent
        polls: Number of polling passes
        attempts: Per-candidate results of the final pass
    """
    target: str
    kind: str = ELEMENT
    timeout_ms: int = 0
    elapsed_ms: float = 0.0
    polls: int = 0
    attempts: List[CandidateAttempt] = field(default_factory=list)

    def __bool__(self) -> bool:
        return False

    @property
    def strategies(self) -> List[str]:
        return [a.candidate for a in self.attempts]

    def describe(self) -> str:
        lines = [
            f"{self.kind} '{self.target}' not found after {self.elapsed_ms:.0f}ms "
            f"(timeout={self.timeout_ms}ms, polls={self.polls})"
        ]
        lines.extend(f"  - {a.describe()}" for a in self.attempts)
        return "\n".join(lines)

    def raise_error(self) -> NoReturn:
        """Turn the absence into the matching exception."""
        if self.kind == ELEMENT:
            raise ElementNotFoundError(
                self.describe(),
                target=self.target,
                strategies=self.strategies,
                timeout_ms=self.timeout_ms,
            )
        raise NavigationTimeoutError(
            self.describe(),
            target=self.target,
            timeout_ms=self.timeout_ms,
        )


__all__ = [
    "ELEMENT",
    "WINDOW",
    "PAGE",
    "CandidateAttempt",
    "NotFound",
]
