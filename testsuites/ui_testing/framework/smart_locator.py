"""
================================================================================
Smart Locator Resolver
================================================================================

Multi-strategy element location with ordered fallbacks.

Resolution rules:
    - Candidates are tried strictly in the order the LocatorSpec gives them
    - A candidate's matches are filtered to displayed elements (and enabled
      ones when the caller needs to interact)
    - The first usable match wins; later candidates are never evaluated
    - A candidate that matches nothing is a miss, not an error
    - When every candidate misses, the whole list is polled again until the
      timeout expires, since the page may still be rendering

Locator health:
    Every resolution that needed a fallback candidate is recorded so that
    stale primary locators show up in a maintenance report.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from loguru import logger

from .driver import BrowserDriver
from .exceptions import LocatorQueryError
from .locator_spec import LocatorCandidate, LocatorSpec
from .results import ELEMENT, CandidateAttempt, NotFound
from .timeouts import TimeoutProfile, get_timeout_profile


@dataclass(frozen=True)
class ResolvedElement:
    """
    A live DOM node plus how it was found.

    Only valid for the document it was resolved in; after navigation the
    node goes stale and the LocatorSpec must be resolved again.

    Attributes:
        spec: The LocatorSpec that was resolved
        candidate: The candidate that produced the node
        strategy_index: 1-based position of that candidate in its LocatorSpec
        node: Driver-specific element handle
        window_handle: Window the node lives in
    """
    spec: LocatorSpec
    candidate: LocatorCandidate
    strategy_index: int
    node: Any
    window_handle: str

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def used_fallback(self) -> bool:
        return self.strategy_index > 1


@dataclass
class LocatorHealth:
    """
    Tracks locator health and usage statistics.

    Attributes:
        element_name: Logical target name
        primary_candidate: The preferred candidate
        used_fallback: Whether a fallback was used
        fallback_index: 1-based index of the fallback used (if any)
        fallback_candidate: The fallback candidate used (if any)
    """
    element_name: str
    primary_candidate: str
    used_fallback: bool = False
    fallback_index: Optional[int] = None
    fallback_candidate: Optional[str] = None


class LocatorResolver:
    """
    Resolves a LocatorSpec to a single usable element.

    Usage:
        >>> resolver = LocatorResolver(driver)
        >>> element = await resolver.resolve(CLOSE_BUTTON)
        >>> if element:
        ...     print(element.strategy_index)
        >>> element = await resolver.require(CLOSE_BUTTON)   # raises when absent
    """

    def __init__(
        self,
        driver: BrowserDriver,
        profile: Optional[TimeoutProfile] = None,
    ):
        """
        Args:
            driver: Browser driver to query
            profile: Timeout profile; the configured one is used if omitted
        """
        self.driver = driver
        self.profile = profile or get_timeout_profile()
        self._health_records: List[LocatorHealth] = []
        self._fallback_used: Dict[str, LocatorHealth] = {}

    async def _usable(self, node: Any, require_interactable: bool) -> bool:
        if not await self.driver.is_displayed(node):
            return False
        if require_interactable and not await self.driver.is_enabled(node):
            return False
        return True

    async def _scan(
        self,
        index: int,
        candidate: LocatorCandidate,
        require_interactable: bool,
        collect_all: bool = False,
    ) -> Tuple[List[Any], CandidateAttempt]:
        """Query one candidate; return its usable nodes (first only unless collect_all)."""
        attempt = CandidateAttempt(strategy_index=index, candidate=candidate.describe())
        try:
            nodes = await self.driver.query(candidate)
        except LocatorQueryError as e:
            attempt.error = str(e)[:120]
            logger.debug(f"Candidate {attempt.candidate} could not be evaluated: {e}")
            return [], attempt

        attempt.matches = len(nodes)
        usable: List[Any] = []
        for node in nodes:
            if await self._usable(node, require_interactable):
                usable.append(node)
                if not collect_all:
                    break
        attempt.usable = len(usable)
        return usable, attempt

    def _record_health(self, spec: LocatorSpec, index: int, candidate: LocatorCandidate) -> None:
        primary = spec.candidates[0].describe()
        if index == 1:
            health = LocatorHealth(element_name=spec.name, primary_candidate=primary)
            logger.debug(f"✅ Element '{spec.name}' found: {candidate.describe()}")
        else:
            health = LocatorHealth(
                element_name=spec.name,
                primary_candidate=primary,
                used_fallback=True,
                fallback_index=index,
                fallback_candidate=candidate.describe(),
            )
            self._fallback_used[spec.name] = health
            logger.warning(
                f"⚠️ Element '{spec.name}' used fallback #{index}: {candidate.describe()}"
            )
        self._health_records.append(health)

    async def resolve(
        self,
        spec: LocatorSpec,
        require_interactable: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> Union[ResolvedElement, NotFound]:
        """
        Locate the first usable element for a spec.

        Args:
            spec: Ordered candidates for one logical target
            require_interactable: Also require the element to be enabled
            timeout_ms: Polling budget; the profile's element timeout if omitted

        Returns:
            ResolvedElement on success, NotFound (falsy) when every candidate
            missed for the whole timeout
        """
        timeout_ms = self.profile.element_timeout_ms if timeout_ms is None else timeout_ms
        start = time.monotonic()
        deadline = start + timeout_ms / 1000
        interval = self.profile.poll_interval_ms / 1000
        polls = 0
        attempts: List[CandidateAttempt] = []

        if not spec.candidates:
            logger.warning(f"LocatorSpec '{spec.name}' has no candidates")
        else:
            while True:
                polls += 1
                attempts = []
                for index, candidate in enumerate(spec.candidates, start=1):
                    usable, attempt = await self._scan(index, candidate, require_interactable)
                    attempts.append(attempt)
                    if usable:
                        self._record_health(spec, index, candidate)
                        return ResolvedElement(
                            spec=spec,
                            candidate=candidate,
                            strategy_index=index,
                            node=usable[0],
                            window_handle=await self.driver.current_handle(),
                        )

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                await asyncio.sleep(min(interval, remaining))

        not_found = NotFound(
            target=spec.name,
            kind=ELEMENT,
            timeout_ms=timeout_ms,
            elapsed_ms=(time.monotonic() - start) * 1000,
            polls=polls,
            attempts=attempts,
        )
        log = logger.info if timeout_ms else logger.debug
        log(f"Element not found:\n{not_found.describe()}")
        return not_found

    async def require(
        self,
        spec: LocatorSpec,
        require_interactable: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> ResolvedElement:
        """
        Locate an element that must be present.

        Raises:
            ElementNotFoundError: naming the target and every strategy tried
        """
        result = await self.resolve(spec, require_interactable, timeout_ms)
        if not result:
            logger.error(f"❌ All locators failed for '{spec.name}': {spec.describe()}")
            result.raise_error()
        return result

    async def resolve_all(
        self,
        spec: LocatorSpec,
        require_interactable: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> List[ResolvedElement]:
        """
        Locate every usable element of the first candidate that has any.

        Meant for repeated widgets such as one-character OTP boxes. Returns an
        empty list when nothing became usable within the timeout.
        """
        timeout_ms = self.profile.element_timeout_ms if timeout_ms is None else timeout_ms
        deadline = time.monotonic() + timeout_ms / 1000
        interval = self.profile.poll_interval_ms / 1000

        while spec.candidates:
            for index, candidate in enumerate(spec.candidates, start=1):
                usable, _ = await self._scan(
                    index, candidate, require_interactable, collect_all=True
                )
                if usable:
                    self._record_health(spec, index, candidate)
                    handle = await self.driver.current_handle()
                    return [
                        ResolvedElement(spec, candidate, index, node, handle)
                        for node in usable
                    ]

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

        logger.info(f"No usable elements for '{spec.name}' within {timeout_ms}ms")
        return []

    async def is_present(self, spec: LocatorSpec, timeout_ms: int = 0) -> bool:
        """Check whether a LocatorSpec resolves to a displayed element (no enabled check)."""
        return bool(await self.resolve(spec, require_interactable=False, timeout_ms=timeout_ms))

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists the targets that needed a fallback candidate; their primary
        candidates are maintenance candidates.
        """
        if not self._fallback_used:
            return "✅ All elements used primary locators. No maintenance needed."

        report_lines = [
            "⚠️ Locator Health Report - Fallbacks Used:",
            "",
            "The following elements used fallback locators.",
            "Consider updating the primary candidates:",
            "",
        ]

        for element_name, health in self._fallback_used.items():
            report_lines.extend([
                f"  [{element_name}]",
                f"    Missed primary: {health.primary_candidate}",
                f"    Used: #{health.fallback_index} -> {health.fallback_candidate}",
                "",
            ])

        return "\n".join(report_lines)

    @property
    def health_records(self) -> List[LocatorHealth]:
        return list(self._health_records)


__all__ = [
    "LocatorResolver",
    "ResolvedElement",
    "LocatorHealth",
]
