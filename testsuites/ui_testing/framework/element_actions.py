# ================================================================================
# Element Actions Module
# ================================================================================
#
# Interaction executor for resolved elements.
#
# Every action follows the same sequence:
#   1. Refuse to act on a node that is no longer attached (reported as stale)
#   2. Scroll the node into view and pause briefly
#   3. Attempt the native action
#   4. If the native action is blocked (overlay, interception), retry once
#      with a scripted action on the SAME node
#
# The executor never re-resolves locators. A stale node is handed back to
# the caller as a failed outcome; resolving again is the caller's decision.
#
# Key Features:
#   - Native-then-scripted click fallback
#   - Block and key-by-key typing, OTP multi-box entry
#   - Trimmed text reads
#   - Outcome history and fallback report for failure-pattern analysis
#   - Allure step integration
#
# ================================================================================

import asyncio
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

import allure
from loguru import logger

from .driver import BrowserDriver
from .exceptions import ActionBlockedError, StaleElementError
from .smart_locator import ResolvedElement
from .timeouts import TimeoutProfile, get_timeout_profile


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SUCCEEDED_VIA_FALLBACK = "succeeded_via_fallback"
    FAILED = "failed"


class InteractionPath(str, Enum):
    NATIVE = "native"
    SCRIPTED = "scripted"


class FailureReason(str, Enum):
    STALE = "stale"
    ACTION_BLOCKED = "action_blocked"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class Click:
    """Click the element."""

    @property
    def name(self) -> str:
        return "click"


@dataclass(frozen=True)
class TypeText:
    """
    Replace the element's content with a value.

    Attributes:
        value: Text to enter
        per_character: Send key by key with pacing instead of as one block
        pacing_ms: Delay between keys; the profile's keystroke pacing if omitted
    """
    value: str
    per_character: bool = False
    pacing_ms: Optional[int] = None

    @property
    def name(self) -> str:
        return "type"


@dataclass(frozen=True)
class ReadText:
    """Read the element's rendered text, trimmed."""

    @property
    def name(self) -> str:
        return "read_text"


Action = Union[Click, TypeText, ReadText]


@dataclass
class InteractionOutcome:
    """
    Result of one attempted action.

    Attributes:
        status: Succeeded, succeeded via fallback, or failed
        target: Logical name of the element acted on
        action: Action name ("click", "type", "read_text", "fill_boxes")
        path: Which path delivered the action (None when nothing did)
        reason: Failure reason when status is FAILED
        error: Message of the error that decided the outcome
        native_error: Message of the native failure that triggered the fallback
        value: Text read by ReadText
    """
    status: OutcomeStatus
    target: str
    action: str
    path: Optional[InteractionPath] = None
    reason: Optional[FailureReason] = None
    error: Optional[str] = None
    native_error: Optional[str] = None
    value: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    @property
    def used_fallback(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED_VIA_FALLBACK

    def raise_for_failure(self) -> "InteractionOutcome":
        """
        Raise the matching exception for a failed outcome.

        Returns:
            self, so calls can be chained on success
        """
        if self.succeeded:
            return self
        message = f"{self.action} on '{self.target}' failed ({self.reason.value}): {self.error}"
        if self.reason is FailureReason.STALE:
            raise StaleElementError(message, target=self.target)
        if self.reason is FailureReason.INVALID_INPUT:
            raise ValueError(message)
        raise ActionBlockedError(message, target=self.target, action=self.action)


class ElementActions:
    """
    Interaction executor for resolved elements.

    Example:
        actions = ElementActions(driver)
        element = await resolver.require(SUBMIT_BUTTON)
        outcome = await actions.perform(element, Click())
        outcome.raise_for_failure()
    """

    def __init__(
        self,
        driver: BrowserDriver,
        profile: Optional[TimeoutProfile] = None,
    ):
        """
        Args:
            driver: Browser driver that delivers the actions
            profile: Timeout profile; the configured one is used if omitted
        """
        self.driver = driver
        self.profile = profile or get_timeout_profile()
        self._history: List[InteractionOutcome] = []

    # =========================================================================
    # Outcome bookkeeping
    # =========================================================================

    def _finish(self, outcome: InteractionOutcome) -> InteractionOutcome:
        self._history.append(outcome)
        if outcome.status is OutcomeStatus.SUCCEEDED:
            logger.debug(f"✅ {outcome.action} '{outcome.target}' via {outcome.path.value}")
        elif outcome.status is OutcomeStatus.SUCCEEDED_VIA_FALLBACK:
            logger.warning(
                f"⚠️ {outcome.action} '{outcome.target}' needed scripted fallback "
                f"(native error: {outcome.native_error})"
            )
        else:
            logger.error(
                f"❌ {outcome.action} '{outcome.target}' failed "
                f"[{outcome.reason.value}]: {outcome.error}"
            )
        return outcome

    def _failed(
        self,
        element: ResolvedElement,
        action: str,
        reason: FailureReason,
        error: Exception,
        native_error: Optional[str] = None,
    ) -> InteractionOutcome:
        return self._finish(InteractionOutcome(
            status=OutcomeStatus.FAILED,
            target=element.name,
            action=action,
            reason=reason,
            error=str(error),
            native_error=native_error,
        ))

    def _succeeded(
        self,
        element: ResolvedElement,
        action: str,
        path: InteractionPath,
        native_error: Optional[str] = None,
        value: Optional[str] = None,
    ) -> InteractionOutcome:
        status = (
            OutcomeStatus.SUCCEEDED
            if path is InteractionPath.NATIVE
            else OutcomeStatus.SUCCEEDED_VIA_FALLBACK
        )
        return self._finish(InteractionOutcome(
            status=status,
            target=element.name,
            action=action,
            path=path,
            native_error=native_error,
            value=value,
        ))

    # =========================================================================
    # Actions
    # =========================================================================

    async def _prepare(self, element: ResolvedElement, action: str) -> Optional[InteractionOutcome]:
        """Staleness check, scroll into view and settle. Returns an outcome only on failure."""
        node = element.node
        if not await self.driver.is_attached(node):
            return self._failed(
                element, action, FailureReason.STALE,
                StaleElementError("element is no longer attached to the document"),
            )
        try:
            await self.driver.scroll_into_view(node)
        except StaleElementError as e:
            return self._failed(element, action, FailureReason.STALE, e)
        except ActionBlockedError as e:
            logger.debug(f"Scroll into view failed for '{element.name}', acting anyway: {e}")
        await asyncio.sleep(self.profile.scroll_settle_ms / 1000)
        return None

    async def perform(self, element: ResolvedElement, action: Action) -> InteractionOutcome:
        """
        Perform one action on a resolved element.

        Args:
            element: Element returned by the resolver
            action: Click(), TypeText(value, ...) or ReadText()

        Returns:
            InteractionOutcome recording which path worked, or why none did
        """
        with allure.step(f"{action.name}: {element.name}"):
            failure = await self._prepare(element, action.name)
            if failure is not None:
                return failure

            if isinstance(action, Click):
                return await self._click(element)
            if isinstance(action, TypeText):
                return await self._type(element, action)
            if isinstance(action, ReadText):
                return await self._read(element)
            raise TypeError(f"Unsupported action: {action!r}")

    async def _click(self, element: ResolvedElement) -> InteractionOutcome:
        node = element.node
        try:
            await self.driver.native_click(node, self.profile.native_action_timeout_ms)
            return self._succeeded(element, "click", InteractionPath.NATIVE)
        except StaleElementError as e:
            return self._failed(element, "click", FailureReason.STALE, e)
        except ActionBlockedError as native:
            logger.info(f"Native click blocked on '{element.name}', using scripted click")
            try:
                await self.driver.script_click(node)
            except StaleElementError as e:
                return self._failed(element, "click", FailureReason.STALE, e, str(native))
            except ActionBlockedError as e:
                return self._failed(element, "click", FailureReason.ACTION_BLOCKED, e, str(native))
            return self._succeeded(element, "click", InteractionPath.SCRIPTED, str(native))

    async def _type(self, element: ResolvedElement, action: TypeText) -> InteractionOutcome:
        node = element.node
        try:
            await self.driver.clear(node)
            if action.per_character:
                pacing = (
                    self.profile.keystroke_pacing_ms
                    if action.pacing_ms is None
                    else action.pacing_ms
                )
                await self.driver.type_keys(node, action.value, pacing)
            else:
                await self.driver.fill(node, action.value)
            return self._succeeded(element, "type", InteractionPath.NATIVE)
        except StaleElementError as e:
            return self._failed(element, "type", FailureReason.STALE, e)
        except ActionBlockedError as native:
            if action.per_character:
                # Paced typing has no scripted equivalent
                return self._failed(element, "type", FailureReason.ACTION_BLOCKED, native)
            logger.info(f"Native typing blocked on '{element.name}', setting value by script")
            try:
                await self.driver.script_set_value(node, action.value)
            except StaleElementError as e:
                return self._failed(element, "type", FailureReason.STALE, e, str(native))
            except ActionBlockedError as e:
                return self._failed(element, "type", FailureReason.ACTION_BLOCKED, e, str(native))
            return self._succeeded(element, "type", InteractionPath.SCRIPTED, str(native))

    async def _read(self, element: ResolvedElement) -> InteractionOutcome:
        try:
            text = await self.driver.read_text(element.node)
        except StaleElementError as e:
            return self._failed(element, "read_text", FailureReason.STALE, e)
        except ActionBlockedError as e:
            return self._failed(element, "read_text", FailureReason.ACTION_BLOCKED, e)
        return self._succeeded(
            element, "read_text", InteractionPath.NATIVE, value=(text or "").strip()
        )

    async def fill_boxes(
        self,
        elements: Sequence[ResolvedElement],
        value: str,
        pacing_ms: Optional[int] = None,
    ) -> InteractionOutcome:
        """
        Enter a value one character per box (OTP-style inputs).

        Args:
            elements: Boxes in visual order, e.g. from resolver.resolve_all()
            value: Characters to distribute over the boxes
            pacing_ms: Pause between boxes; the profile's keystroke pacing if omitted

        Returns:
            The first failed box outcome, or an aggregate success
        """
        target = elements[0].name if elements else "<no boxes>"
        if len(value) > len(elements):
            return self._finish(InteractionOutcome(
                status=OutcomeStatus.FAILED,
                target=target,
                action="fill_boxes",
                reason=FailureReason.INVALID_INPUT,
                error=f"{len(value)} characters for {len(elements)} boxes",
            ))

        pacing = self.profile.keystroke_pacing_ms if pacing_ms is None else pacing_ms
        fallback_used = False
        for index, char in enumerate(value):
            if index:
                await asyncio.sleep(pacing / 1000)
            outcome = await self.perform(elements[index], TypeText(char))
            if not outcome.succeeded:
                return outcome
            fallback_used = fallback_used or outcome.used_fallback

        return self._finish(InteractionOutcome(
            status=(
                OutcomeStatus.SUCCEEDED_VIA_FALLBACK if fallback_used else OutcomeStatus.SUCCEEDED
            ),
            target=target,
            action="fill_boxes",
            path=InteractionPath.SCRIPTED if fallback_used else InteractionPath.NATIVE,
        ))

    # =========================================================================
    # Diagnostics
    # =========================================================================

    @property
    def history(self) -> List[InteractionOutcome]:
        return list(self._history)

    def get_fallback_report(self) -> str:
        """
        Summarize which targets needed the scripted path or failed outright.
        """
        fallbacks = Counter(
            (o.target, o.action) for o in self._history
            if o.status is OutcomeStatus.SUCCEEDED_VIA_FALLBACK
        )
        failures = Counter(
            (o.target, o.action, o.reason.value) for o in self._history
            if o.status is OutcomeStatus.FAILED
        )
        if not fallbacks and not failures:
            return "✅ All interactions succeeded natively."

        lines = ["⚠️ Interaction Report:", ""]
        if fallbacks:
            lines.append("Scripted fallback used:")
            lines.extend(
                f"  [{target}] {action} x{count}"
                for (target, action), count in fallbacks.most_common()
            )
            lines.append("")
        if failures:
            lines.append("Failed:")
            lines.extend(
                f"  [{target}] {action} ({reason}) x{count}"
                for (target, action, reason), count in failures.most_common()
            )
            lines.append("")
        return "\n".join(lines)


__all__ = [
    "ElementActions",
    "Click",
    "TypeText",
    "ReadText",
    "InteractionOutcome",
    "OutcomeStatus",
    "InteractionPath",
    "FailureReason",
]
