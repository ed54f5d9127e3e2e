# ================================================================================
# Timeout Profiles Module
# ================================================================================
#
# Static timeout policy for the UI interaction engine.
#
# Headless runs render slower than an interactive browser, so a single
# configuration switch (browser.headless / BROWSER_HEADLESS) selects one of two
# fixed profiles. Nothing here adapts at runtime.
#
# Key Features:
#   - Two built-in profiles: "interactive" and "headless"
#   - Per-field YAML overrides under timeouts.<profile>.<field>
#   - Named grace delays for screens that keep rendering after "load"
#
# Usage:
#   profile = get_timeout_profile()
#   await asyncio.sleep(get_settle_delay_ms("modal") / 1000)
#
# ================================================================================

from dataclasses import dataclass, fields, replace
from typing import Dict, Optional

from loguru import logger

from sparc_tools.common import get_bool, get_config, get_int


@dataclass(frozen=True)
class TimeoutProfile:
    """
    Timeouts and delays used by the engine, all in milliseconds.

    Attributes:
        name: Profile name ("interactive" or "headless")
        element_timeout_ms: Upper bound for locator resolution polling
        window_timeout_ms: Upper bound for waiting on a spawned tab/window
        dom_settle_timeout_ms: Upper bound for the document load-complete signal
        poll_interval_ms: Sleep between polling passes
        scroll_settle_ms: Pause after scrolling an element into view
        grace_ms: Fixed grace delay after the DOM reports complete
        keystroke_pacing_ms: Delay between characters for paced typing
        native_action_timeout_ms: Budget for one native click/type before fallback
    """
    name: str
    element_timeout_ms: int
    window_timeout_ms: int
    dom_settle_timeout_ms: int
    poll_interval_ms: int = 250
    scroll_settle_ms: int = 100
    grace_ms: int = 500
    keystroke_pacing_ms: int = 100
    native_action_timeout_ms: int = 3000


INTERACTIVE = "interactive"
HEADLESS = "headless"

TIMEOUT_PROFILES: Dict[str, TimeoutProfile] = {
    INTERACTIVE: TimeoutProfile(
        name=INTERACTIVE,
        element_timeout_ms=10000,
        window_timeout_ms=10000,
        dom_settle_timeout_ms=10000,
        poll_interval_ms=250,
        scroll_settle_ms=100,
        grace_ms=500,
        keystroke_pacing_ms=100,
        native_action_timeout_ms=3000,
    ),
    HEADLESS: TimeoutProfile(
        name=HEADLESS,
        element_timeout_ms=20000,
        window_timeout_ms=20000,
        dom_settle_timeout_ms=10000,
        poll_interval_ms=250,
        scroll_settle_ms=300,
        grace_ms=1000,
        keystroke_pacing_ms=100,
        native_action_timeout_ms=5000,
    ),
}

# Grace delays per kind of screen transition
SETTLE_SCENARIOS: Dict[str, int] = {
    "default": 1000,
    "after_navigation": 2000,
    "new_window": 2000,
    "modal": 500,
    "menu": 500,
}


def is_headless_mode() -> bool:
    """
    Whether the constrained/headless profile applies.

    BROWSER_HEADLESS in the environment wins over browser.headless in YAML;
    the default is interactive.
    """
    return get_bool("browser.headless", False)


def get_timeout_profile(name: Optional[str] = None) -> TimeoutProfile:
    """
    Get the active timeout profile with YAML overrides applied.

    Args:
        name: Explicit profile name; derived from is_headless_mode() if omitted

    Returns:
        TimeoutProfile for the selected mode
    """
    if name is None:
        name = HEADLESS if is_headless_mode() else INTERACTIVE

    if name not in TIMEOUT_PROFILES:
        raise ValueError(
            f"Unknown timeout profile: {name}. "
            f"Expected one of: {sorted(TIMEOUT_PROFILES)}"
        )

    profile = TIMEOUT_PROFILES[name]
    overrides = {}
    for f in fields(TimeoutProfile):
        if f.name == "name":
            continue
        key = f"timeouts.{name}.{f.name}"
        if get_config(key) is not None:
            overrides[f.name] = get_int(key, getattr(profile, f.name))

    if overrides:
        logger.debug(f"Timeout profile '{name}' overrides: {overrides}")
        profile = replace(profile, **overrides)

    return profile


def get_settle_delay_ms(scenario: str = "default") -> int:
    """
    Get the grace delay for a kind of screen transition.

    Unknown scenarios fall back to "default".
    """
    key = f"timeouts.settle.{scenario}"
    if scenario in SETTLE_SCENARIOS or get_config(key) is not None:
        return get_int(key, SETTLE_SCENARIOS.get(scenario, SETTLE_SCENARIOS["default"]))
    return get_int("timeouts.settle.default", SETTLE_SCENARIOS["default"])


__all__ = [
    "TimeoutProfile",
    "TIMEOUT_PROFILES",
    "SETTLE_SCENARIOS",
    "INTERACTIVE",
    "HEADLESS",
    "is_headless_mode",
    "get_timeout_profile",
    "get_settle_delay_ms",
]
