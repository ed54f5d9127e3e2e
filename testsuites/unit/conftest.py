"""
================================================================================
Unit Test Configuration
================================================================================

In-memory browser driver for exercising the interaction engine without a
browser. The fake counts every query and action so tests can assert on
ordering and short-circuiting, and can schedule windows or elements to
appear after a delay.

================================================================================
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import pytest
import yaml

from sparc_tools.common import reset_config, set_config
from testsuites.ui_testing.framework.exceptions import (
    LocatorQueryError,
    SessionStateError,
    StaleElementError,
)
from testsuites.ui_testing.framework.locator_spec import LocatorCandidate
from testsuites.ui_testing.framework.timeouts import TimeoutProfile


@dataclass(eq=False)
class FakeNode:
    """A DOM node with scriptable failures."""
    name: str
    displayed: bool = True
    enabled: bool = True
    attached: bool = True
    text: Optional[str] = ""
    value: str = ""
    native_click_error: Optional[Exception] = None
    script_click_error: Optional[Exception] = None
    fill_error: Optional[Exception] = None
    script_value_error: Optional[Exception] = None

    def __repr__(self) -> str:
        return f"FakeNode({self.name})"


@dataclass
class FakeWindow:
    handle: str
    url: str = "about:blank"
    title: str = ""
    source: str = "<html></html>"
    ready_at: float = 0.0
    elements: Dict[LocatorCandidate, List[FakeNode]] = field(default_factory=dict)


class FakeDriver:
    """BrowserDriver double backed by dictionaries."""

    def __init__(self):
        self.windows: Dict[str, FakeWindow] = {"window-1": FakeWindow("window-1")}
        self.active: Optional[str] = "window-1"
        self.queries: List[LocatorCandidate] = []
        self.calls: List[Tuple[str, str]] = []
        self.broken_candidates: List[LocatorCandidate] = []
        self._scheduled: List[Tuple[float, Callable[[], None]]] = []

    # -- setup helpers ---------------------------------------------------------

    def add(self, candidate: LocatorCandidate, *nodes: FakeNode, window: Optional[str] = None) -> None:
        target = self.windows[window or self.active]
        target.elements.setdefault(candidate, []).extend(nodes)

    def add_later(self, candidate: LocatorCandidate, node: FakeNode, delay_ms: int) -> None:
        window = self.active
        self._schedule(delay_ms, lambda: self.add(candidate, node, window=window))

    def open_window(self, handle: str, **attrs) -> FakeWindow:
        window = FakeWindow(handle, **attrs)
        self.windows[handle] = window
        return window

    def open_window_later(self, handle: str, delay_ms: int, **attrs) -> None:
        self._schedule(delay_ms, lambda: self.open_window(handle, **attrs))

    def loading_for(self, delay_ms: int) -> None:
        self.windows[self.active].ready_at = time.monotonic() + delay_ms / 1000

    def _schedule(self, delay_ms: int, event: Callable[[], None]) -> None:
        self._scheduled.append((time.monotonic() + delay_ms / 1000, event))

    def _tick(self) -> None:
        now = time.monotonic()
        due = [item for item in self._scheduled if item[0] <= now]
        self._scheduled = [item for item in self._scheduled if item[0] > now]
        for _, event in due:
            event()

    def _window(self) -> FakeWindow:
        if self.active is None:
            raise SessionStateError("No active window")
        return self.windows[self.active]

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    # -- DOM query -------------------------------------------------------------

    async def query(self, candidate: LocatorCandidate) -> List[FakeNode]:
        self._tick()
        self.queries.append(candidate)
        if candidate in self.broken_candidates:
            raise LocatorQueryError(f"cannot evaluate {candidate.describe()}")
        return list(self._window().elements.get(candidate, []))

    async def is_displayed(self, node: FakeNode) -> bool:
        return node.attached and node.displayed

    async def is_enabled(self, node: FakeNode) -> bool:
        return node.attached and node.enabled

    async def is_attached(self, node: FakeNode) -> bool:
        return node.attached

    # -- interaction -----------------------------------------------------------

    def _act(self, method: str, node: FakeNode) -> None:
        self.calls.append((method, node.name))
        if not node.attached:
            raise StaleElementError(f"{method}: element is stale")

    async def scroll_into_view(self, node: FakeNode) -> None:
        self._act("scroll_into_view", node)

    async def native_click(self, node: FakeNode, timeout_ms: int) -> None:
        self._act("native_click", node)
        if node.native_click_error:
            raise node.native_click_error

    async def script_click(self, node: FakeNode) -> None:
        self._act("script_click", node)
        if node.script_click_error:
            raise node.script_click_error

    async def clear(self, node: FakeNode) -> None:
        self._act("clear", node)
        node.value = ""

    async def fill(self, node: FakeNode, text: str) -> None:
        self._act("fill", node)
        if node.fill_error:
            raise node.fill_error
        node.value = text

    async def type_keys(self, node: FakeNode, text: str, delay_ms: int) -> None:
        self._act("type_keys", node)
        if node.fill_error:
            raise node.fill_error
        node.value += text

    async def script_set_value(self, node: FakeNode, text: str) -> None:
        self._act("script_set_value", node)
        if node.script_value_error:
            raise node.script_value_error
        node.value = text

    async def read_text(self, node: FakeNode) -> Optional[str]:
        self._act("read_text", node)
        return node.text

    async def evaluate(self, expression: str, arg=None):
        return None

    # -- windows ---------------------------------------------------------------

    async def window_handles(self) -> List[str]:
        self._tick()
        return list(self.windows)

    async def current_handle(self) -> str:
        return self._window().handle

    async def switch_to_window(self, handle: str) -> None:
        self._tick()
        if handle not in self.windows:
            raise SessionStateError(f"No such window: {handle}")
        self.calls.append(("switch_to_window", handle))
        self.active = handle

    async def close_window(self) -> None:
        window = self._window()
        self.calls.append(("close_window", window.handle))
        del self.windows[window.handle]
        self.active = next(iter(self.windows), None)

    # -- document --------------------------------------------------------------

    async def goto(self, url: str) -> None:
        self._window().url = url

    async def current_url(self) -> str:
        return self._window().url

    async def title(self) -> str:
        return self._window().title

    async def page_source(self) -> str:
        return self._window().source

    async def ready_state(self) -> str:
        return "complete" if time.monotonic() >= self._window().ready_at else "loading"

    async def screenshot(self) -> bytes:
        return b"\x89PNG\r\n\x1a\n"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def _fast_settle_delays():
    """Zero the named grace delays so navigation tests stay fast."""
    reset_config()
    for scenario in ("default", "after_navigation", "new_window", "modal", "menu"):
        set_config(f"timeouts.settle.{scenario}", 0)
    yield
    reset_config()


@pytest.fixture
def profile() -> TimeoutProfile:
    return TimeoutProfile(
        name="unit",
        element_timeout_ms=200,
        window_timeout_ms=300,
        dom_settle_timeout_ms=300,
        poll_interval_ms=10,
        scroll_settle_ms=0,
        grace_ms=0,
        keystroke_pacing_ms=0,
        native_action_timeout_ms=50,
    )


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def make_node() -> Callable[..., FakeNode]:
    return FakeNode


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """
    Point configuration loading at an empty temp directory.

    Returns a writer: config_dir("config.yaml", {...}) drops a YAML file and
    reloads on next access.
    """
    from sparc_tools.common import global_config

    monkeypatch.setattr(global_config, "CONFIG_DIR_CANDIDATES", [tmp_path])
    for name in ("ENV", "ENVIRONMENT", "BROWSER_HEADLESS", "UI_BASE_URL", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    reset_config()

    def write(filename: str, data: dict):
        (tmp_path / filename).write_text(yaml.safe_dump(data), encoding="utf-8")
        reset_config()

    return write
