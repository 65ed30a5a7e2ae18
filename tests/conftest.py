"""Shared fixtures: an in-memory DOM and a driver over it."""

from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

import pytest

from loop_inventory.config import InventoryConfig
from loop_inventory.driver.base import DepthSignals, Driver, ResponseRecorder
from loop_inventory.exceptions import StaleElementError


class FakeElement:
    """A DOM node that matches an explicit set of selectors."""

    def __init__(
        self,
        *selectors: str,
        attrs: Optional[Dict[str, str]] = None,
        text: str = "",
        signals: Optional[DepthSignals] = None,
        on_click: Optional[Callable[["FakeElement"], None]] = None,
        on_scroll: Optional[Callable[["FakeElement"], None]] = None,
    ):
        self.selectors = set(selectors)
        self.attrs = dict(attrs or {})
        self.text = text
        self.signals = signals
        self.on_click = on_click
        self.on_scroll = on_scroll
        self.children: List["FakeElement"] = []
        self.stale = False
        self.clicks = 0

    def add(self, *children: "FakeElement") -> "FakeElement":
        self.children.extend(children)
        return self

    def descendants(self) -> List["FakeElement"]:
        found = []
        for child in self.children:
            found.append(child)
            found.extend(child.descendants())
        return found

    def __repr__(self) -> str:
        return f"FakeElement({self.text or self.attrs!r})"


class FakeDriver(Driver):
    """Driver over a FakeElement tree; records the calls the engine makes."""

    def __init__(self, document: Optional[FakeElement] = None, location: str = "https://loop.cloud.microsoft/"):
        self.document = document or FakeElement()
        self.location = location
        self.navigations: List[str] = []
        self.reloads = 0
        self.pauses: List[int] = []
        self.viewport_scrolls = 0
        self.responses: List[tuple] = []  # (url, content_type, body) served on reload/navigate
        self.routes: Dict[str, Callable[["FakeDriver"], None]] = {}  # url -> page builder
        self.failing_selectors: set = set()
        self._recorders: List[ResponseRecorder] = []

    def _emit_responses(self):
        for recorder in self._recorders:
            for url, content_type, body in self.responses:
                if recorder.accepts(url, content_type):
                    recorder.add(url, body)

    async def navigate(self, url, wait_until="domcontentloaded", timeout_ms=120000):
        self.navigations.append(url)
        self.location = url
        if url in self.routes:
            self.routes[url](self)
        self._emit_responses()

    async def reload(self, wait_until="domcontentloaded", timeout_ms=120000):
        self.reloads += 1
        self._emit_responses()

    def _search(self, scope, selector):
        if selector in self.failing_selectors:
            raise RuntimeError(f"selector engine error: {selector}")
        root = scope if scope is not None else self.document
        if root.stale:
            raise StaleElementError("scope detached")
        return [el for el in root.descendants() if selector in el.selectors]

    async def wait_for_selector(self, scope, selector, timeout_ms):
        found = self._search(scope, selector)
        return found[0] if found else None

    async def query_selector_all(self, scope, selector):
        return self._search(scope, selector)

    async def read_attribute(self, element, name):
        if element.stale:
            return None
        return element.attrs.get(name)

    async def read_label(self, element):
        if element.stale:
            return None
        label = element.attrs.get("aria-label")
        if label and label.strip():
            return label.strip()
        if element.text.strip():
            return element.text.strip().split("\n")[0].strip()
        return None

    async def click(self, element, timeout_ms):
        if element.stale:
            raise StaleElementError("element is not attached to the DOM")
        element.clicks += 1
        if element.on_click:
            element.on_click(element)

    async def scroll_to_end(self, element):
        if element.on_scroll:
            element.on_scroll(element)

    async def scroll_viewport(self, delta_y):
        self.viewport_scrolls += 1

    async def depth_signals(self, element):
        if element.stale or element.signals is None:
            raise StaleElementError("cannot evaluate on element")
        return element.signals

    @asynccontextmanager
    async def observe_responses(self, predicate):
        recorder = ResponseRecorder(predicate)
        self._recorders.append(recorder)
        try:
            yield recorder.captured
        finally:
            self._recorders.remove(recorder)

    def current_location(self):
        return self.location

    async def pause(self, ms):
        self.pauses.append(ms)


def tree_row(title: str, level: Optional[int] = None, href: Optional[str] = None, **attrs) -> FakeElement:
    """A page-tree row matching the built-in PAGE_ITEM ``[role="treeitem"]`` entry."""
    row_attrs = dict(attrs)
    if level is not None:
        row_attrs["aria-level"] = str(level)
    if href:
        row_attrs["href"] = href
    return FakeElement('[role="treeitem"]', attrs=row_attrs, text=title)


@pytest.fixture
def fast_config():
    """InventoryConfig with click resolution off and small budgets."""
    return InventoryConfig(
        resolve_locations_by_click=False,
        max_passes=5,
        expand_max_iterations=5,
    )


@pytest.fixture
def make_driver():
    def factory(*children: FakeElement, location: str = "https://loop.cloud.microsoft/") -> FakeDriver:
        return FakeDriver(FakeElement().add(*children), location=location)
    return factory
