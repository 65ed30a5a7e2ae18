"""
Driver capability interface.

The inventory engine never talks to Playwright directly. Everything it needs
from a browser page goes through this interface, which keeps the discovery
algorithms testable against an in-memory fake and keeps element handles
ephemeral: a handle is only valid until the next navigation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional


@dataclass(frozen=True)
class CapturedResponse:
    """A JSON response body observed on the network."""

    url: str
    body: Any


@dataclass(frozen=True)
class DepthSignals:
    """Raw nesting signals read from one outline row."""

    own_level: Optional[str] = None  # aria-level on the element itself
    item_level: Optional[str] = None  # aria-level on the nearest treeitem
    group_ancestors: int = 0  # ancestors with role="group"
    padding_left: float = 0.0  # px
    margin_left: float = 0.0  # px


ResponsePredicate = Callable[[str, str], bool]  # (url, content_type) -> bool


class Driver(ABC):
    """Abstract browser page driver.

    ``scope`` arguments accept a previously returned element, or ``None`` for
    the whole document. Every method that waits takes a bounded timeout.
    """

    @abstractmethod
    async def navigate(self, url: str, wait_until: str = "domcontentloaded", timeout_ms: int = 120000) -> None:
        """Navigate the page to ``url``."""

    @abstractmethod
    async def reload(self, wait_until: str = "domcontentloaded", timeout_ms: int = 120000) -> None:
        """Reload the current page."""

    @abstractmethod
    async def wait_for_selector(self, scope: Any, selector: str, timeout_ms: int) -> Optional[Any]:
        """Return the first element matching ``selector`` within ``scope``, or None on timeout."""

    @abstractmethod
    async def query_selector_all(self, scope: Any, selector: str) -> List[Any]:
        """Return every element currently matching ``selector`` within ``scope``."""

    @abstractmethod
    async def read_attribute(self, element: Any, name: str) -> Optional[str]:
        """Read an attribute; None when missing or the handle went stale."""

    @abstractmethod
    async def read_label(self, element: Any) -> Optional[str]:
        """Accessible label if present, else the first line of visible text."""

    @abstractmethod
    async def click(self, element: Any, timeout_ms: int) -> None:
        """Activate an element. Raises if the element cannot be clicked."""

    @abstractmethod
    async def scroll_to_end(self, element: Any) -> None:
        """Scroll a scroll container to its bottom."""

    @abstractmethod
    async def scroll_viewport(self, delta_y: int) -> None:
        """Scroll the viewport with the mouse wheel."""

    @abstractmethod
    async def depth_signals(self, element: Any) -> DepthSignals:
        """Collect nesting signals for an outline row."""

    @abstractmethod
    def observe_responses(self, predicate: ResponsePredicate):
        """Async context manager yielding a list that fills with CapturedResponse objects."""

    @abstractmethod
    def current_location(self) -> str:
        """The page's current URL."""

    @abstractmethod
    async def pause(self, ms: int) -> None:
        """Let the page settle."""

    async def inner_link(self, element: Any) -> Optional[str]:
        """``href`` of the element itself, else of its first descendant anchor."""
        href = await self.read_attribute(element, "href")
        if href:
            return href
        try:
            anchors = await self.query_selector_all(element, "a[href]")
        except Exception:
            return None
        if anchors:
            return await self.read_attribute(anchors[0], "href")
        return None


class ResponseRecorder:
    """Filters and collects responses for ``observe_responses``."""

    def __init__(self, predicate: ResponsePredicate):
        self.predicate = predicate
        self.captured: List[CapturedResponse] = []

    def accepts(self, url: str, content_type: str) -> bool:
        try:
            return bool(self.predicate(url, content_type))
        except Exception:
            return False

    def add(self, url: str, body: Any) -> None:
        self.captured.append(CapturedResponse(url=url, body=body))

