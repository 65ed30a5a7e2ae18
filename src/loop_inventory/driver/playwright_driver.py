"""
Playwright implementation of the driver interface.

Wraps an async Playwright ``Page``. Attribute and label reads treat a
Playwright error as "no value" so a stale handle degrades into a lookup miss
for that one element; clicks raise ``StaleElementError`` so callers decide
whether to skip the element.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..exceptions import StaleElementError
from .base import DepthSignals, Driver, ResponsePredicate, ResponseRecorder

logger = logging.getLogger(__name__)


# Runs in the page. Loop renders nested Fluent Tree components and the row we
# select may be an inner layout node, so levels are also read from the
# closest treeitem.
DEPTH_SIGNALS_SCRIPT = """
(node) => {
    const treeItem = (node.closest && node.closest('[role="treeitem"]')) || node;
    let groups = 0;
    let p = treeItem.parentElement;
    while (p) {
        if (p.getAttribute && p.getAttribute('role') === 'group') groups++;
        p = p.parentElement;
    }
    const style = window.getComputedStyle(treeItem);
    return {
        own_level: node.getAttribute('aria-level'),
        item_level: treeItem.getAttribute ? treeItem.getAttribute('aria-level') : null,
        group_ancestors: groups,
        padding_left: parseFloat(style.paddingLeft || '0') || 0,
        margin_left: parseFloat(style.marginLeft || '0') || 0,
    };
}
"""

SCROLL_TO_END_SCRIPT = "(node) => { node.scrollTop = node.scrollHeight; }"


class PlaywrightDriver(Driver):
    """Driver over a single Playwright page."""

    def __init__(self, page: Page):
        self._page = page

    @property
    def page(self) -> Page:
        return self._page

    async def navigate(self, url: str, wait_until: str = "domcontentloaded", timeout_ms: int = 120000) -> None:
        logger.debug(f"Navigating to {url}")
        await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    async def reload(self, wait_until: str = "domcontentloaded", timeout_ms: int = 120000) -> None:
        await self._page.reload(wait_until=wait_until, timeout=timeout_ms)

    async def wait_for_selector(self, scope: Any, selector: str, timeout_ms: int) -> Optional[Any]:
        target = scope if scope is not None else self._page
        try:
            return await target.wait_for_selector(selector, timeout=timeout_ms, state="attached")
        except PlaywrightTimeoutError:
            return None

    async def query_selector_all(self, scope: Any, selector: str) -> List[Any]:
        target = scope if scope is not None else self._page
        return await target.query_selector_all(selector)

    async def read_attribute(self, element: Any, name: str) -> Optional[str]:
        try:
            return await element.get_attribute(name)
        except PlaywrightError:
            return None

    async def read_label(self, element: Any) -> Optional[str]:
        aria_label = await self.read_attribute(element, "aria-label")
        if aria_label and aria_label.strip():
            return aria_label.strip()
        try:
            text = await element.inner_text()
        except PlaywrightError:
            return None
        if text and text.strip():
            return text.strip().split("\n")[0].strip()
        return None

    async def click(self, element: Any, timeout_ms: int) -> None:
        try:
            await element.click(timeout=timeout_ms)
        except PlaywrightError as e:
            raise StaleElementError(str(e)) from e

    async def scroll_to_end(self, element: Any) -> None:
        await element.evaluate(SCROLL_TO_END_SCRIPT)

    async def scroll_viewport(self, delta_y: int) -> None:
        await self._page.mouse.wheel(0, delta_y)

    async def depth_signals(self, element: Any) -> DepthSignals:
        data = await element.evaluate(DEPTH_SIGNALS_SCRIPT)
        return DepthSignals(
            own_level=data.get("own_level"),
            item_level=data.get("item_level"),
            group_ancestors=int(data.get("group_ancestors") or 0),
            padding_left=float(data.get("padding_left") or 0),
            margin_left=float(data.get("margin_left") or 0),
        )

    @asynccontextmanager
    async def observe_responses(self, predicate: ResponsePredicate):
        recorder = ResponseRecorder(predicate)

        async def on_response(response):
            content_type = response.headers.get("content-type", "")
            if not recorder.accepts(response.url, content_type):
                return
            try:
                body = await response.json()
            except Exception as e:
                logger.debug(f"Ignoring unreadable response body from {response.url}: {e}")
                return
            logger.debug(f"Captured response {response.url}")
            recorder.add(response.url, body)

        self._page.on("response", on_response)
        try:
            yield recorder.captured
        finally:
            self._page.remove_listener("response", on_response)

    def current_location(self) -> str:
        return self._page.url

    async def pause(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)

    async def title(self) -> str:
        try:
            return await self._page.title()
        except PlaywrightError:
            return ""
