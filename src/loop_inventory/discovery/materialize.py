"""
Tree materialization for Loop's virtualized page tree.

Loop only renders the rows near the viewport and only the children of
expanded rows. Before the outline can be captured it is forced to render by
alternating two moves until the visible row count stops changing:

* expand every collapsed row that is currently rendered
* scroll the tree's scroll container to the bottom so more rows render

The loop is bounded by a pass budget. Running out of passes is not an error:
the caller captures whatever is visible.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..config import InventoryConfig
from ..driver.base import Driver
from ..exceptions import StaleElementError
from ..intelligence.locators import COLLAPSED_NODE, EXPAND_BUTTON, PAGE_ITEM, SCROLL_CONTAINER
from ..intelligence.selector_library import SelectorLibrary
from .cascade import locate_all

logger = logging.getLogger(__name__)


@dataclass
class MaterializationReport:
    """What the pass loop did."""

    passes: int = 0
    counts: List[int] = field(default_factory=list)
    converged: bool = False
    expanded: int = 0

    @property
    def final_count(self) -> int:
        return self.counts[-1] if self.counts else 0


class TreeMaterializer:
    """Drives expand/scroll passes until the outline's row count converges."""

    def __init__(
        self,
        driver: Driver,
        config: Optional[InventoryConfig] = None,
        library: Optional[SelectorLibrary] = None,
    ):
        self.driver = driver
        self.config = config or InventoryConfig()
        self.library = library

    def _strategy(self, builtin):
        return self.library.strategy(builtin.purpose) if self.library else builtin

    async def collapsed_nodes(self, scope: Any = None) -> List[Any]:
        """Rendered rows whose ``aria-expanded`` is literally "false"."""
        match = await locate_all(self.driver, scope, self._strategy(COLLAPSED_NODE), self.library)
        collapsed = []
        for element in match:
            if await self.driver.read_attribute(element, "aria-expanded") == "false":
                collapsed.append(element)
        return collapsed

    async def _expand_one(self, node: Any) -> bool:
        """Click the row's own expand control, else the row itself."""
        timeout = self.config.expand_click_timeout_ms
        for selector in self._strategy(EXPAND_BUTTON):
            try:
                controls = await self.driver.query_selector_all(node, selector)
            except Exception:
                continue
            if not controls:
                continue
            try:
                await self.driver.click(controls[0], timeout)
                return True
            except StaleElementError:
                continue

        try:
            await self.driver.click(node, timeout)
            return True
        except StaleElementError as e:
            logger.debug(f"Could not expand row: {e}")
            return False

    async def expand_collapsed(self, scope: Any = None) -> int:
        """
        Expand collapsed rows until none remain or the iteration cap is hit.

        Returns:
            Number of successful expand clicks
        """
        expanded = 0
        for iteration in range(1, self.config.expand_max_iterations + 1):
            collapsed = await self.collapsed_nodes(scope)
            if not collapsed:
                break
            logger.debug(f"[expand] iteration {iteration}: {len(collapsed)} collapsed row(s)")
            for node in collapsed:
                if await self._expand_one(node):
                    expanded += 1
            await self.driver.pause(self.config.expand_settle_ms)
        return expanded

    async def count_rows(self, scope: Any = None) -> int:
        match = await locate_all(self.driver, scope, self._strategy(PAGE_ITEM), self.library)
        return len(match)

    async def scroll_outline(self) -> bool:
        """Scroll the first scroll container that accepts it, else the viewport."""
        for selector in self._strategy(SCROLL_CONTAINER):
            try:
                containers = await self.driver.query_selector_all(None, selector)
                if not containers:
                    continue
                await self.driver.scroll_to_end(containers[0])
                return True
            except Exception as e:
                logger.debug(f"[scroll] {selector!r} failed: {e}")
                continue

        try:
            await self.driver.scroll_viewport(self.config.scroll_wheel_delta)
            return True
        except Exception as e:
            logger.debug(f"[scroll] viewport scroll failed: {e}")
            return False

    async def materialize(self, scope: Any = None) -> MaterializationReport:
        """
        Force the outline to render completely.

        A positive row count that repeats from the previous pass means the
        outline converged. A repeated count of zero does not: the tree has not
        rendered yet, so passes continue until the budget runs out.
        """
        report = MaterializationReport()
        last_count = -1

        for pass_number in range(1, self.config.max_passes + 1):
            report.passes = pass_number
            report.expanded += await self.expand_collapsed(scope)

            count = await self.count_rows(scope)
            report.counts.append(count)
            logger.debug(f"[tree] pass {pass_number}: visible rows={count}")

            if count > 0 and count == last_count:
                report.converged = True
                break
            last_count = count

            await self.scroll_outline()
            await self.driver.pause(self.config.scroll_settle_ms)

        if report.converged:
            logger.info(f"Outline converged at {report.final_count} row(s) after {report.passes} pass(es)")
        else:
            logger.warning(
                f"Outline did not converge within {self.config.max_passes} passes; "
                f"continuing with {report.final_count} visible row(s)"
            )
        return report
