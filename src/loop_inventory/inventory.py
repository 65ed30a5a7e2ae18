"""
Inventory pass: walk the Loop sidebar and build the workspace/page manifest.

Strategy for SPA navigation:

1. Discover workspaces (DOM first, network capture as a fallback).
2. For each workspace, in discovery order: open it, force its virtualized
   page tree to render, capture every row with its depth, resolve
   parent/child links.
3. Collect everything into a ``Manifest``.

A workspace that fails is recorded with its error and an empty page list;
the pass moves on to the next one. The pass always returns a manifest.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .config import InventoryConfig
from .discovery.cascade import locate, locate_all
from .discovery.containers import (
    ContainerDiscovery,
    candidates_from_responses,
    json_predicate,
    resolve_url,
)
from .discovery.depth import infer_depth
from .discovery.hierarchy import resolve_parents
from .discovery.identifiers import IdAllocator
from .discovery.materialize import TreeMaterializer
from .driver.base import Driver
from .exceptions import NavigationError, StaleElementError
from .intelligence.locators import PAGE_ITEM, title_strategy
from .intelligence.selector_library import SelectorLibrary
from .manifest import Manifest, pass_notices
from .models import ContainerEntry, NodeEntry

logger = logging.getLogger(__name__)

PAGE_URL_KEYWORDS = ("pages", "items", "children")
PAGE_LIST_FIELDS = ("value", "pages", "children")
PAGE_DOM_ID_ATTRIBUTES = ("data-page-id", "data-id")


class InventoryRunner:
    """Runs one discovery pass over an exclusively owned driver session."""

    def __init__(
        self,
        driver: Driver,
        config: Optional[InventoryConfig] = None,
        library: Optional[SelectorLibrary] = None,
    ):
        """
        Args:
            driver: Page driver; no other component may use it during the pass
            config: Timeouts and budgets
            library: Selector library for overrides and hit statistics
        """
        self.driver = driver
        self.config = config or InventoryConfig()
        self.library = library
        self.materializer = TreeMaterializer(driver, self.config, library)

    def _strategy(self, builtin):
        return self.library.strategy(builtin.purpose) if self.library else builtin

    async def run(self) -> Manifest:
        """Discover every workspace and its page tree."""
        logger.info("Starting inventory pass")

        notices: List[str] = []
        try:
            if not self.config.is_host_url(self.driver.current_location()):
                await self.driver.navigate(self.config.base_url, timeout_ms=self.config.navigation_timeout_ms)
            await self.driver.pause(self.config.initial_settle_ms)
        except Exception as e:
            notice = f"Could not open {self.config.base_url}: {e}"
            logger.warning(notice)
            notices.append(notice)

        discovery = ContainerDiscovery(self.driver, self.config, self.library)
        containers = await discovery.discover()
        logger.info(f"Found {len(containers)} workspace(s)")

        results: List[ContainerEntry] = []
        for container in containers:
            results.append(await self.inventory_container(container))

        manifest = Manifest(
            containers=results,
            base_url=self.config.base_url,
            notices=notices + list(discovery.notices),
        )
        for notice in pass_notices(manifest):
            logger.warning(notice)
            manifest.notices.append(notice)

        logger.info(
            f"Inventory complete: {manifest.total_containers} workspace(s), "
            f"{manifest.total_pages} page(s), {len(manifest.failed_containers)} failed"
        )
        return manifest

    async def inventory_container(self, container: ContainerEntry) -> ContainerEntry:
        """
        Populate one workspace's page tree.

        Failures past the internal recovery, including the per-workspace
        deadline, are recorded on the entry instead of raised.
        """
        logger.info(f"Workspace {container.title!r}: navigating")
        try:
            pages = await asyncio.wait_for(
                self._inventory_container(container),
                timeout=self.config.container_timeout_s,
            )
        except asyncio.TimeoutError:
            message = f"Timed out after {self.config.container_timeout_s:.0f}s"
            logger.warning(f"Failed to inventory workspace {container.title!r}: {message}")
            return replace(container, children=(), error=message)
        except Exception as e:
            logger.warning(f"Failed to inventory workspace {container.title!r}: {e}")
            return replace(container, children=(), error=str(e) or type(e).__name__)

        logger.info(f"  {len(pages)} page(s) found")
        return replace(container, children=tuple(pages))

    async def _inventory_container(self, container: ContainerEntry) -> List[NodeEntry]:
        await self.navigate_to_container(container)
        await self.driver.pause(self.config.container_settle_ms)
        await self.materializer.materialize()
        return await self.capture_pages(container)

    async def navigate_to_container(self, container: ContainerEntry) -> None:
        """Open a workspace by URL, else by clicking its sidebar entry."""
        if container.location_ref:
            await self.driver.navigate(container.location_ref, timeout_ms=self.config.navigation_timeout_ms)
            return

        match = await locate(
            self.driver, None, title_strategy(container.title),
            self.config.sidebar_click_timeout_ms,
        )
        if match:
            try:
                await self.driver.click(match.first, self.config.sidebar_click_timeout_ms)
                return
            except StaleElementError as e:
                logger.debug(f"Sidebar click on {container.title!r} failed: {e}")

        raise NavigationError(
            f"Could not navigate to workspace {container.title!r}: no URL and sidebar click failed"
        )

    async def capture_pages(self, container: ContainerEntry) -> List[NodeEntry]:
        """Read every rendered row of the outline and resolve the tree."""
        match = await locate_all(self.driver, None, self._strategy(PAGE_ITEM), self.library)
        if not match:
            logger.warning(f"No page rows found in {container.title!r}; trying API capture")
            return await self.capture_pages_from_network(container)

        allocator = IdAllocator()
        nodes: List[NodeEntry] = []
        for index, element in enumerate(match):
            try:
                node = await self.capture_node(element, index, container, allocator)
            except Exception as e:
                # A stale or detached row is skipped; the rest of the outline still counts
                logger.debug(f"[warn] row {index}: {e}")
                continue
            if node is not None:
                nodes.append(node)
                logger.debug(f"  page[{node.depth}] {node.title!r} -> {node.location_ref or '?'}")

        if self.config.resolve_locations_by_click:
            nodes = await self.resolve_locations(nodes)
        return resolve_parents(nodes)

    async def capture_node(
        self,
        element: Any,
        index: int,
        container: ContainerEntry,
        allocator: IdAllocator,
    ) -> Optional[NodeEntry]:
        """One outline row as a NodeEntry, or None for rows that are not pages."""
        title = await self.driver.read_label(element)
        if not title or title == container.title:
            return None

        href = await self.driver.inner_link(element)
        depth = await infer_depth(self.driver, element, self.config.unit_indent_px)

        dom_id = None
        for attribute in PAGE_DOM_ID_ATTRIBUTES:
            dom_id = await self.driver.read_attribute(element, attribute)
            if dom_id:
                break
        node_id = allocator.allocate(dom_id, title, index)

        return NodeEntry(
            id=node_id,
            title=title,
            location_ref=resolve_url(href, self.config.base_url),
            depth=depth,
        )

    async def find_row(self, title: str, occurrence: int = 0) -> Optional[Any]:
        """The ``occurrence``-th rendered row labelled ``title``, from a fresh lookup."""
        match = await locate_all(self.driver, None, self._strategy(PAGE_ITEM))
        seen = 0
        for element in match:
            if await self.driver.read_label(element) != title:
                continue
            if seen == occurrence:
                return element
            seen += 1
        return None

    async def resolve_locations(self, nodes: List[NodeEntry]) -> List[NodeEntry]:
        """
        Fill in missing locations by opening each row.

        Opening a row can re-render the outline, so every row is looked up
        again by title rather than reusing handles from the capture pass.
        """
        occurrences: Dict[str, int] = {}
        resolved = []
        for node in nodes:
            occurrence = occurrences.get(node.title, 0)
            occurrences[node.title] = occurrence + 1
            if node.location_ref:
                resolved.append(node)
                continue

            element = await self.find_row(node.title, occurrence)
            if element is None:
                logger.debug(f"Row {node.title!r} no longer rendered; leaving it without a URL")
                resolved.append(node)
                continue

            location = await self.location_by_activation(element)
            resolved.append(replace(node, location_ref=location) if location else node)
        return resolved

    async def location_by_activation(self, element: Any) -> Optional[str]:
        """
        Click a row and adopt the resulting URL.

        Loop's tree rows often carry no href; the page URL only appears in
        the address bar once the row is opened.
        """
        try:
            await self.driver.click(element, self.config.activation_click_timeout_ms)
        except StaleElementError as e:
            logger.debug(f"Activation click failed: {e}")
            return None
        await self.driver.pause(self.config.activation_settle_ms)

        current = self.driver.current_location()
        if self.config.is_host_url(current) and "/learn" not in current:
            return current
        return None

    async def capture_pages_from_network(self, container: ContainerEntry) -> List[NodeEntry]:
        """Page lists from API responses seen while the workspace reloads."""
        async with self.driver.observe_responses(json_predicate(PAGE_URL_KEYWORDS)) as captured:
            if container.location_ref:
                await self.driver.navigate(container.location_ref, timeout_ms=self.config.navigation_timeout_ms)
            await self.driver.pause(self.config.page_capture_window_ms)

        candidates = candidates_from_responses(list(captured), PAGE_LIST_FIELDS, ("id",))
        allocator = IdAllocator()
        nodes = [
            NodeEntry(
                id=allocator.allocate(candidate.dom_id, candidate.label, index),
                title=candidate.label,
                location_ref=resolve_url(candidate.href, self.config.base_url),
                depth=0,
            )
            for index, candidate in enumerate(candidates)
        ]
        logger.info(f"  {len(nodes)} page(s) recovered from API responses")
        return resolve_parents(nodes)
