"""
Workspace (container) discovery.

Three independent strategies, tried in priority order until one returns
candidates:

1. the workspace list in the sidebar, then its items
2. a broad scan of clickable sidebar entries
3. JSON responses captured from the network during a forced reload

Each strategy returns a list of ``ContainerCandidate``; an empty list means
"nothing here" and the next strategy runs. When all of them come back empty
the result is an empty list plus a notice: a changed UI is an expected
operating condition, not an exceptional one.
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import urljoin

from ..config import InventoryConfig
from ..driver.base import CapturedResponse, Driver
from ..intelligence.locators import WORKSPACE_ITEM, WORKSPACE_ITEM_FALLBACK, WORKSPACE_LIST
from ..intelligence.selector_library import SelectorLibrary
from ..models import ContainerCandidate, ContainerEntry
from .cascade import locate, locate_all
from .identifiers import IdAllocator

logger = logging.getLogger(__name__)

WORKSPACE_URL_KEYWORDS = ("workspaces", "containers", "drives")
WORKSPACE_LIST_FIELDS = ("value", "workspaces", "items")
LABEL_FIELDS = ("displayName", "name", "title")
LINK_FIELDS = ("webUrl", "url")
WORKSPACE_ID_FIELDS = ("id", "driveId")
WORKSPACE_DOM_ID_ATTRIBUTES = ("data-workspace-id", "data-id")

NO_CONTAINERS_NOTICE = (
    "Could not discover any workspaces. Loop may have changed its DOM or API; "
    "inspect the selectors (loop-inventory inspect) and add overrides for "
    "'workspace_list' / 'workspace_item'."
)


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Absolute URL for ``href``; None stays None."""
    if not href:
        return None
    if href.startswith("http://") or href.startswith("https://"):
        return href
    return urljoin(base_url, href)


def json_predicate(keywords: Sequence[str]):
    """Response predicate: JSON content whose URL mentions one of ``keywords``."""
    def predicate(url: str, content_type: str) -> bool:
        return "json" in (content_type or "") and any(k in url for k in keywords)
    return predicate


def _first_str(item: dict, fields: Iterable[str]) -> Optional[str]:
    for name in fields:
        value = item.get(name)
        if isinstance(value, (str, int)) and str(value).strip():
            return str(value).strip()
    return None


def extract_list_items(body: Any, list_fields: Sequence[str]) -> List[dict]:
    """Dict items of the first list-shaped field of ``body`` that has any."""
    if isinstance(body, list):
        return [item for item in body if isinstance(item, dict)]
    if not isinstance(body, dict):
        return []
    for name in list_fields:
        value = body.get(name)
        if isinstance(value, list) and value:
            return [item for item in value if isinstance(item, dict)]
    return []


def candidates_from_responses(
    responses: Iterable[CapturedResponse],
    list_fields: Sequence[str] = WORKSPACE_LIST_FIELDS,
    id_fields: Sequence[str] = WORKSPACE_ID_FIELDS,
) -> List[ContainerCandidate]:
    """Workspace candidates from captured API bodies."""
    candidates = []
    for response in responses:
        for item in extract_list_items(response.body, list_fields):
            label = _first_str(item, LABEL_FIELDS)
            if not label:
                continue
            candidates.append(ContainerCandidate(
                label=label,
                href=_first_str(item, LINK_FIELDS),
                dom_id=_first_str(item, id_fields),
            ))
    return candidates


def dedupe_by_label(candidates: Iterable[ContainerCandidate]) -> List[ContainerCandidate]:
    """Drop empty labels and repeated labels, keeping the first occurrence."""
    seen = set()
    unique = []
    for candidate in candidates:
        label = (candidate.label or "").strip()
        if not label or label in seen:
            continue
        seen.add(label)
        unique.append(candidate)
    return unique


class ContainerDiscovery:
    """Enumerates top-level workspaces."""

    def __init__(
        self,
        driver: Driver,
        config: Optional[InventoryConfig] = None,
        library: Optional[SelectorLibrary] = None,
    ):
        self.driver = driver
        self.config = config or InventoryConfig()
        self.library = library
        self.notices: List[str] = []
        self.strategy_used: Optional[str] = None

    def _strategy(self, builtin):
        return self.library.strategy(builtin.purpose) if self.library else builtin

    async def _candidates_from_elements(self, elements: Iterable[Any]) -> List[ContainerCandidate]:
        candidates = []
        for element in elements:
            label = await self.driver.read_label(element)
            if not label:
                continue
            href = await self.driver.inner_link(element)
            dom_id = None
            for attribute in WORKSPACE_DOM_ID_ATTRIBUTES:
                dom_id = await self.driver.read_attribute(element, attribute)
                if dom_id:
                    break
            candidates.append(ContainerCandidate(label=label, href=href, dom_id=dom_id))
        return candidates

    async def from_sidebar_list(self) -> List[ContainerCandidate]:
        """Strategy 1: the workspace list, then the items inside it."""
        list_match = await locate(
            self.driver, None, self._strategy(WORKSPACE_LIST),
            self.config.list_lookup_timeout_ms, self.library,
        )
        if not list_match:
            return []
        items = await locate_all(self.driver, list_match.first, self._strategy(WORKSPACE_ITEM), self.library)
        logger.debug(f"Workspace list matched {list_match.selector!r}; {len(items)} item(s)")
        return await self._candidates_from_elements(items)

    async def from_sidebar_scan(self) -> List[ContainerCandidate]:
        """Strategy 2: any clickable entry in the sidebar."""
        items = await locate_all(self.driver, None, self._strategy(WORKSPACE_ITEM_FALLBACK), self.library)
        return await self._candidates_from_elements(items)

    async def from_network(self) -> List[ContainerCandidate]:
        """Strategy 3: workspace lists in API responses seen during a reload."""
        logger.info("Capturing API responses for workspace data")
        async with self.driver.observe_responses(json_predicate(WORKSPACE_URL_KEYWORDS)) as captured:
            await self.driver.reload(timeout_ms=self.config.navigation_timeout_ms)
            await self.driver.pause(self.config.capture_settle_ms)
        logger.debug(f"Captured {len(captured)} workspace API response(s)")
        return candidates_from_responses(list(captured))

    async def discover(self) -> List[ContainerEntry]:
        """
        Run the strategy chain and turn the first productive result into entries.

        Returns:
            ContainerEntry objects in discovery order with unique ids; empty
            when every strategy came back empty (see ``notices``)
        """
        strategies = (
            ("sidebar_list", self.from_sidebar_list),
            ("sidebar_scan", self.from_sidebar_scan),
            ("network", self.from_network),
        )

        candidates: List[ContainerCandidate] = []
        for name, strategy in strategies:
            try:
                candidates = dedupe_by_label(await strategy())
            except Exception as e:
                logger.warning(f"Workspace strategy '{name}' failed: {e}")
                candidates = []
            if candidates:
                self.strategy_used = name
                logger.info(f"Found {len(candidates)} workspace(s) via {name}")
                break
            logger.warning(f"Workspace strategy '{name}' found nothing")

        if not candidates:
            logger.warning(NO_CONTAINERS_NOTICE)
            self.notices.append(NO_CONTAINERS_NOTICE)
            return []

        allocator = IdAllocator()
        entries = []
        for index, candidate in enumerate(candidates):
            entries.append(ContainerEntry(
                id=allocator.allocate(candidate.dom_id, candidate.label, index),
                title=candidate.label,
                location_ref=resolve_url(candidate.href, self.config.base_url),
            ))
            logger.debug(f"ws: {candidate.label!r} -> {candidate.href or '(no href)'}")
        return entries
