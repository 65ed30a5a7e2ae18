"""
Selector cascade resolution.

Tries the entries of a ``LocatorStrategy`` in order against a scope and
commits to the first entry that matches anything. Results from different
entries are never merged: entries describe different DOM shapes, and a mixed
result set would break depth inference downstream.

Both lookups are read-only probes. An empty result is the ``NOT_FOUND``
sentinel, never an exception.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..driver.base import Driver
from ..intelligence.locators import LocatorStrategy
from ..intelligence.selector_library import SelectorLibrary

logger = logging.getLogger(__name__)


class _NotFound:
    """Falsy singleton returned when no strategy entry matches."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter(())

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


@dataclass(frozen=True)
class CascadeMatch:
    """The productive strategy entry and everything it matched."""

    selector: str
    index: int
    elements: tuple

    @property
    def first(self) -> Any:
        return self.elements[0]

    def __bool__(self) -> bool:
        return bool(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)


def _record(library: Optional[SelectorLibrary], strategy: LocatorStrategy, selector: Optional[str]) -> None:
    if library is None:
        return
    if selector is None:
        library.record_miss(strategy.purpose)
    else:
        library.record_hit(strategy.purpose, selector)


async def locate(
    driver: Driver,
    scope: Any,
    strategy: LocatorStrategy,
    timeout_ms: int = 2000,
    library: Optional[SelectorLibrary] = None,
):
    """
    Find the first element matched by the first productive strategy entry.

    Each entry gets its own bounded wait; a timeout or driver error on one
    entry advances the cascade.

    Returns:
        CascadeMatch holding a single element, or NOT_FOUND
    """
    for index, selector in enumerate(strategy):
        try:
            element = await driver.wait_for_selector(scope, selector, timeout_ms)
        except Exception as e:
            logger.debug(f"[{strategy.purpose}] {selector!r} raised {type(e).__name__}: {e}")
            continue
        if element is not None:
            logger.debug(f"[{strategy.purpose}] matched {selector!r}")
            _record(library, strategy, selector)
            return CascadeMatch(selector=selector, index=index, elements=(element,))

    logger.debug(f"[{strategy.purpose}] no selector matched")
    _record(library, strategy, None)
    return NOT_FOUND


async def locate_all(
    driver: Driver,
    scope: Any,
    strategy: LocatorStrategy,
    library: Optional[SelectorLibrary] = None,
):
    """
    Return the full match set of the first strategy entry that matches anything.

    Returns:
        CascadeMatch holding every element of that entry, or NOT_FOUND
    """
    for index, selector in enumerate(strategy):
        try:
            elements = await driver.query_selector_all(scope, selector)
        except Exception as e:
            logger.debug(f"[{strategy.purpose}] {selector!r} raised {type(e).__name__}: {e}")
            continue
        if elements:
            logger.debug(f"[{strategy.purpose}] {selector!r} matched {len(elements)} element(s)")
            _record(library, strategy, selector)
            return CascadeMatch(selector=selector, index=index, elements=tuple(elements))

    logger.debug(f"[{strategy.purpose}] no selector matched")
    _record(library, strategy, None)
    return NOT_FOUND
