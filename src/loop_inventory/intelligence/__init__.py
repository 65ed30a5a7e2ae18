"""
Selector intelligence.

Locator strategies for every lookup the inventory performs, and a library
that layers operator overrides and hit statistics on top of them.
"""

from .locators import (
    LocatorStrategy,
    WORKSPACE_LIST,
    WORKSPACE_ITEM,
    WORKSPACE_ITEM_FALLBACK,
    PAGE_TREE,
    PAGE_ITEM,
    EXPAND_BUTTON,
    COLLAPSED_NODE,
    SCROLL_CONTAINER,
    PAGE_TITLE,
    PAGE_CONTENT,
    APP_READY,
    BUILTIN_STRATEGIES,
    title_strategy,
)
from .selector_library import SelectorLibrary, SelectorStats

__all__ = [
    "LocatorStrategy",
    "WORKSPACE_LIST",
    "WORKSPACE_ITEM",
    "WORKSPACE_ITEM_FALLBACK",
    "PAGE_TREE",
    "PAGE_ITEM",
    "EXPAND_BUTTON",
    "COLLAPSED_NODE",
    "SCROLL_CONTAINER",
    "PAGE_TITLE",
    "PAGE_CONTENT",
    "APP_READY",
    "BUILTIN_STRATEGIES",
    "title_strategy",
    "SelectorLibrary",
    "SelectorStats",
]
