"""
Locator strategies for the Loop single-page app.

Loop is built from Fluent UI and proprietary React components whose class
names are generated at build time and change between deployments. Every
lookup therefore goes through an ordered list of selectors, most specific
first; the cascade resolver commits to the first entry that matches anything.
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class LocatorStrategy:
    """An ordered, immutable list of selector expressions for one purpose."""

    purpose: str
    selectors: tuple[str, ...]

    def __post_init__(self):
        if not self.selectors:
            raise ValueError(f"LocatorStrategy '{self.purpose}' needs at least one selector")

    @classmethod
    def of(cls, purpose: str, *selectors: str) -> "LocatorStrategy":
        return cls(purpose=purpose, selectors=tuple(selectors))

    def with_overrides(self, overrides: Iterable[str]) -> "LocatorStrategy":
        """Return a strategy that tries ``overrides`` before the built-in entries."""
        merged: list[str] = []
        for selector in [*overrides, *self.selectors]:
            if selector and selector not in merged:
                merged.append(selector)
        return LocatorStrategy(purpose=self.purpose, selectors=tuple(merged))

    def __iter__(self):
        return iter(self.selectors)

    def __len__(self) -> int:
        return len(self.selectors)


# ─── Workspaces (containers) ─────────────────────────────────────────────────

WORKSPACE_LIST = LocatorStrategy.of(
    "workspace_list",
    '[data-testid="workspace-list"]',
    '[aria-label="Workspaces"]',
    'ul[class*="WorkspaceList"]',
    'ul[class*="workspaceList"]',
    'nav ul[role="list"]',
    '[class*="workspaceNav"]',
    'aside ul',
    'nav ul',
)

WORKSPACE_ITEM = LocatorStrategy.of(
    "workspace_item",
    '[data-testid="workspace-item"]',
    '[role="treeitem"][aria-label]',
    'li[class*="Workspace"]',
    'li[class*="workspace"]',
    '[class*="workspaceItem"]',
    '[class*="fui-TreeItem"]',
    'aside li',
)

# Broad sidebar scan used when the list container cannot be found
WORKSPACE_ITEM_FALLBACK = LocatorStrategy.of(
    "workspace_item_fallback",
    'aside [role="button"]',
    'aside a',
    'nav [role="button"]',
    'nav a[href*="loop"]',
    '[class*="sidebar"] li',
    '[class*="Sidebar"] li',
)

# ─── Page tree (nodes) ───────────────────────────────────────────────────────

PAGE_TREE = LocatorStrategy.of(
    "page_tree",
    '[data-testid="page-tree"]',
    '[aria-label="Pages"]',
    'ul[class*="PageTree"]',
    'ul[class*="pageTree"]',
    '[class*="pageList"]',
    'ul[role="tree"]',
    '[class*="fui-Tree"]',
)

PAGE_ITEM = LocatorStrategy.of(
    "page_item",
    '[data-testid="page-item"]',
    '[role="treeitem"]',
    'li[class*="Page"]',
    'li[class*="page"]',
    '[class*="pageItem"]',
    '[class*="fui-TreeItem"]',
)

EXPAND_BUTTON = LocatorStrategy.of(
    "expand_button",
    '[aria-expanded][class*="expand"]',
    '[aria-label="Expand"]',
    'button[aria-expanded]',
    '[class*="chevron"]',
    '[class*="Chevron"]',
    '[class*="toggle"]',
    '[class*="fui-TreeItemLayout__expandIcon"]',
)

# A selector hit is not enough: callers still check aria-expanded == "false"
COLLAPSED_NODE = LocatorStrategy.of(
    "collapsed_node",
    '[aria-expanded="false"]',
    *EXPAND_BUTTON.selectors,
)

SCROLL_CONTAINER = LocatorStrategy.of(
    "scroll_container",
    '[role="tree"]',
    'nav[role="navigation"]',
    'aside',
    '[class*="sidebar"]',
    '[class*="Sidebar"]',
    'body',
)

# ─── Page body ───────────────────────────────────────────────────────────────

PAGE_TITLE = LocatorStrategy.of(
    "page_title",
    '[data-testid="page-title"]',
    '[aria-label="Page title"]',
    'h1[class*="PageTitle"]',
    'h1[class*="pageTitle"]',
    '.loop-page-title',
    '[contenteditable="true"][class*="title"]',
    '[contenteditable="true"][placeholder*="title" i]',
    'h1',
)

PAGE_CONTENT = LocatorStrategy.of(
    "page_content",
    '[data-testid="page-content"]',
    '[aria-label="Page content"]',
    '[class*="PageContent"]',
    '[class*="pageContent"]',
    '.loop-canvas',
    '[class*="canvas"]',
    '.ProseMirror',
    '[class*="editor"]',
    'main',
    'article',
    '[role="main"]',
)

# ─── App shell readiness ─────────────────────────────────────────────────────

APP_READY = LocatorStrategy.of(
    "app_ready",
    '[data-app-id="loop"]',
    '[aria-label="Loop"]',
    'nav[role="navigation"]',
    '.loop-canvas',
    '[class*="WorkspaceList"]',
    '[class*="workspaceList"]',
    '[class*="sidebar"]',
    'div[data-testid="workspace-list"]',
    'button[aria-label*="New" i]',
    'a[href*="loop.microsoft.com"]',
    '[role="tree"]',
    '[role="treeitem"]',
)

BUILTIN_STRATEGIES: dict[str, LocatorStrategy] = {
    strategy.purpose: strategy
    for strategy in (
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
    )
}


def title_strategy(title: str) -> LocatorStrategy:
    """Selectors that find a sidebar entry by its visible label."""
    quoted = title.replace('"', '\\"')
    return LocatorStrategy.of(
        "sidebar_title",
        f'[aria-label="{quoted}"]',
        f'text="{quoted}"',
        f'text={quoted[:20]}',
    )
