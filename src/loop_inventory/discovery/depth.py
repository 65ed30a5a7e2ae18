"""
Depth inference for outline rows.

Signals are tried in order of authority:

1. ``aria-level`` on the row itself
2. ``aria-level`` on the nearest ``role="treeitem"`` ancestor
3. the number of ``role="group"`` ancestors
4. left indentation (the larger of padding and margin) in unit indents

Visual indentation is last because it depends on theme and viewport.
"""

import logging
from typing import Any, Optional

from ..driver.base import DepthSignals, Driver

logger = logging.getLogger(__name__)

DEFAULT_UNIT_INDENT_PX = 20.0


def _level_to_depth(level: Optional[str]) -> Optional[int]:
    """aria-level is 1-based; None when missing or not an integer."""
    if level is None:
        return None
    try:
        return max(0, int(str(level).strip()) - 1)
    except ValueError:
        return None


def depth_from_signals(signals: DepthSignals, unit_indent: float = DEFAULT_UNIT_INDENT_PX) -> int:
    """Zero-based depth from the first applicable signal."""
    depth = _level_to_depth(signals.own_level)
    if depth is not None:
        return depth

    depth = _level_to_depth(signals.item_level)
    if depth is not None:
        return depth

    if signals.group_ancestors > 0:
        return signals.group_ancestors

    if unit_indent <= 0:
        return 0
    indent = max(signals.padding_left, signals.margin_left)
    return max(0, round(indent / unit_indent))


async def infer_depth(driver: Driver, element: Any, unit_indent: float = DEFAULT_UNIT_INDENT_PX) -> int:
    """
    Nesting depth of one outline row.

    Never raises: a row whose signals cannot be read is placed at depth 0 so
    one malformed row cannot abort the pass.
    """
    try:
        # The row's own level is a cheap attribute read; skip the page script when present
        own_depth = _level_to_depth(await driver.read_attribute(element, "aria-level"))
        if own_depth is not None:
            return own_depth

        signals = await driver.depth_signals(element)
        return depth_from_signals(signals, unit_indent)
    except Exception as e:
        logger.debug(f"Depth signals unavailable ({type(e).__name__}: {e}); using depth 0")
        return 0
