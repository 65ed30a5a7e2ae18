"""
Parent/child resolution for a depth-annotated outline.

Rows arrive in document order, each with a depth. A single left-to-right pass
with a stack of ``(depth, id)`` recovers the tree: entries at the same or a
deeper level than the current row cannot be its ancestors and are popped;
whatever remains on top is the parent.

Depths are used as-is. A first row at depth > 0 becomes a root, and
inconsistent depths simply produce more roots.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from ..models import NodeEntry


def resolve_parents(nodes: Iterable[NodeEntry]) -> List[NodeEntry]:
    """
    Assign ``parent_id`` and ``child_ids``, keeping order and depth.

    Args:
        nodes: NodeEntry objects in document order with unique ids

    Returns:
        New NodeEntry objects forming a forest

    Raises:
        ValueError: If two nodes share an id
    """
    order: List[str] = []
    parents: Dict[str, Optional[str]] = {}
    children: Dict[str, List[str]] = {}
    arena: Dict[str, NodeEntry] = {}
    stack: List[tuple] = []  # (depth, id)

    for node in nodes:
        if node.id in arena:
            raise ValueError(f"Duplicate node id in outline: {node.id!r}")
        arena[node.id] = node
        order.append(node.id)
        children[node.id] = []

        while stack and stack[-1][0] >= node.depth:
            stack.pop()

        parent_id = stack[-1][1] if stack else None
        parents[node.id] = parent_id
        if parent_id is not None:
            children[parent_id].append(node.id)

        stack.append((node.depth, node.id))

    return [
        replace(arena[node_id], parent_id=parents[node_id], child_ids=tuple(children[node_id]))
        for node_id in order
    ]


def roots(nodes: Iterable[NodeEntry]) -> List[NodeEntry]:
    """Nodes without a parent, in document order."""
    return [node for node in nodes if node.parent_id is None]
