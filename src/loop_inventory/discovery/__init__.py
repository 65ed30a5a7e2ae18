"""
Hierarchical content discovery.

Cascade lookups, workspace discovery, outline materialization, depth
inference and parent/child resolution.
"""

from .cascade import NOT_FOUND, CascadeMatch, locate, locate_all
from .containers import ContainerDiscovery, resolve_url
from .depth import DEFAULT_UNIT_INDENT_PX, depth_from_signals, infer_depth
from .hierarchy import resolve_parents, roots
from .identifiers import IdAllocator, slugify
from .materialize import MaterializationReport, TreeMaterializer

__all__ = [
    "NOT_FOUND",
    "CascadeMatch",
    "locate",
    "locate_all",
    "ContainerDiscovery",
    "resolve_url",
    "DEFAULT_UNIT_INDENT_PX",
    "depth_from_signals",
    "infer_depth",
    "resolve_parents",
    "roots",
    "IdAllocator",
    "slugify",
    "MaterializationReport",
    "TreeMaterializer",
]
