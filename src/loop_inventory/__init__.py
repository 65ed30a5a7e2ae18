"""Inventory of Microsoft Loop workspaces and page trees."""

__version__ = "0.1.0"

from loop_inventory.config import InventoryConfig, settings
from loop_inventory.browser_config import BrowserConfig
from loop_inventory.models import ContainerEntry, NodeEntry
from loop_inventory.manifest import (
    Manifest,
    format_summary,
    load_manifest,
    validate_manifest,
    write_manifest,
)
from loop_inventory.inventory import InventoryRunner
from loop_inventory.exceptions import (
    InventoryError,
    ManifestError,
    NavigationError,
    StaleElementError,
)

# Discovery engine
from loop_inventory.discovery import (
    NOT_FOUND,
    CascadeMatch,
    ContainerDiscovery,
    IdAllocator,
    TreeMaterializer,
    depth_from_signals,
    infer_depth,
    locate,
    locate_all,
    resolve_parents,
    slugify,
)

# Selectors
from loop_inventory.intelligence import LocatorStrategy, SelectorLibrary

# Driver
from loop_inventory.driver import BrowserSession, Driver, PlaywrightDriver

__all__ = [
    # Core
    "InventoryRunner",
    "InventoryConfig",
    "BrowserConfig",
    "settings",
    # Models
    "ContainerEntry",
    "NodeEntry",
    "Manifest",
    "format_summary",
    "load_manifest",
    "validate_manifest",
    "write_manifest",
    # Errors
    "InventoryError",
    "ManifestError",
    "NavigationError",
    "StaleElementError",
    # Discovery
    "NOT_FOUND",
    "CascadeMatch",
    "ContainerDiscovery",
    "IdAllocator",
    "TreeMaterializer",
    "depth_from_signals",
    "infer_depth",
    "locate",
    "locate_all",
    "resolve_parents",
    "slugify",
    # Selectors
    "LocatorStrategy",
    "SelectorLibrary",
    # Driver
    "BrowserSession",
    "Driver",
    "PlaywrightDriver",
]
