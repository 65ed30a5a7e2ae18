"""Exceptions raised by the inventory engine.

Lookup misses are not exceptions: the cascade resolver returns ``NOT_FOUND``.
These types cover the failures that do propagate to a caller.
"""


class InventoryError(Exception):
    """Base class for inventory failures."""


class NavigationError(InventoryError):
    """A container or page could not be navigated to."""


class StaleElementError(InventoryError):
    """An element handle no longer refers to a live DOM node."""


class ManifestError(InventoryError):
    """A manifest file is missing or structurally invalid."""
