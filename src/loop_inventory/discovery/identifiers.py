"""Stable identifiers for workspaces and pages."""

import re
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: Optional[str], max_length: int = 40) -> str:
    """Lowercase, dash-separated slug of a title; "untitled" when nothing is left."""
    if not title:
        return "untitled"
    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")[:max_length].strip("-")
    return slug or "untitled"


class IdAllocator:
    """
    Hands out ids that are unique within one discovery pass.

    A DOM identifier is used verbatim when present, otherwise the slug of the
    label plus the discovery index. Collisions get an ``_<n>`` suffix at
    allocation time, so ids never change after they are handed out.
    """

    def __init__(self):
        self._used: set[str] = set()

    def allocate(self, dom_id: Optional[str], label: str, index: int) -> str:
        base = dom_id.strip() if dom_id and dom_id.strip() else f"{slugify(label)}_{index}"
        candidate = base
        suffix = 1
        while candidate in self._used:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self._used.add(candidate)
        return candidate

    def __contains__(self, item: str) -> bool:
        return item in self._used

    def __len__(self) -> int:
        return len(self._used)
