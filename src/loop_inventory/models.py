"""Data models for the workspace/page inventory."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class NodeEntry:
    """One page in a workspace outline.

    ``parent_id`` and ``child_ids`` refer to other NodeEntry ids in the same
    outline. They are filled in by ``resolve_parents``; freshly captured
    nodes carry only their depth.
    """

    id: str
    title: str
    location_ref: Optional[str] = None
    depth: int = 0
    parent_id: Optional[str] = None
    child_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.location_ref,
            "depth": self.depth,
            "parentId": self.parent_id,
            "children": list(self.child_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NodeEntry":
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            location_ref=data.get("url"),
            depth=int(data.get("depth") or 0),
            parent_id=data.get("parentId"),
            child_ids=tuple(data.get("children") or ()),
        )


@dataclass(frozen=True)
class ContainerEntry:
    """One top-level workspace and its page outline."""

    id: str
    title: str
    location_ref: Optional[str] = None
    children: tuple[NodeEntry, ...] = ()
    error: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.children)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "url": self.location_ref,
            "pages": [node.to_dict() for node in self.children],
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContainerEntry":
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            location_ref=data.get("url"),
            children=tuple(NodeEntry.from_dict(p) for p in data.get("pages") or ()),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ContainerCandidate:
    """A workspace as seen by one discovery strategy, before it gets an id."""

    label: str
    href: Optional[str] = None
    dom_id: Optional[str] = None

