"""Manifest model, persistence and validation.

The manifest is the single output of the inventory pass. An export pass
reads it and navigates by each entry's URL and id, without re-crawling the
sidebar.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .discovery.hierarchy import roots
from .exceptions import ManifestError
from .models import ContainerEntry, NodeEntry

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"

NO_LOCATION_NOTICE = (
    "No pages with a URL were found; an export pass would have nothing to fetch. "
    "Check the 'page_item' selectors."
)


@dataclass
class Manifest:
    """Result of one inventory pass."""

    containers: List[ContainerEntry] = field(default_factory=list)
    base_url: Optional[str] = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notices: List[str] = field(default_factory=list)

    @property
    def total_containers(self) -> int:
        return len(self.containers)

    @property
    def total_pages(self) -> int:
        return sum(container.page_count for container in self.containers)

    @property
    def pages_with_location(self) -> int:
        return sum(
            1 for container in self.containers
            for node in container.children if node.location_ref
        )

    @property
    def failed_containers(self) -> List[ContainerEntry]:
        return [c for c in self.containers if c.error]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "loopUrl": self.base_url,
            "totalWorkspaces": self.total_containers,
            "totalPages": self.total_pages,
            "workspaces": [container.to_dict() for container in self.containers],
            "notices": list(self.notices),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        generated_at = data.get("generatedAt")
        return cls(
            containers=[ContainerEntry.from_dict(ws) for ws in data.get("workspaces") or []],
            base_url=data.get("loopUrl"),
            generated_at=datetime.fromisoformat(generated_at) if generated_at else datetime.now(timezone.utc),
            notices=list(data.get("notices") or []),
        )


def pass_notices(manifest: Manifest) -> List[str]:
    """Pass-level warnings derived from the manifest's contents."""
    notices = []
    if manifest.total_containers and not manifest.pages_with_location:
        notices.append(NO_LOCATION_NOTICE)
    return notices


def write_manifest(manifest: Manifest, output_dir: Union[str, Path]) -> Path:
    """Write ``manifest.json`` into ``output_dir``."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    manifest_path = output_path / MANIFEST_FILENAME
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Manifest written to {manifest_path}")
    return manifest_path


def _manifest_path(location: Union[str, Path]) -> Path:
    path = Path(location)
    return path / MANIFEST_FILENAME if path.is_dir() or not path.suffix else path


def load_manifest(location: Union[str, Path]) -> Manifest:
    """
    Load a manifest from a directory or a file path.

    Raises:
        ManifestError: If the file is missing, not JSON, or structurally invalid
    """
    manifest_path = _manifest_path(location)
    if not manifest_path.exists():
        raise ManifestError(
            f"{MANIFEST_FILENAME} not found at {manifest_path}. "
            f"Run 'loop-inventory inventory' first to generate it."
        )
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestError(f"{manifest_path} is not valid JSON: {e}") from e

    for warning in validate_manifest(data):
        logger.warning(warning)
    return Manifest.from_dict(data)


def validate_manifest(data: Any) -> List[str]:
    """
    Check manifest structure.

    Returns:
        Warnings for conditions an operator should look at

    Raises:
        ManifestError: On structural problems
    """
    if not isinstance(data, dict):
        raise ManifestError("Invalid manifest: not an object")
    workspaces = data.get("workspaces")
    if not isinstance(workspaces, list):
        raise ManifestError("Invalid manifest: missing workspaces array")

    warnings = []
    if not workspaces:
        warnings.append(
            "Manifest contains 0 workspaces - nothing to export. "
            "The inventory pass could not read the sidebar; check the selectors."
        )

    missing_url = 0
    for ws in workspaces:
        if not isinstance(ws, dict) or "id" not in ws:
            raise ManifestError("Invalid manifest: workspace entry without id")
        for page in ws.get("pages") or []:
            if not isinstance(page, dict):
                raise ManifestError("Invalid manifest: page entry is not an object")
            if not page.get("url"):
                missing_url += 1
    if missing_url:
        warnings.append(f"{missing_url} page(s) have no URL - they will be skipped during export.")
    return warnings


def _truncate(text: str, length: int) -> str:
    if not text:
        return ""
    return text if len(text) <= length else text[:length - 1] + "…"


def _tree_lines(nodes: List[NodeEntry], indent: int) -> List[str]:
    by_id = {node.id: node for node in nodes}
    lines = []

    def walk(node: NodeEntry, level: int):
        icon = "📁" if node.child_ids else "📄"
        lines.append(f"{'  ' * level}{icon} {_truncate(node.title, 60)}")
        for child_id in node.child_ids:
            child = by_id.get(child_id)
            if child is not None:
                walk(child, level + 1)

    for root in roots(nodes):
        walk(root, indent)
    return lines


def format_summary(manifest: Manifest) -> str:
    """Human-readable summary of a manifest."""
    lines = [
        "=" * 60,
        "Loop Inventory Summary",
        "=" * 60,
        f"Generated : {manifest.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Workspaces: {manifest.total_containers}",
        f"Pages     : {manifest.total_pages}",
        "-" * 60,
    ]
    for container in manifest.containers:
        suffix = f"  ⚠️ {container.error}" if container.error else ""
        lines.append(f"📂 {_truncate(container.title, 50)} ({container.page_count}){suffix}")
        lines.extend(_tree_lines(list(container.children), 1))
    for notice in manifest.notices:
        lines.append(f"⚠️  {notice}")
    lines.append("=" * 60)
    return "\n".join(lines)
