"""
Selector Library with hit tracking.

Holds the locator strategy for every lookup purpose, merges operator
overrides loaded from disk in front of the built-in selectors, and records
which selector entry was productive so selector drift shows up in the
statistics before it shows up as an empty manifest.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
import json
import logging

from .locators import BUILTIN_STRATEGIES, LocatorStrategy

logger = logging.getLogger(__name__)


@dataclass
class SelectorStats:
    """Usage statistics for one lookup purpose."""
    hits: dict[str, int] = field(default_factory=dict)  # selector -> productive count
    misses: int = 0
    last_hit: datetime | None = None
    last_selector: str | None = None

    def record_hit(self, selector: str) -> None:
        self.hits[selector] = self.hits.get(selector, 0) + 1
        self.last_hit = datetime.now()
        self.last_selector = selector

    def record_miss(self) -> None:
        self.misses += 1

    @property
    def total_hits(self) -> int:
        return sum(self.hits.values())

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "last_hit": self.last_hit.isoformat() if self.last_hit else None,
            "last_selector": self.last_selector,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SelectorStats":
        """Deserialize from dictionary."""
        last_hit = data.get("last_hit")
        return cls(
            hits=dict(data.get("hits", {})),
            misses=int(data.get("misses", 0)),
            last_hit=datetime.fromisoformat(last_hit) if last_hit else None,
            last_selector=data.get("last_selector"),
        )


class SelectorLibrary:
    """
    Library of locator strategies keyed by purpose.

    Provides:
    - Built-in strategies with operator overrides tried first
    - Per-purpose hit/miss tracking
    - JSON persistence of overrides and statistics
    """

    def __init__(self, storage_path: Path | None = None):
        """
        Initialize the selector library.

        Args:
            storage_path: JSON file holding overrides and statistics
        """
        self.storage_path = Path(storage_path) if storage_path else None
        self._overrides: dict[str, list[str]] = {}  # purpose -> selectors tried first
        self._stats: dict[str, SelectorStats] = {}

        if self.storage_path and self.storage_path.exists():
            self._load()

    def _load(self) -> None:
        """Load overrides and stats from disk."""
        with open(self.storage_path) as f:
            data = json.load(f)
        self._overrides = {
            purpose: [s for s in selectors if isinstance(s, str)]
            for purpose, selectors in data.get("overrides", {}).items()
        }
        self._stats = {
            purpose: SelectorStats.from_dict(stats)
            for purpose, stats in data.get("stats", {}).items()
        }
        if self._overrides:
            logger.info(
                f"Loaded selector overrides for {len(self._overrides)} purpose(s) "
                f"from {self.storage_path}"
            )

    def save(self) -> None:
        """Save overrides and stats to disk."""
        if not self.storage_path:
            return
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.storage_path, "w") as f:
            json.dump({
                "overrides": self._overrides,
                "stats": {
                    purpose: stats.to_dict()
                    for purpose, stats in self._stats.items()
                },
            }, f, indent=2)

    def strategy(self, purpose: str) -> LocatorStrategy:
        """
        Get the strategy for a purpose, overrides first.

        Raises:
            KeyError: If the purpose has neither built-in selectors nor overrides
        """
        overrides = self._overrides.get(purpose, [])
        builtin = BUILTIN_STRATEGIES.get(purpose)
        if builtin is None:
            if not overrides:
                raise KeyError(f"No locator strategy for purpose '{purpose}'")
            return LocatorStrategy(purpose=purpose, selectors=tuple(overrides))
        return builtin.with_overrides(overrides) if overrides else builtin

    def add_override(self, purpose: str, selector: str) -> None:
        """Put ``selector`` in front of the built-in selectors for ``purpose``."""
        selectors = self._overrides.setdefault(purpose, [])
        if selector not in selectors:
            selectors.append(selector)

    def record_hit(self, purpose: str, selector: str) -> None:
        """Record that ``selector`` was the productive entry for ``purpose``."""
        self._stats.setdefault(purpose, SelectorStats()).record_hit(selector)

    def record_miss(self, purpose: str) -> None:
        """Record that no entry for ``purpose`` matched."""
        self._stats.setdefault(purpose, SelectorStats()).record_miss()

    def get_stats(self, purpose: str) -> SelectorStats | None:
        return self._stats.get(purpose)

    def stats(self) -> dict[str, Any]:
        """Get library statistics."""
        degraded = []
        for purpose, stats in self._stats.items():
            builtin = BUILTIN_STRATEGIES.get(purpose)
            # Hits only on the last-resort selector usually mean the UI moved
            if builtin and stats.last_selector == builtin.selectors[-1]:
                degraded.append(purpose)

        return {
            "purpose_count": len(self._stats),
            "override_count": sum(len(s) for s in self._overrides.values()),
            "total_hits": sum(s.total_hits for s in self._stats.values()),
            "total_misses": sum(s.misses for s in self._stats.values()),
            "missing_purposes": sorted(
                purpose for purpose, s in self._stats.items()
                if s.misses and not s.total_hits
            ),
            "degraded_purposes": sorted(degraded),
        }
