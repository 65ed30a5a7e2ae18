"""
Selector diagnostics.

Hit-tests every entry of every locator strategy against the current page
and lists the API responses seen during a reload. The report tells an
operator which selectors still work and what to put in the overrides file
when Loop's DOM changes.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .driver.base import Driver
from .intelligence.locators import BUILTIN_STRATEGIES, LocatorStrategy

logger = logging.getLogger(__name__)

API_HOST_MARKERS = ("graph.microsoft.com", "loop.microsoft.com", "loop.cloud.microsoft", "sharepoint.com")
MAX_SAMPLES = 5


@dataclass
class SelectorProbe:
    """Result of hit-testing one selector."""
    selector: str
    count: int = 0
    samples: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class InspectionReport:
    """Hit-test results per purpose plus observed API calls."""
    url: str
    probes: Dict[str, List[SelectorProbe]] = field(default_factory=dict)
    api_calls: List[str] = field(default_factory=list)

    def productive_selector(self, purpose: str) -> Optional[str]:
        """The entry the cascade would commit to for ``purpose``."""
        for probe in self.probes.get(purpose, []):
            if probe.count > 0:
                return probe.selector
        return None

    def dead_purposes(self) -> List[str]:
        return [p for p in self.probes if self.productive_selector(p) is None]


class SelectorInspector:
    """Runs the diagnostics against one driver."""

    def __init__(self, driver: Driver):
        self.driver = driver

    async def probe(self, selector: str) -> SelectorProbe:
        probe = SelectorProbe(selector=selector)
        try:
            elements = await self.driver.query_selector_all(None, selector)
        except Exception as e:
            probe.error = str(e)
            return probe

        probe.count = len(elements)
        if 0 < probe.count <= MAX_SAMPLES:
            for element in elements:
                label = await self.driver.read_label(element)
                if label:
                    probe.samples.append(label[:60])
        return probe

    async def capture_api_calls(self, settle_ms: int = 3000) -> List[str]:
        """URLs of JSON responses from the app's APIs during a reload."""
        def predicate(url: str, content_type: str) -> bool:
            return any(marker in url for marker in API_HOST_MARKERS)

        async with self.driver.observe_responses(predicate) as captured:
            try:
                await self.driver.reload(wait_until="networkidle", timeout_ms=30000)
            except Exception as e:
                logger.debug(f"Reload during inspection failed: {e}")
            await self.driver.pause(settle_ms)
        return [response.url for response in captured]

    async def run(
        self,
        strategies: Optional[Iterable[LocatorStrategy]] = None,
        capture_network: bool = True,
    ) -> InspectionReport:
        report = InspectionReport(url=self.driver.current_location())
        for strategy in strategies or BUILTIN_STRATEGIES.values():
            report.probes[strategy.purpose] = [await self.probe(s) for s in strategy]
        if capture_network:
            report.api_calls = await self.capture_api_calls()
        return report


def format_report(report: InspectionReport) -> str:
    """Render an inspection report for the terminal."""
    lines = [
        "=" * 60,
        "Loop DOM Inspector",
        f"URL: {report.url}",
        "=" * 60,
    ]
    for purpose, probes in report.probes.items():
        lines.append(f"\n▶ {purpose}")
        for probe in probes:
            if probe.error:
                status = "⚠️  ERROR"
            elif probe.count:
                status = f"✅ {probe.count} match(es)"
            else:
                status = "❌ 0 matches"
            lines.append(f"  {status:<20} {probe.selector}")
            for sample in probe.samples:
                lines.append(f'    → "{sample}"')

    dead = report.dead_purposes()
    if dead:
        lines.append(f"\nNo selector matched for: {', '.join(dead)}")

    lines.append(f"\n▶ API responses ({len(report.api_calls)})")
    for url in report.api_calls[:30]:
        lines.append(f"  {url[:120]}")
    return "\n".join(lines)
