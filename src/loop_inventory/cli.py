"""Command-line interface for the Loop inventory."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

from loop_inventory.browser_config import HEADLESS_CONFIG, INTERACTIVE_CONFIG, BrowserConfig
from loop_inventory.config import InventoryConfig, settings
from loop_inventory.exceptions import InventoryError, ManifestError
from loop_inventory.intelligence.selector_library import SelectorLibrary
from loop_inventory.logging_config import get_logger, setup_logging
from loop_inventory.manifest import format_summary, load_manifest, write_manifest

logger = get_logger(__name__)


def _build_config(args) -> InventoryConfig:
    config = InventoryConfig.from_file(args.config) if getattr(args, "config", None) else InventoryConfig.from_env()
    if getattr(args, "max_passes", None):
        config.max_passes = args.max_passes
    if getattr(args, "no_click_resolve", False):
        config.resolve_locations_by_click = False
    if getattr(args, "selectors", None):
        config.selector_overrides_path = args.selectors
    return config


def _build_browser_config(args) -> BrowserConfig:
    base = HEADLESS_CONFIG if getattr(args, "headless", False) else INTERACTIVE_CONFIG
    return base.model_copy(update={
        "storage_state_path": getattr(args, "auth_state", None) or settings.AUTH_STATE_PATH,
    })


async def _run_inventory(args) -> int:
    from loop_inventory.driver.session import BrowserSession
    from loop_inventory.inventory import InventoryRunner

    config = _build_config(args)
    library = SelectorLibrary(
        Path(config.selector_overrides_path) if config.selector_overrides_path else None
    )

    async with BrowserSession(_build_browser_config(args), config.base_url, config.hosts) as session:
        manifest = await InventoryRunner(session.driver, config, library).run()

    manifest_path = write_manifest(manifest, args.output)
    library.save()

    print(format_summary(manifest))
    print(f"\n✅ Inventory complete! Manifest: {manifest_path}")
    if manifest.failed_containers:
        print(f"⚠️  {len(manifest.failed_containers)} workspace(s) failed; see their 'error' field.")
    return 0


async def _run_inspect(args) -> int:
    from loop_inventory.driver.session import BrowserSession
    from loop_inventory.inspector import SelectorInspector, format_report

    config = _build_config(args)
    async with BrowserSession(_build_browser_config(args), config.base_url, config.hosts) as session:
        if args.url:
            await session.driver.navigate(args.url, wait_until="networkidle", timeout_ms=60000)
        report = await SelectorInspector(session.driver).run(capture_network=not args.no_network)

    print(format_report(report))
    return 0


async def _run_auth(args) -> int:
    from loop_inventory.driver.session import BrowserSession

    config = _build_config(args)
    browser_config = _build_browser_config(args)
    # Start from a clean context so the operator can log in
    state_path = browser_config.storage_state_path
    browser_config.storage_state_path = None
    async with BrowserSession(browser_config, config.base_url, config.hosts) as session:
        saved = await session.save_storage_state(state_path)
    print(f"✅ Auth state saved → {saved}")
    return 0


def inventory_command(args) -> int:
    """Crawl the sidebar and write manifest.json."""
    return asyncio.run(_run_inventory(args))


def inspect_command(args) -> int:
    """Print selector diagnostics for the current Loop page."""
    return asyncio.run(_run_inspect(args))


def auth_command(args) -> int:
    """Log in interactively and save the browser storage state."""
    return asyncio.run(_run_auth(args))


def summary_command(args) -> int:
    """Print the summary of an existing manifest."""
    try:
        manifest = load_manifest(args.manifest or args.output)
    except ManifestError as e:
        print(f"❌ {e}")
        return 1
    print(format_summary(manifest))
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="loop-inventory",
        description="Inventory Microsoft Loop workspaces and pages into manifest.json",
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper() if settings.LOG_LEVEL.upper() in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO",
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    parser.add_argument(
        "--config",
        help="JSON file with inventory settings (default: LOOP_INVENTORY_* environment variables)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_browser_flags(sub):
        sub.add_argument("--headless", action="store_true", help="Run the browser headless")
        sub.add_argument("--auth-state", help=f"Storage state file (default: {settings.AUTH_STATE_PATH})")

    inventory_parser = subparsers.add_parser(
        "inventory", help="Crawl the sidebar and produce manifest.json"
    )
    inventory_parser.add_argument(
        "--output", "-o", default=settings.OUTPUT_DIR,
        help=f"Output directory for manifest.json (default: {settings.OUTPUT_DIR})",
    )
    inventory_parser.add_argument(
        "--selectors", help="JSON file with selector overrides and statistics",
    )
    inventory_parser.add_argument(
        "--max-passes", type=int, help="Materialization pass budget per workspace",
    )
    inventory_parser.add_argument(
        "--no-click-resolve", action="store_true",
        help="Do not click rows without a link to learn their URL",
    )
    add_browser_flags(inventory_parser)
    inventory_parser.set_defaults(func=inventory_command)

    inspect_parser = subparsers.add_parser(
        "inspect", help="Print which selectors match on a Loop page"
    )
    inspect_parser.add_argument("--url", help="Loop URL to inspect (default: app home)")
    inspect_parser.add_argument(
        "--no-network", action="store_true", help="Skip the reload that lists API responses",
    )
    add_browser_flags(inspect_parser)
    inspect_parser.set_defaults(func=inspect_command)

    auth_parser = subparsers.add_parser(
        "auth", help="Log in interactively and save the auth state"
    )
    auth_parser.add_argument("--auth-state", help=f"Storage state file (default: {settings.AUTH_STATE_PATH})")
    auth_parser.set_defaults(func=auth_command, headless=False)

    summary_parser = subparsers.add_parser(
        "summary", help="Validate and summarize an existing manifest"
    )
    summary_parser.add_argument(
        "--output", "-o", default=settings.OUTPUT_DIR, help="Directory holding manifest.json",
    )
    summary_parser.add_argument("--manifest", help="Path to a specific manifest.json")
    summary_parser.set_defaults(func=summary_command)

    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except InventoryError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        logger.exception(f"{args.command} failed unexpectedly: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
