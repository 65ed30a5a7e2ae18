"""
Browser session lifecycle for the Loop inventory.

    async with BrowserSession(browser_config, base_url) as session:
        manifest = await InventoryRunner(session.driver, config).run()

The session launches the browser, restores a saved Playwright storage state
when one exists, opens the app and waits for its shell to render. Logging
in interactively and saving the state afterwards are left to the operator;
``save_storage_state`` writes the file once they have.
"""
import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from ..browser_config import BrowserConfig
from ..exceptions import NavigationError
from ..intelligence.locators import APP_READY
from .playwright_driver import PlaywrightDriver

logger = logging.getLogger(__name__)

AUTH_HOST_MARKERS = ("login.microsoftonline", "login.live.com")
AUTH_TITLE_MARKERS = ("sign", "login", "account", "microsoft")


class BrowserSession:
    """Owns one browser, one context and the single page the inventory drives."""

    def __init__(self, config: BrowserConfig, base_url: str, hosts: tuple = ()):
        """
        Initialize the session.

        Args:
            config: BrowserConfig instance with browser settings
            base_url: App URL opened after launch
            hosts: Host name fragments that identify the app
        """
        self._config = config
        self._base_url = base_url
        self._hosts = hosts
        self._playwright = None
        self._browser = None
        self._context = None
        self.driver: Optional[PlaywrightDriver] = None

    async def __aenter__(self) -> "BrowserSession":
        """Launch the browser and open the app."""
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "Playwright is required for the inventory. "
                "Install with: pip install playwright && playwright install chromium"
            )

        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")

        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self._config.browser_type)

        launch_options = {"headless": self._config.headless, "slow_mo": self._config.slow_mo}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args
        self._browser = await browser_launcher.launch(**launch_options)

        context_options = {"viewport": self._config.viewport}
        if self._config.user_agent:
            context_options["user_agent"] = self._config.user_agent
        state_path = self._config.storage_state_path
        if state_path and Path(state_path).exists():
            logger.info(f"Restoring saved auth state from {state_path}")
            context_options["storage_state"] = state_path

        self._context = await self._browser.new_context(**context_options)
        page = await self._context.new_page()
        self.driver = PlaywrightDriver(page)

        await self.driver.navigate(
            self._base_url,
            wait_until=self._config.wait_until,
            timeout_ms=self._config.timeout,
        )
        await self.wait_until_ready(self._config.ready_timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the browser."""
        if self._browser:
            logger.info("Closing browser")
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def wait_until_ready(self, timeout_ms: int) -> str:
        """
        Wait until the app shell has rendered.

        Returns:
            The APP_READY selector (or "title") that signalled readiness

        Raises:
            NavigationError: If the app is not ready before the deadline
        """
        deadline = time.monotonic() + timeout_ms / 1000

        while time.monotonic() < deadline:
            url = self.driver.current_location()
            if any(marker in url for marker in AUTH_HOST_MARKERS):
                # Still on the identity provider; the operator is logging in
                await asyncio.sleep(2)
                continue

            for selector in APP_READY:
                try:
                    found = await self.driver.query_selector_all(None, selector)
                except Exception as e:
                    logger.debug(f"Readiness probe {selector!r} failed: {e}")
                    continue
                if found:
                    logger.info(f"App ready (matched {selector})")
                    await self.driver.pause(2000)
                    return selector

            title = (await self.driver.title()).lower()
            on_host = any(host in url for host in self._hosts)
            if on_host and title and not any(m in title for m in AUTH_TITLE_MARKERS):
                logger.info(f"App ready (heuristic) url={url} title={title!r}")
                await self.driver.pause(2000)
                return "title"

            await asyncio.sleep(1.5)

        raise NavigationError(
            f"App did not become ready within {timeout_ms}ms. "
            f"Last URL: {self.driver.current_location()}"
        )

    async def save_storage_state(self, path: Optional[str] = None) -> str:
        """Persist cookies and localStorage so the next run skips login."""
        target = path or self._config.storage_state_path
        if not target:
            raise ValueError("No storage state path configured")
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        await self._context.storage_state(path=target)
        logger.info(f"Auth state saved to {target}")
        return target
