"""
Browser configuration for the Playwright driver session.

This module provides a validated Pydantic configuration model for all
browser-related settings and pre-configured instances for common use cases.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .config import settings


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-backed BrowserSession.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=False,
        description="Run browser in headless mode (login usually needs a visible window)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to drive"
    )

    timeout: int = Field(
        default=60000,
        description="Initial navigation timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="domcontentloaded",
        description="When to consider navigation complete"
    )

    viewport: Dict[str, int] = Field(
        default_factory=lambda: {"width": 1440, "height": 900},
        description="Viewport size; a tall viewport renders more virtualized rows"
    )

    user_agent: Optional[str] = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent string. None keeps the browser default."
    )

    launch_args: List[str] = Field(
        default_factory=lambda: ["--disable-blink-features=AutomationControlled"],
        description="Additional browser launch arguments"
    )

    slow_mo: int = Field(
        default=0,
        description="Milliseconds to slow each Playwright operation (debugging aid)",
        ge=0
    )

    storage_state_path: Optional[str] = Field(
        default=settings.AUTH_STATE_PATH,
        description="Playwright storage state (cookies + localStorage) restored on launch if present"
    )

    ready_timeout: int = Field(
        default=120000,
        description="Milliseconds to wait for the app shell after the first navigation",
        ge=1000
    )

    class Config:
        """Pydantic model configuration."""
        frozen = False
        validate_assignment = True


# --- Pre-configured Instances for Common Use Cases ---

INTERACTIVE_CONFIG = BrowserConfig(
    headless=False,
    slow_mo=50,
)

HEADLESS_CONFIG = BrowserConfig(
    headless=True,
    viewport={"width": 1440, "height": 2000},
)
