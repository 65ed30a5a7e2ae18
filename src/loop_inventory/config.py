from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
from pathlib import Path
import json
import os

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    # Loop redirects most tenants to the cloud domain; start there
    LOOP_URL = os.getenv("LOOP_URL", "https://loop.cloud.microsoft/")
    LOOP_HOSTS = tuple(
        host.strip()
        for host in os.getenv("LOOP_HOSTS", "loop.microsoft.com,loop.cloud.microsoft").split(",")
        if host.strip()
    )
    AUTH_STATE_PATH = os.getenv("AUTH_STATE_PATH", "auth-state.json")
    OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


@dataclass
class InventoryConfig:
    """Timeouts, budgets and tuning knobs for one inventory pass."""

    base_url: str = settings.LOOP_URL
    hosts: tuple = settings.LOOP_HOSTS

    # Cascade lookups (milliseconds, per selector entry)
    list_lookup_timeout_ms: int = 5000
    lookup_timeout_ms: int = 2000

    # Navigation
    navigation_timeout_ms: int = 120000
    initial_settle_ms: int = 3000
    container_settle_ms: int = 2500
    sidebar_click_timeout_ms: int = 3000

    # Tree materialization
    max_passes: int = 12
    expand_max_iterations: int = 10
    expand_click_timeout_ms: int = 1500
    expand_settle_ms: int = 1000
    scroll_settle_ms: int = 800
    scroll_wheel_delta: int = 2000

    # Depth inference
    unit_indent_px: float = 20.0

    # Node capture
    resolve_locations_by_click: bool = True
    activation_click_timeout_ms: int = 2500
    activation_settle_ms: int = 1200

    # Network capture fallback
    capture_settle_ms: int = 3000
    page_capture_window_ms: int = 5000

    # Hard deadline for one container (navigate + materialize + capture)
    container_timeout_s: float = 600.0

    selector_overrides_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "InventoryConfig":
        """Load configuration from environment variables.

        Environment variables are prefixed with LOOP_INVENTORY_,
        e.g. LOOP_INVENTORY_MAX_PASSES=20

        Returns:
            InventoryConfig with values from environment
        """
        config = cls()
        prefix = "LOOP_INVENTORY_"

        for field_name in config.__dataclass_fields__:
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue

            current = getattr(config, field_name)
            try:
                if isinstance(current, bool):
                    setattr(config, field_name, env_value.strip().lower() in ("1", "true", "yes", "on"))
                elif isinstance(current, int):
                    setattr(config, field_name, int(env_value))
                elif isinstance(current, float):
                    setattr(config, field_name, float(env_value))
                elif isinstance(current, tuple):
                    setattr(config, field_name, tuple(v.strip() for v in env_value.split(",") if v.strip()))
                else:
                    setattr(config, field_name, env_value)
            except ValueError:
                pass  # Keep default if conversion fails

        return config

    @classmethod
    def from_file(cls, path: str) -> "InventoryConfig":
        """Load configuration from a JSON file.

        Args:
            path: Path to JSON configuration file

        Returns:
            InventoryConfig with values from file
        """
        config = cls()
        file_path = Path(path)

        if not file_path.exists():
            return config

        with open(file_path, 'r') as f:
            data = json.load(f)

        section = data.get('inventory', data)

        for field_name in config.__dataclass_fields__:
            if field_name in section:
                value = section[field_name]
                if field_name == "hosts":
                    value = tuple(value)
                setattr(config, field_name, value)

        return config

    def is_host_url(self, url: Optional[str]) -> bool:
        """True if ``url`` points at one of the configured app hosts."""
        if not url:
            return False
        return any(host in url for host in self.hosts)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            field_name: list(value) if isinstance(value, tuple) else value
            for field_name, value in (
                (name, getattr(self, name)) for name in self.__dataclass_fields__
            )
        }

    def save_to_file(self, path: str) -> None:
        """Save current configuration to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'inventory': self.to_dict()}, f, indent=2)
