"""Configuration service for the testimonials board.

Updates:
    v0.1.0 - 2025-11-09 - Added store, pagination and contact sections.
    v0.2.0 - 2025-11-11 - Expand ``${VAR}`` references in store settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.config_loader import ConfigLoader

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_FALLBACK_PATH = PACKAGE_ROOT / "data" / "fallback_reviews.json"

STORE_BACKENDS = ("sqlite", "rest")


@dataclass(slots=True, frozen=True)
class StoreConfig:
    """Remote review store connection settings."""

    backend: str = "sqlite"
    sqlite_path: str = "./data/testimonials.db"
    url: str | None = None
    api_key_env: str | None = None
    table: str = "testimonials"
    poll_interval: float = 2.0
    retry_attempts: int = 3
    timeout: float = 10.0

    def api_key(self) -> str:
        """Return the API key from the configured environment variable.

        Raises:
            RuntimeError: If the variable is unset or empty.
        """

        if not self.api_key_env:
            raise RuntimeError("Store config requires 'api_key_env' for the rest backend.")
        value = os.environ.get(self.api_key_env)
        if not value:
            raise RuntimeError(
                f"Environment variable '{self.api_key_env}' required for the rest backend."
            )
        return value


@dataclass(slots=True, frozen=True)
class PaginationConfig:
    window_size: int = 3
    swipe_threshold: float = 50.0


@dataclass(slots=True, frozen=True)
class ContactConfig:
    recipient_name: str = ""
    recipient_email: str = ""
    outbox_path: str = "./data/outbox.db"


class ConfigService:
    """Loads and exposes configuration for the testimonials components."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Load configuration documents.

        Args:
            config_path (Path | None): Optional override for the configuration directory.
                Missing documents resolve to defaults.
        """

        self._loader = ConfigLoader(base_path=config_path, required=False)
        self._settings = self._loader.load("settings")
        self._store = self._loader.load("store")

    @property
    def app_metadata(self) -> dict[str, Any]:
        """Return general application metadata."""
        return self._section(self._settings, "app")

    @property
    def logging_config(self) -> dict[str, Any]:
        """Return logging configuration settings."""
        return self._section(self._settings, "logging")

    @property
    def fallback_dataset_path(self) -> Path:
        configured = self._section(self._settings, "fallback").get("dataset_path")
        if isinstance(configured, str) and configured.strip():
            return Path(os.path.expandvars(configured.strip()))
        return DEFAULT_FALLBACK_PATH

    def store_config(self) -> StoreConfig:
        """Return validated store settings.

        Returns:
            StoreConfig: Store backend and connection parameters.

        Raises:
            ValueError: If the backend is unknown or numeric settings are invalid.
        """

        data = self._expand_env_values(self._section(self._store, "store"))
        backend = str(data.get("backend", "sqlite")).strip().lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown store backend '{backend}'. Expected one of: {', '.join(STORE_BACKENDS)}"
            )

        defaults = StoreConfig()
        poll_interval = float(data.get("poll_interval", defaults.poll_interval))
        retry_attempts = int(data.get("retry_attempts", defaults.retry_attempts))
        timeout = float(data.get("timeout", defaults.timeout))
        if poll_interval <= 0 or timeout <= 0:
            raise ValueError("Store poll_interval and timeout must be positive.")
        if retry_attempts < 1:
            raise ValueError("Store retry_attempts must be at least 1.")

        url = data.get("url") or None
        if isinstance(url, str) and "${" in url:
            # Unresolved environment reference.
            url = None
        if backend == "rest" and not url:
            raise ValueError("Store backend 'rest' requires a 'url' value.")

        return StoreConfig(
            backend=backend,
            sqlite_path=str(data.get("sqlite_path", defaults.sqlite_path)),
            url=url,
            api_key_env=data.get("api_key_env") or None,
            table=str(data.get("table", defaults.table)),
            poll_interval=poll_interval,
            retry_attempts=retry_attempts,
            timeout=timeout,
        )

    def pagination_config(self) -> PaginationConfig:
        data = self._section(self._settings, "pagination")
        defaults = PaginationConfig()
        window_size = int(data.get("window_size", defaults.window_size))
        threshold = float(data.get("swipe_threshold", defaults.swipe_threshold))
        if window_size < 1:
            raise ValueError("Pagination window_size must be at least 1.")
        if threshold < 0:
            raise ValueError("Pagination swipe_threshold must not be negative.")
        return PaginationConfig(window_size=window_size, swipe_threshold=threshold)

    def contact_config(self) -> ContactConfig:
        data = self._expand_env_values(self._section(self._settings, "contact"))
        defaults = ContactConfig()
        return ContactConfig(
            recipient_name=str(data.get("recipient_name", defaults.recipient_name)),
            recipient_email=str(data.get("recipient_email", defaults.recipient_email)),
            outbox_path=str(data.get("outbox_path", defaults.outbox_path)),
        )

    @staticmethod
    def clear_cache() -> None:
        """Clear cached configuration to reflect file updates."""

        ConfigLoader.load.cache_clear()

    @staticmethod
    def _section(document: dict[str, Any], name: str) -> dict[str, Any]:
        section = document.get(name, {})
        return dict(section) if isinstance(section, dict) else {}

    @staticmethod
    def _expand_env_values(value: Any, *, current_key: str | None = None) -> Any:
        if isinstance(value, dict):
            return {
                key: ConfigService._expand_env_values(entry, current_key=key)
                for key, entry in value.items()
            }
        if isinstance(value, list):
            return [
                ConfigService._expand_env_values(item, current_key=current_key)
                for item in value
            ]
        if isinstance(value, str) and current_key != "api_key_env":
            return os.path.expandvars(value)
        return value
