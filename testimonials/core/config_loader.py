"""YAML configuration loading.

Updates:
    v0.1.0 - 2025-11-09 - Added cached loader rooted at TESTIMONIALS_CONFIG_PATH.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path
from typing import Any, Dict

import yaml

CONFIG_PATH_ENV = "TESTIMONIALS_CONFIG_PATH"


class ConfigLoader:
    """Reads YAML documents from the configuration directory."""

    def __init__(self, base_path: Path | None = None, *, required: bool = True) -> None:
        """Resolve the configuration directory.

        Args:
            base_path (Path | None): Explicit configuration directory.
            required (bool): Whether a missing directory is an error. When ``False``
                every lookup resolves to an empty document.

        Raises:
            FileNotFoundError: If the directory is required and does not exist.
        """

        self._base_path = (
            base_path or Path(os.environ.get(CONFIG_PATH_ENV, "config"))
        ).resolve()
        self._required = required
        if required and not self._base_path.exists():
            raise FileNotFoundError(f"Config directory not found: {self._base_path}")

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _resolve(self, name: str) -> Path | None:
        candidate = self._base_path / name
        if candidate.suffix not in {".yaml", ".yml"}:
            candidate = candidate.with_suffix(".yaml")
        if candidate.exists():
            return candidate
        if self._required:
            raise FileNotFoundError(f"Config file not found: {candidate}")
        return None

    @functools.lru_cache(maxsize=None)
    def load(self, name: str) -> Dict[str, Any]:
        """Load and cache a configuration document.

        Args:
            name (str): Logical configuration name, with or without ``.yaml``.

        Returns:
            dict[str, Any]: Parsed mapping, empty when the document is blank.

        Raises:
            ValueError: If the document does not contain a mapping.
        """

        path = self._resolve(name)
        if path is None:
            return {}
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping.")
        return data
