"""Persisted view-mode preference (list vs. grid).

Stored as a single key in a small YAML file, outside the record store.
"""

from enum import Enum
from pathlib import Path

import yaml

from catalog.config import settings
from catalog.infra.logging import get_logger

logger = get_logger(__name__)

VIEW_MODE_KEY = "product_view_mode"


class ViewMode(str, Enum):
    LIST = "list"
    GRID = "grid"


class ViewModePreference:
    """Reads the view mode once and writes it on every change."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path or settings.preferences_path)
        self._mode = self._read()

    @property
    def mode(self) -> ViewMode:
        return self._mode

    def set(self, mode: ViewMode) -> None:
        self._mode = ViewMode(mode)
        self._write()

    def toggle(self) -> ViewMode:
        self.set(ViewMode.GRID if self._mode is ViewMode.LIST else ViewMode.LIST)
        return self._mode

    def _read(self) -> ViewMode:
        if not self.path.exists():
            return ViewMode.LIST
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Unreadable preferences file", path=str(self.path), error=str(e))
            return ViewMode.LIST
        value = data.get(VIEW_MODE_KEY) if isinstance(data, dict) else None
        try:
            return ViewMode(value)
        except ValueError:
            return ViewMode.LIST

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump({VIEW_MODE_KEY: self._mode.value}),
            encoding="utf-8",
        )
        logger.debug("View mode saved", mode=self._mode.value, path=str(self.path))
