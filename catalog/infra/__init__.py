"""Infrastructure - logging, preferences, upload previews."""

from catalog.infra.logging import get_logger, setup_logging
from catalog.infra.preferences import ViewMode, ViewModePreference
from catalog.infra.previews import PreviewHandle, create_preview

__all__ = [
    "get_logger",
    "setup_logging",
    "ViewMode",
    "ViewModePreference",
    "PreviewHandle",
    "create_preview",
]
