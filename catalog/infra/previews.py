"""Transient previews for photos that have not been uploaded yet.

Each preview is a thumbnail written to a temporary file. The file is the
transient resource: it must be released exactly once, when the upload is
removed or the editing surface closes.
"""

import io
import tempfile
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from catalog.config import settings
from catalog.core.errors import ValidationError
from catalog.infra.logging import get_logger

logger = get_logger(__name__)


class PreviewHandle:
    """Owned reference to a preview file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._released = False

    @property
    def uri(self) -> str:
        """Local reference usable by the view to render the preview."""
        return self.path.as_uri()

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """Delete the preview file.

        Returns:
            True if this call released it, False if it was already released
        """
        if self._released:
            return False
        self._released = True
        self.path.unlink(missing_ok=True)
        logger.debug("Preview released", path=str(self.path))
        return True


def _create_thumbnail(img: Image.Image, max_size: int) -> Image.Image:
    """Resize so the longest edge is at most ``max_size``."""
    width, height = img.size
    if max(width, height) <= max_size:
        return img.copy()
    if width > height:
        new_width = max_size
        new_height = max(1, int(height * max_size / width))
    else:
        new_height = max_size
        new_width = max(1, int(width * max_size / height))
    return img.resize((new_width, new_height), Image.Resampling.LANCZOS)


def create_preview(data: bytes, max_size: int | None = None) -> PreviewHandle:
    """Decode image bytes and write a PNG thumbnail to a temp file.

    Args:
        data: Raw image bytes
        max_size: Longest edge in pixels (defaults to settings)

    Returns:
        PreviewHandle owning the temp file (caller must release)

    Raises:
        ValidationError: If the bytes are not a readable image
    """
    max_size = max_size or settings.preview_max_size
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            thumb = _create_thumbnail(img, max_size)
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Unreadable image upload", error=str(e))
        raise ValidationError("photos", "Please upload valid image files") from e

    if thumb.mode not in ("RGB", "RGBA", "L", "LA", "P"):
        thumb = thumb.convert("RGBA")

    with tempfile.NamedTemporaryFile(delete=False, suffix=".png") as tmp:
        thumb.save(tmp, format="PNG")
        path = Path(tmp.name)

    logger.debug("Preview created", path=str(path), size=thumb.size)
    return PreviewHandle(path)
