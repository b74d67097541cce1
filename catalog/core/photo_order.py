"""Ordered photo references for the product edit surface.

Two collections are kept apart:

- existing references, already persisted; reorderable and removable
- pending uploads, shown through transient previews and always placed
  after the existing references

Reordering is the pure function ``reorder``. Drag events only decide
which indices to feed it.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from catalog.config import settings
from catalog.core.errors import ValidationError
from catalog.infra.logging import get_logger
from catalog.infra.previews import PreviewHandle, create_preview

logger = get_logger(__name__)

T = TypeVar("T")

PreviewFactory = Callable[[bytes], PreviewHandle]


def reorder(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Move one item to a new position.

    Args:
        items: Current order
        from_index: Index of the item being moved
        to_index: Index it should occupy afterwards

    Returns:
        New list; an unchanged copy if either index is out of range
    """
    result = list(items)
    if not (0 <= from_index < len(result) and 0 <= to_index < len(result)):
        return result
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


def validate_upload(
    filename: str,
    content_type: str,
    size: int,
    max_bytes: int | None = None,
) -> None:
    """Reject uploads that are too large or not images.

    Raises:
        ValidationError: If the file must not be uploaded
    """
    max_bytes = max_bytes or settings.max_upload_bytes
    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise ValidationError("photos", f"Each image must be smaller than {limit_mb:g}MB")
    if not (content_type or "").lower().startswith("image/"):
        raise ValidationError("photos", f"'{filename}' is not an image file")


@dataclass
class PendingUpload:
    """A selected file waiting to be sent with the next submit."""

    filename: str
    content_type: str
    data: bytes
    preview: PreviewHandle

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PhotoSubmission:
    """What a submit sends for photos.

    ``order`` is the authoritative list of existing references, sent even
    when empty. ``uploads`` maps store keys (``photo_0``...) to files the
    storage side appends after them.
    """

    order: list[str] = field(default_factory=list)
    uploads: dict[str, PendingUpload] = field(default_factory=dict)

    def files(self) -> dict[str, tuple[str, bytes, str]]:
        """Uploads in the shape the store adapter sends as multipart."""
        return {
            key: (upload.filename, upload.data, upload.content_type)
            for key, upload in self.uploads.items()
        }


class PhotoOrderManager:
    """Existing photo order plus pending uploads for one edit surface."""

    def __init__(
        self,
        existing: Sequence[str] = (),
        preview_factory: PreviewFactory | None = None,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._existing: list[str] = list(existing)
        self._uploads: list[PendingUpload] = []
        self._preview_factory = preview_factory or create_preview
        self._max_upload_bytes = max_upload_bytes
        self._drag_index: int | None = None
        self._held = False
        self._closed = False

    @property
    def existing(self) -> list[str]:
        return list(self._existing)

    @property
    def uploads(self) -> list[PendingUpload]:
        return list(self._uploads)

    @property
    def display_order(self) -> list[str]:
        """References in display order: existing first, then previews."""
        return self._existing + [u.preview.uri for u in self._uploads]

    @property
    def dragging(self) -> bool:
        return self._drag_index is not None

    @property
    def locked(self) -> bool:
        """True while a submit holds the photos or after release_all()."""
        return self._held or self._closed

    def hold(self) -> None:
        """Freeze the photos for the duration of a submit."""
        self._held = True
        self._drag_index = None

    def unhold(self) -> None:
        self._held = False

    # ------------------------------------------------------------------
    # Existing references
    # ------------------------------------------------------------------

    def move(self, from_index: int, to_index: int) -> None:
        """Apply a single reorder step to the existing references."""
        if self.locked:
            return
        self._existing = reorder(self._existing, from_index, to_index)

    def begin_drag(self, index: int) -> None:
        if not self.locked and 0 <= index < len(self._existing):
            self._drag_index = index

    def drag_over(self, index: int) -> None:
        """Reorder live as the drag target changes."""
        if self._drag_index is None or index == self._drag_index:
            return
        if not 0 <= index < len(self._existing):
            return
        self.move(self._drag_index, index)
        self._drag_index = index

    def end_drag(self) -> None:
        self._drag_index = None

    def remove_existing(self, index: int) -> str | None:
        """Drop an existing reference; returns it, or None if out of range or locked."""
        if self.locked or not 0 <= index < len(self._existing):
            return None
        self.end_drag()
        return self._existing.pop(index)

    # ------------------------------------------------------------------
    # Pending uploads
    # ------------------------------------------------------------------

    def add_upload(self, filename: str, content_type: str, data: bytes) -> PendingUpload | None:
        """Validate a selected file and create its preview.

        Returns:
            The pending upload, or None while locked (no preview is created)

        Raises:
            ValidationError: If the file is rejected
        """
        if self.locked:
            logger.debug("Upload ignored while locked", filename=filename, closed=self._closed)
            return None
        validate_upload(filename, content_type, len(data), self._max_upload_bytes)
        preview = self._preview_factory(data)
        upload = PendingUpload(
            filename=filename,
            content_type=content_type,
            data=data,
            preview=preview,
        )
        self._uploads.append(upload)
        logger.debug("Upload added", filename=filename, size=upload.size)
        return upload

    def remove_upload(self, index: int) -> bool:
        """Drop a pending upload and release its preview."""
        if self.locked or not 0 <= index < len(self._uploads):
            return False
        upload = self._uploads.pop(index)
        upload.preview.release()
        return True

    def release_all(self) -> None:
        """Release every remaining preview; the surface is closing.

        The manager stays locked afterwards, so no new preview can outlive it.
        """
        for upload in self._uploads:
            upload.preview.release()
        self._uploads = []
        self._drag_index = None
        self._closed = True

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submission(self) -> PhotoSubmission:
        return PhotoSubmission(
            order=list(self._existing),
            uploads={f"photo_{i}": u for i, u in enumerate(self._uploads)},
        )

    def __repr__(self) -> str:
        return (
            f"<PhotoOrderManager(existing={len(self._existing)}, "
            f"uploads={len(self._uploads)})>"
        )
