"""Quick in-place editing of a single product field.

A session starts in ``editing`` and finalizes exactly once. Enter commits,
Escape cancels, and losing focus commits after a short grace period so an
Escape that closely follows the blur wins. Whichever trigger arrives first
takes the one-shot guard; later triggers are no-ops.

The displayed value is never changed optimistically: the catalog is only
updated with the record the store confirms.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any

from catalog.config import settings
from catalog.core.errors import CatalogError, ValidationError
from catalog.core.validation import EDITABLE_INLINE_FIELDS, validate_field
from catalog.infra.logging import get_logger
from catalog.schemas.common import MutationResult, MutationStatus
from catalog.schemas.product import Product

if TYPE_CHECKING:
    from catalog.services.mutation_coordinator import MutationCoordinator

logger = get_logger(__name__)


class EditStatus(str, Enum):
    """Inline edit lifecycle."""

    EDITING = "editing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


def format_value(value: Any) -> str:
    """Text shown in the editor for a stored value."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class InlineEditSession:
    """Edit state for one field of one product row."""

    def __init__(
        self,
        product: Product,
        field: str,
        coordinator: MutationCoordinator,
        grace_seconds: float | None = None,
    ) -> None:
        """Start editing and snapshot the current value.

        Args:
            product: Row being edited
            field: "name" or "price"
            coordinator: Mutation coordinator used to commit
            grace_seconds: Blur-commit delay (defaults to settings)

        Raises:
            ValueError: If the field cannot be edited inline
        """
        if field not in EDITABLE_INLINE_FIELDS:
            raise ValueError(f"Field '{field}' is not inline-editable")

        self.target_product_id = product.id
        self.field = field
        self.original_value = getattr(product, field)
        self.pending_value = format_value(self.original_value)
        self.status = EditStatus.EDITING
        self.error: CatalogError | None = None
        self.result: MutationResult[Product] | None = None

        self._coordinator = coordinator
        self._grace_seconds = (
            settings.inline_edit_grace_seconds if grace_seconds is None else grace_seconds
        )
        self._finalized = False

    @property
    def is_active(self) -> bool:
        return self.status in (EditStatus.EDITING, EditStatus.COMMITTING)

    @property
    def saving(self) -> bool:
        return self.status is EditStatus.COMMITTING

    def input(self, value: str) -> None:
        """Capture a keystroke; ignored once the session is finalizing."""
        if self.status is EditStatus.EDITING:
            self.pending_value = value

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def press_enter(self) -> EditStatus:
        return await self.commit()

    def press_escape(self) -> EditStatus:
        return self.cancel()

    async def blur(self) -> EditStatus:
        """Commit after the grace period unless already finalized."""
        await asyncio.sleep(self._grace_seconds)
        if self._finalized:
            return self.status
        return await self.commit()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def cancel(self) -> EditStatus:
        """Discard the pending value; no effect once finalized."""
        if self._finalized:
            return self.status
        self._finalized = True
        self._discard()
        return self.status

    async def commit(self) -> EditStatus:
        """Validate and send the edit; no effect once finalized."""
        if self._finalized:
            return self.status
        self._finalized = True

        try:
            value = validate_field(self.field, self.pending_value)
        except ValidationError as e:
            logger.info(
                "Inline edit rejected",
                product_id=self.target_product_id,
                field=self.field,
                reason=e.message,
            )
            self._discard(error=e)
            return self.status

        self.status = EditStatus.COMMITTING
        result = await self._coordinator.update(
            self.target_product_id,
            {self.field: value},
            optimistic=False,
        )
        self.result = result

        if result.ok:
            self.status = EditStatus.COMMITTED
            if result.value is not None:
                self.pending_value = format_value(getattr(result.value, self.field))
        elif result.status is MutationStatus.DISCARDED:
            self._discard()
        else:
            self._discard(error=result.error)
        return self.status

    def _discard(self, error: CatalogError | None = None) -> None:
        self.status = EditStatus.CANCELLED
        self.error = error
        self.pending_value = format_value(self.original_value)

    def __repr__(self) -> str:
        return (
            f"<InlineEditSession(product={self.target_product_id!r}, "
            f"field={self.field!r}, status={self.status.value})>"
        )
