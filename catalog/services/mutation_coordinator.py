"""Mutation Coordinator - create, update and delete products.

Every operation validates locally first; invalid input never reaches the
store. Optimistic changes go through CatalogStore transitions and are
always settled: confirmed with the store's record or rolled back to the
snapshot. Failures are returned as ``MutationResult`` values, never raised.
"""

from collections.abc import Mapping
from typing import Any

import pydantic

from catalog.config import settings
from catalog.core.errors import (
    CatalogError,
    MutationInFlightError,
    NotFoundError,
    UnknownError,
    ValidationError,
    classify_failure,
)
from catalog.core.photo_order import PhotoSubmission
from catalog.core.taxonomy import Taxonomy
from catalog.core.validation import validate_draft
from catalog.infra.logging import get_logger
from catalog.schemas.common import MutationResult
from catalog.schemas.product import Product, ProductDraft
from catalog.services.catalog_store import PLACEHOLDER_PREFIX, CatalogStore, placeholder_id
from catalog.services.record_store import RecordStore

logger = get_logger(__name__)

_CREATE_KEY = "<create>"


class MutationCoordinator:
    """Runs product mutations against the store and the local catalog."""

    def __init__(
        self,
        store: RecordStore,
        catalog: CatalogStore,
        collection: str | None = None,
        taxonomy: Taxonomy | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Record store client
            catalog: Local cache of the current page
            collection: Products collection name (defaults to settings)
            taxonomy: Known subcategories, for ownership checks
        """
        self.store = store
        self.catalog = catalog
        self.collection = collection or settings.products_collection
        self.taxonomy = taxonomy
        self._in_flight: set[str] = set()
        self._armed_id: str | None = None

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    @property
    def armed_id(self) -> str | None:
        """Row whose delete awaits its second confirmation."""
        return self._armed_id

    def disarm(self) -> None:
        """Cancel a pending delete confirmation."""
        if self._armed_id is not None:
            logger.debug("Delete disarmed", product_id=self._armed_id)
        self._armed_id = None

    def is_pending(self, product_id: str) -> bool:
        """True while a mutation for this row awaits the store."""
        return product_id in self._in_flight

    @property
    def creating(self) -> bool:
        return _CREATE_KEY in self._in_flight

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        draft: ProductDraft,
        photos: PhotoSubmission | None = None,
    ) -> MutationResult[Product]:
        """Create a product from form input.

        A speculative placeholder row is shown until the store answers.

        Args:
            draft: Raw form input
            photos: Photo order and pending uploads

        Returns:
            MutationResult with the created product on success
        """
        self.disarm()
        if _CREATE_KEY in self._in_flight:
            return MutationResult.failed(MutationInFlightError())

        try:
            data = validate_draft(draft, self.taxonomy)
        except ValidationError as e:
            return MutationResult.failed(e)
        data["photos"] = list(photos.order) if photos is not None else []

        generation = self.catalog.generation
        submitted = Product.model_validate({**data, "id": placeholder_id()})
        transition = self.catalog.begin_insert(submitted)

        self._in_flight.add(_CREATE_KEY)
        try:
            record = await self.store.create(
                self.collection, data, files=photos.files() if photos else None
            )
        except Exception as e:
            error = classify_failure(e)
            self._log_failure("create", data["productId"], error)
            if not self.catalog.rollback(transition):
                return MutationResult.discarded(error=error)
            return MutationResult.failed(error)
        finally:
            self._in_flight.discard(_CREATE_KEY)

        created = _parse_record(record, submitted)
        if created is None:
            # Stored, but without an id the row cannot be addressed
            error = UnknownError(message="The record store returned an unreadable record")
            self._log_failure("create", data["productId"], error)
            if not self.catalog.rollback(transition):
                return MutationResult.discarded(error=error)
            return MutationResult.failed(error)

        if not self.catalog.confirm(transition, created):
            logger.info("Create response discarded", product_id=created.id, generation=generation)
            return MutationResult.discarded(value=created)

        logger.info("Product created", product_id=created.id)
        return MutationResult.applied(created)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update(
        self,
        product_id: str,
        patch: Mapping[str, Any],
        *,
        photos: PhotoSubmission | None = None,
        optimistic: bool = True,
    ) -> MutationResult[Product]:
        """Update a product, always sending the complete record.

        Args:
            product_id: Row to update
            patch: Changed fields, in wire names
            photos: New photo order and uploads; None keeps the current order
            optimistic: Show the change before the store confirms it

        Returns:
            MutationResult with the store's record on success
        """
        self.disarm()
        if product_id in self._in_flight or product_id.startswith(PLACEHOLDER_PREFIX):
            return MutationResult.failed(MutationInFlightError())

        current = self.catalog.get(product_id)
        if current is None:
            return MutationResult.failed(NotFoundError("Product is not on the current page"))

        record = {**current.to_record(), **patch}
        try:
            data = validate_draft(_draft_from_record(record), self.taxonomy)
        except ValidationError as e:
            return MutationResult.failed(e)
        # Always explicit, even when empty: an omitted list would read as "no change"
        data["photos"] = list(photos.order) if photos is not None else list(record["photos"])

        generation = self.catalog.generation
        tentative = Product.model_validate(
            {**current.model_dump(by_alias=True), **data, "id": product_id}
        )
        transition = self.catalog.begin_update(tentative) if optimistic else None

        self._in_flight.add(product_id)
        try:
            response = await self.store.update(
                self.collection,
                product_id,
                data,
                files=photos.files() if photos else None,
            )
        except Exception as e:
            error = classify_failure(e)
            self._log_failure("update", product_id, error)
            if transition is not None:
                self.catalog.rollback(transition)
            if not self.catalog.is_live(generation):
                return MutationResult.discarded(error=error)
            return MutationResult.failed(error)
        finally:
            self._in_flight.discard(product_id)

        confirmed = _keep_expand(_parse_record(response, tentative) or tentative, current)

        if transition is not None:
            applied = self.catalog.confirm(transition, confirmed)
        else:
            applied = self.catalog.apply_confirmed(confirmed, generation)
        if not applied:
            logger.info("Update response discarded", product_id=product_id, generation=generation)
            return MutationResult.discarded(value=confirmed)

        logger.info("Product updated", product_id=product_id, optimistic=optimistic)
        return MutationResult.applied(confirmed)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def remove(self, product_id: str) -> MutationResult[None]:
        """Two-phase delete.

        The first call arms the row. A second call for the same row while
        armed removes it optimistically and deletes it remotely; on failure
        the row returns to its original position.
        """
        if self._armed_id != product_id:
            self._armed_id = product_id
            logger.debug("Delete armed", product_id=product_id)
            return MutationResult.armed()
        self._armed_id = None

        if product_id in self._in_flight or product_id.startswith(PLACEHOLDER_PREFIX):
            return MutationResult.failed(MutationInFlightError())
        if self.catalog.get(product_id) is None:
            return MutationResult.failed(NotFoundError("Product is not on the current page"))

        generation = self.catalog.generation
        transition = self.catalog.begin_remove(product_id)

        self._in_flight.add(product_id)
        try:
            await self.store.delete(self.collection, product_id)
        except Exception as e:
            error = classify_failure(e)
            self._log_failure("delete", product_id, error)
            if not self.catalog.rollback(transition):
                return MutationResult.discarded(error=error)
            return MutationResult.failed(error)
        finally:
            self._in_flight.discard(product_id)

        if not self.catalog.confirm(transition):
            logger.info("Delete response discarded", product_id=product_id, generation=generation)
            return MutationResult.discarded()

        logger.info("Product deleted", product_id=product_id)
        return MutationResult.applied()

    def _log_failure(self, action: str, product_id: str, error: CatalogError) -> None:
        logger.warning(
            "Mutation failed",
            action=action,
            product_id=product_id,
            error_type=type(error).__name__,
            status=error.status,
            error=error.user_message,
        )


def _draft_from_record(record: Mapping[str, Any]) -> ProductDraft:
    return ProductDraft(
        product_id=str(record.get("productId") or ""),
        name=str(record.get("name") or ""),
        description=str(record.get("description") or ""),
        price=record.get("price", ""),
        status=record.get("status") or "active",
        brand_ref=str(record.get("brand") or ""),
        category_ref=str(record.get("category") or ""),
        subcategory_ref=str(record.get("subcategory") or ""),
    )


def _keep_expand(confirmed: Product, current: Product) -> Product:
    """Carry expanded relations over when the store did not send them."""
    if confirmed.expand:
        return confirmed
    same_relations = (
        confirmed.brand_ref == current.brand_ref
        and confirmed.category_ref == current.category_ref
        and confirmed.subcategory_ref == current.subcategory_ref
    )
    return confirmed.model_copy(update={"expand": current.expand}) if same_relations else confirmed


def _parse_record(record: Any, submitted: Product) -> Product | None:
    """Read the store's record, falling back to what was submitted.

    The store has already accepted the write, so a record that fails local
    validation keeps the submitted values under the id the store assigned.
    None when the record carries no id.
    """
    try:
        return Product.model_validate(record)
    except pydantic.ValidationError as e:
        record_id = record.get("id") if isinstance(record, Mapping) else None
        logger.warning(
            "Store record failed validation",
            product_id=record_id,
            errors=e.error_count(),
        )
        if not record_id:
            return None
        return submitted.model_copy(update={"id": str(record_id)})
