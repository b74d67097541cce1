"""Full-form create/edit surface for a single product."""

from typing import Any

from catalog.core.errors import CatalogError, MutationInFlightError
from catalog.core.photo_order import PhotoOrderManager, PreviewFactory
from catalog.core.taxonomy import Taxonomy
from catalog.infra.logging import get_logger
from catalog.schemas.common import MutationResult, MutationStatus
from catalog.schemas.product import Product, ProductDraft
from catalog.services.mutation_coordinator import MutationCoordinator

logger = get_logger(__name__)

DRAFT_FIELDS = frozenset(ProductDraft.model_fields)


class ProductFormSession:
    """Draft, photo order and submit lock for one open form.

    While a submit is in flight the whole form is locked, photos included
    (``photos`` ignores changes while ``locked``). Errors, local or
    remote, attach to the form. Closing releases upload previews; a result
    that arrives after close is not applied to the form.
    """

    def __init__(
        self,
        coordinator: MutationCoordinator,
        product: Product | None = None,
        taxonomy: Taxonomy | None = None,
        preview_factory: PreviewFactory | None = None,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._coordinator = coordinator
        self.product_id = product.id if product else None
        if product is not None:
            self.draft = ProductDraft.from_product(product)
        else:
            # New products start on the first brand and category, as the form shows them
            taxonomy = taxonomy or Taxonomy()
            self.draft = ProductDraft(
                brand_ref=taxonomy.brands[0].id if taxonomy.brands else "",
                category_ref=taxonomy.categories[0].id if taxonomy.categories else "",
            )
        self.photos = PhotoOrderManager(
            product.photos if product else (),
            preview_factory=preview_factory,
            max_upload_bytes=max_upload_bytes,
        )
        self.submitting = False
        self.closed = False
        self.error: CatalogError | None = None

    @property
    def is_edit(self) -> bool:
        return self.product_id is not None

    @property
    def locked(self) -> bool:
        return self.submitting or self.closed

    def set_field(self, name: str, value: Any) -> bool:
        """Change one draft field; ignored while locked.

        Changing the category clears the subcategory.
        """
        if self.locked:
            return False
        if name not in DRAFT_FIELDS:
            raise ValueError(f"Unknown form field '{name}'")
        update: dict[str, Any] = {name: value}
        if name == "category_ref" and value != self.draft.category_ref:
            update["subcategory_ref"] = ""
        self.draft = ProductDraft.model_validate({**self.draft.model_dump(), **update})
        return True

    async def submit(self) -> MutationResult[Product]:
        """Create or update from the draft and photo state."""
        if self.closed:
            return MutationResult.discarded()
        if self.submitting:
            return MutationResult.failed(MutationInFlightError())

        self.error = None
        self.submitting = True
        self.photos.hold()
        try:
            submission = self.photos.submission()
            if self.product_id is None:
                result = await self._coordinator.create(self.draft, photos=submission)
            else:
                result = await self._coordinator.update(
                    self.product_id, self._patch(), photos=submission
                )
        finally:
            self.submitting = False
            self.photos.unhold()

        if self.closed:
            logger.info("Form closed before response", product_id=self.product_id)
            return result

        if result.ok or (result.status is MutationStatus.DISCARDED and result.error is None):
            self.close()
        else:
            self.error = result.error
        return result

    def close(self) -> None:
        """Close the form and release every upload preview once."""
        if self.closed:
            return
        self.closed = True
        self.photos.release_all()

    def _patch(self) -> dict[str, Any]:
        draft = self.draft
        return {
            "productId": draft.product_id,
            "name": draft.name,
            "description": draft.description,
            "price": draft.price,
            "status": draft.status.value,
            "brand": draft.brand_ref,
            "category": draft.category_ref,
            "subcategory": draft.subcategory_ref,
        }
