"""Catalog View - the console's listing and editing surface.

Ties the immutable FilterState, the store listing, CatalogStore, inline
edit sessions, the product form and the view-mode preference together.
Imperative UI event wiring stays outside; every method here is a plain
call or coroutine.
"""

from catalog.config import settings
from catalog.core.errors import CatalogError, NotFoundError, classify_failure
from catalog.core.filter_state import FilterState
from catalog.core.filter_translator import translate
from catalog.core.inline_edit import InlineEditSession
from catalog.core.pagination import PAGE_SIZE, PageWindow, clamp_page, total_pages_for
from catalog.core.photo_order import PreviewFactory
from catalog.core.taxonomy import Taxonomy
from catalog.infra.logging import get_logger
from catalog.infra.preferences import ViewMode, ViewModePreference
from catalog.schemas.common import MutationResult
from catalog.schemas.product import Brand, Category, Product, Subcategory
from catalog.services.catalog_store import CatalogStore
from catalog.services.mutation_coordinator import MutationCoordinator
from catalog.services.product_form import ProductFormSession
from catalog.services.record_store import RecordStore

logger = get_logger(__name__)

LISTING_SORT = "-created"
LISTING_EXPAND = "brand,category,subcategory"
TAXONOMY_PAGE_SIZE = 500


class CatalogView:
    """Paginated, filterable product listing with mutation entry points."""

    def __init__(
        self,
        store: RecordStore,
        preferences: ViewModePreference | None = None,
        grace_seconds: float | None = None,
        preview_factory: PreviewFactory | None = None,
    ) -> None:
        """Initialize the view.

        Args:
            store: Record store client
            preferences: View-mode preference (defaults to the configured file)
            grace_seconds: Inline edit blur delay (defaults to settings)
            preview_factory: Builds upload previews (defaults to Pillow thumbnails)
        """
        self.store = store
        self.catalog = CatalogStore()
        self.coordinator = MutationCoordinator(store, self.catalog)
        self.preferences = preferences or ViewModePreference()
        self.filters = FilterState()
        self.taxonomy = Taxonomy()
        self.inline_session: InlineEditSession | None = None
        self.form: ProductFormSession | None = None
        self.error: CatalogError | None = None
        self.loading = False

        self._grace_seconds = grace_seconds
        self._preview_factory = preview_factory
        self._listing_seq = 0

    # ------------------------------------------------------------------
    # State for rendering
    # ------------------------------------------------------------------

    @property
    def view_mode(self) -> ViewMode:
        return self.preferences.mode

    @property
    def window(self) -> PageWindow:
        return self.catalog.pagination.window(self.catalog.page)

    @property
    def page_links(self) -> list[int]:
        return self.catalog.pagination.page_links(self.catalog.page)

    def toggle_view_mode(self) -> ViewMode:
        self.coordinator.disarm()
        return self.preferences.toggle()

    def dismiss(self) -> None:
        """An interaction elsewhere on the page; disarms a pending delete."""
        self.coordinator.disarm()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_taxonomy(self) -> bool:
        """Fetch brands, categories and subcategories for filters and forms."""
        try:
            brands = await self._list_all(settings.brands_collection)
            categories = await self._list_all(settings.categories_collection)
            subcategories = await self._list_all(settings.subcategories_collection)
        except Exception as e:
            self.error = classify_failure(e)
            logger.error("Failed to load taxonomy", error=self.error.user_message)
            return False

        self.taxonomy = Taxonomy(
            brands=tuple(Brand.model_validate(item) for item in brands),
            categories=tuple(Category.model_validate(item) for item in categories),
            subcategories=tuple(Subcategory.model_validate(item) for item in subcategories),
        )
        self.coordinator.taxonomy = self.taxonomy
        return True

    async def refresh(self) -> bool:
        """Fetch the page described by the current filters.

        A response superseded by a newer request is discarded. If the
        requested page no longer exists, the last page is fetched instead.
        """
        self._listing_seq += 1
        seq = self._listing_seq
        self.loading = True
        try:
            page = await self.store.list(
                settings.products_collection,
                self.filters.page,
                PAGE_SIZE,
                sort=LISTING_SORT,
                predicate=translate(self.filters),
                expand=LISTING_EXPAND,
            )
            products = [Product.model_validate(item) for item in page.items]
        except Exception as e:
            if seq != self._listing_seq:
                return False
            self.loading = False
            self.error = classify_failure(e)
            logger.error("Failed to load products", error=self.error.user_message)
            return False

        if seq != self._listing_seq:
            logger.debug("Listing response superseded", requested_page=self.filters.page)
            return False
        if self.catalog.closed:
            self.loading = False
            logger.debug("Listing response discarded", requested_page=self.filters.page)
            return False

        effective = clamp_page(self.filters.page, total_pages_for(page.total_items))
        if effective != self.filters.page:
            self.filters = self.filters.with_page(effective)
            return await self.refresh()

        self.loading = False
        self.error = None
        self.catalog.replace_page(products, page.total_items, self.filters.page)
        return True

    async def _list_all(self, collection: str) -> list[dict]:
        """Every record of a collection, fetched page by page."""
        items: list[dict] = []
        page_number = 1
        while True:
            page = await self.store.list(collection, page_number, TAXONOMY_PAGE_SIZE, sort="name")
            items.extend(page.items)
            if not page.items or page_number >= page.total_pages:
                return items
            page_number += 1

    # ------------------------------------------------------------------
    # Filters and navigation
    # ------------------------------------------------------------------

    async def set_search(self, search_text: str) -> bool:
        return await self._change_filters(self.filters.with_search(search_text))

    async def select_brand(self, brand_ref: str | None) -> bool:
        return await self._change_filters(self.filters.with_brand(brand_ref))

    async def select_category(self, category_ref: str | None) -> bool:
        return await self._change_filters(self.filters.with_category(category_ref))

    async def select_subcategory(self, subcategory_ref: str | None) -> bool:
        return await self._change_filters(self.filters.with_subcategory(subcategory_ref))

    async def apply_filters(self, state: FilterState) -> bool:
        """Replace the whole selection; always starts on page 1."""
        return await self._change_filters(state.with_page(1))

    async def clear_filters(self) -> bool:
        return await self._change_filters(self.filters.cleared())

    async def go_to_page(self, requested: object) -> bool:
        """Navigate to a page; out-of-range requests are clamped.

        Navigating to the current page does nothing.
        """
        page = self.catalog.pagination.resolve(requested)
        if page == self.filters.page:
            return False
        self._interrupt()
        self.filters = self.filters.with_page(page)
        return await self.refresh()

    async def next_page(self) -> bool:
        return await self.go_to_page(self.filters.page + 1)

    async def previous_page(self) -> bool:
        return await self.go_to_page(self.filters.page - 1)

    async def _change_filters(self, state: FilterState) -> bool:
        self._interrupt()
        self.filters = state
        return await self.refresh()

    def _interrupt(self) -> None:
        """Rows are about to change: end inline editing, disarm deletes."""
        if self.inline_session is not None:
            self.inline_session.cancel()
            self.inline_session = None
        self.coordinator.disarm()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def start_inline_edit(self, product_id: str, field: str) -> InlineEditSession | None:
        """Begin editing a cell; None if the row is gone or saving."""
        product = self.catalog.get(product_id)
        if product is None or self.coordinator.is_pending(product_id):
            return None
        if self.inline_session is not None:
            self.inline_session.cancel()
        self.coordinator.disarm()
        self.inline_session = InlineEditSession(
            product,
            field,
            self.coordinator,
            grace_seconds=self._grace_seconds,
        )
        return self.inline_session

    def open_form(self, product_id: str | None = None) -> ProductFormSession:
        """Open the create form, or the edit form for a row.

        Raises:
            KeyError: If the row is not on the current page
        """
        product = None
        if product_id is not None:
            product = self.catalog.get(product_id)
            if product is None:
                raise KeyError(product_id)
        self.coordinator.disarm()
        self.close_form()
        self.form = ProductFormSession(
            self.coordinator,
            product,
            taxonomy=self.taxonomy,
            preview_factory=self._preview_factory,
        )
        return self.form

    def close_form(self) -> None:
        if self.form is not None:
            self.form.close()
            self.form = None

    async def request_delete(self, product_id: str) -> MutationResult[None]:
        """Delete button on a row: arms first, deletes on the second press."""
        if self.inline_session is not None and self.inline_session.target_product_id == product_id:
            self.inline_session.cancel()
        result = await self.coordinator.remove(product_id)
        if isinstance(result.error, NotFoundError) and result.error.status == 404:
            await self.refresh()
        return result

    def close(self) -> None:
        """The view is going away; later responses become no-ops."""
        self._interrupt()
        self.close_form()
        self.catalog.close()
