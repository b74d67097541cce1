"""Filter selection that drives one listing query."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FilterState:
    """Immutable filter selection passed to the translator and paginator.

    Each change returns a new FilterState. Changing any filter resets the
    page to 1; changing the category also clears the subcategory, since a
    subcategory only makes sense under its own category.
    """

    search_text: str = ""
    brand_ref: str | None = None
    category_ref: str | None = None
    subcategory_ref: str | None = None
    page: int = 1

    def __post_init__(self) -> None:
        # Empty selections are stored as None so "" never becomes an equality constraint
        for name in ("brand_ref", "category_ref", "subcategory_ref"):
            if not getattr(self, name):
                object.__setattr__(self, name, None)

    @property
    def has_active_filters(self) -> bool:
        """True when any search or selection narrows the listing."""
        return bool(
            self.search_text.strip()
            or self.brand_ref
            or self.category_ref
            or self.subcategory_ref
        )

    def with_search(self, search_text: str) -> "FilterState":
        """Return new state with search text and page reset."""
        return FilterState(
            search_text=search_text,
            brand_ref=self.brand_ref,
            category_ref=self.category_ref,
            subcategory_ref=self.subcategory_ref,
            page=1,
        )

    def with_brand(self, brand_ref: str | None) -> "FilterState":
        """Return new state with brand selection and page reset."""
        return FilterState(
            search_text=self.search_text,
            brand_ref=brand_ref,
            category_ref=self.category_ref,
            subcategory_ref=self.subcategory_ref,
            page=1,
        )

    def with_category(self, category_ref: str | None) -> "FilterState":
        """Return new state with category selection.

        The subcategory is kept only if the category did not change.
        """
        same_category = (category_ref or None) == self.category_ref
        return FilterState(
            search_text=self.search_text,
            brand_ref=self.brand_ref,
            category_ref=category_ref,
            subcategory_ref=self.subcategory_ref if same_category else None,
            page=1,
        )

    def with_subcategory(self, subcategory_ref: str | None) -> "FilterState":
        """Return new state with subcategory selection and page reset."""
        return FilterState(
            search_text=self.search_text,
            brand_ref=self.brand_ref,
            category_ref=self.category_ref,
            subcategory_ref=subcategory_ref,
            page=1,
        )

    def with_page(self, page: int) -> "FilterState":
        """Return new state on another page, filters unchanged.

        The page is not clamped here; see PaginationController.
        """
        return FilterState(
            search_text=self.search_text,
            brand_ref=self.brand_ref,
            category_ref=self.category_ref,
            subcategory_ref=self.subcategory_ref,
            page=page,
        )

    def cleared(self) -> "FilterState":
        """Return the unfiltered first page."""
        return FilterState()
