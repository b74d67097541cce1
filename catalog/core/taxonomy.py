"""Brand / category / subcategory lookups used by filters and forms."""

from dataclasses import dataclass, field

from catalog.schemas.product import Brand, Category, Subcategory


def _name_matches(name: str, term: str) -> bool:
    return term.strip().lower() in name.lower()


@dataclass(frozen=True)
class Taxonomy:
    """Immutable snapshot of the selectable brands and categories."""

    brands: tuple[Brand, ...] = field(default_factory=tuple)
    categories: tuple[Category, ...] = field(default_factory=tuple)
    subcategories: tuple[Subcategory, ...] = field(default_factory=tuple)

    def brand_name(self, brand_ref: str | None) -> str | None:
        """Display name of a brand, or None when unknown."""
        return next((b.name for b in self.brands if b.id == brand_ref), None)

    def category_name(self, category_ref: str | None) -> str | None:
        """Display name of a category, or None when unknown."""
        return next((c.name for c in self.categories if c.id == category_ref), None)

    def search_brands(self, term: str) -> list[Brand]:
        """Brands whose name contains ``term`` (case-insensitive)."""
        return [b for b in self.brands if _name_matches(b.name, term)]

    def search_categories(self, term: str) -> list[Category]:
        """Categories whose name contains ``term`` (case-insensitive)."""
        return [c for c in self.categories if _name_matches(c.name, term)]

    def subcategories_for(self, category_ref: str | None) -> list[Subcategory]:
        """Subcategories selectable under a category; none without one."""
        if not category_ref:
            return []
        return [s for s in self.subcategories if s.category_ref == category_ref]

    def subcategory_belongs(self, subcategory_ref: str, category_ref: str) -> bool:
        """True when the subcategory is owned by the given category.

        Unknown subcategories are treated as not belonging.
        """
        return any(
            s.id == subcategory_ref and s.category_ref == category_ref
            for s in self.subcategories
        )
