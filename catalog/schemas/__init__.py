"""Pydantic schemas for records, drafts and mutation results."""

from catalog.schemas.common import MutationResult, MutationStatus, RecordPage
from catalog.schemas.product import (
    Brand,
    Category,
    Product,
    ProductDraft,
    ProductStatus,
    Subcategory,
)

__all__ = [
    "MutationResult",
    "MutationStatus",
    "RecordPage",
    "Brand",
    "Category",
    "Product",
    "ProductDraft",
    "ProductStatus",
    "Subcategory",
]
