"""Local, pre-network validation of product input.

Every rule raises ``ValidationError`` naming the offending field. The
same rules back full-form submission and inline edits.
"""

import math
from typing import Any

from catalog.core.errors import ValidationError
from catalog.core.taxonomy import Taxonomy
from catalog.schemas.product import ProductDraft

EDITABLE_INLINE_FIELDS = ("name", "price")


def parse_price(raw: Any) -> float:
    """Parse user input into a finite, non-negative price.

    Raises:
        ValidationError: If the input is not a finite number >= 0
    """
    if isinstance(raw, bool):
        raise ValidationError("price", "Price must be a positive number")
    try:
        price = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        raise ValidationError("price", "Price must be a positive number") from None
    if not math.isfinite(price) or price < 0:
        raise ValidationError("price", "Price must be a positive number")
    # -0.0 would otherwise survive as a distinct value
    return price + 0.0


def clean_name(raw: Any) -> str:
    """Trim a product name, rejecting blank input."""
    name = raw.strip() if isinstance(raw, str) else ""
    if not name:
        raise ValidationError("name", "Product name is required")
    return name


def validate_field(field: str, raw: Any) -> str | float:
    """Validate a single inline-editable field.

    Args:
        field: Either "name" or "price"
        raw: Pending value as typed

    Returns:
        Cleaned value ready to be sent
    """
    if field == "name":
        return clean_name(raw)
    if field == "price":
        return parse_price(raw)
    raise ValueError(f"Field '{field}' is not inline-editable")


def validate_draft(draft: ProductDraft, taxonomy: Taxonomy | None = None) -> dict[str, Any]:
    """Validate a form draft and build the record body.

    Rules are checked in form order so the first message shown matches the
    first field the user sees.

    Args:
        draft: Raw form input
        taxonomy: Known subcategories, used to check ownership when given

    Returns:
        Record body in wire names, without ``photos``

    Raises:
        ValidationError: On the first failing field
    """
    product_id = draft.product_id.strip()
    if not product_id:
        raise ValidationError("productId", "Product ID is required")
    name = clean_name(draft.name)
    if not draft.brand_ref:
        raise ValidationError("brand", "Brand is required")
    if not draft.category_ref:
        raise ValidationError("category", "Category is required")
    price = parse_price(draft.price)

    subcategory = draft.subcategory_ref.strip()
    if subcategory and taxonomy is not None:
        if not taxonomy.subcategory_belongs(subcategory, draft.category_ref):
            raise ValidationError(
                "subcategory", "Subcategory does not belong to the selected category"
            )

    return {
        "productId": product_id,
        "name": name,
        "description": draft.description.strip(),
        "price": price,
        "status": draft.status.value,
        "brand": draft.brand_ref,
        "category": draft.category_ref,
        "subcategory": subcategory,
    }
