"""Product catalog schemas.

Field aliases follow the record store's wire names (``productId``,
``brand``, ``category``...). Models accept either the alias or the
Python name.
"""

import json
import math
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductStatus(str, Enum):
    """Publication status of a product."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Brand(BaseModel):
    """Brand record."""

    id: str
    name: str

    model_config = ConfigDict(extra="ignore")


class Category(BaseModel):
    """Category record."""

    id: str
    name: str

    model_config = ConfigDict(extra="ignore")


class Subcategory(BaseModel):
    """Subcategory record, owned by exactly one category."""

    id: str
    name: str
    category_ref: str = Field(alias="category")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Product(BaseModel):
    """Product record as stored remotely and rendered by the console."""

    id: str
    product_id: str = Field(alias="productId")
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    status: ProductStatus = ProductStatus.ACTIVE
    brand_ref: str = Field(default="", alias="brand")
    category_ref: str = Field(default="", alias="category")
    subcategory_ref: str | None = Field(default=None, alias="subcategory")
    photos: list[str] = Field(default_factory=list)
    created: datetime | None = None
    updated: datetime | None = None
    expand: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Names are stored trimmed and must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        """Reject NaN and infinities."""
        if not math.isfinite(v):
            raise ValueError("price must be a finite number")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        """Missing descriptions become empty strings."""
        return "" if v is None else v

    @field_validator("subcategory_ref", mode="before")
    @classmethod
    def validate_subcategory(cls, v: Any) -> str | None:
        """Empty relation values mean no subcategory."""
        return v or None

    @field_validator("created", "updated", mode="before")
    @classmethod
    def validate_timestamp(cls, v: Any) -> Any:
        """The store sends empty strings for unset timestamps."""
        return v or None

    @field_validator("photos", mode="before")
    @classmethod
    def validate_photos(cls, v: Any) -> list[str]:
        """Accept a list, a JSON-encoded list, a single URI, or nothing."""
        if v is None or v == "":
            return []
        if isinstance(v, str):
            if v.startswith("["):
                decoded = json.loads(v)
                if not isinstance(decoded, list):
                    raise ValueError("photos must decode to a list")
                return [str(item) for item in decoded]
            return [v]
        return v

    @property
    def cover_photo(self) -> str | None:
        """First photo in display order, if any."""
        return self.photos[0] if self.photos else None

    def to_record(self) -> dict[str, Any]:
        """Full writable record in wire names.

        ``photos`` is always present so an empty list clears the photos
        rather than reading as "no change".
        """
        return {
            "productId": self.product_id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "status": self.status.value,
            "brand": self.brand_ref,
            "category": self.category_ref,
            "subcategory": self.subcategory_ref or "",
            "photos": list(self.photos),
        }


class ProductDraft(BaseModel):
    """Raw create/edit form input, exactly as typed.

    Nothing here is validated; see ``catalog.core.validation``.
    """

    product_id: str = ""
    name: str = ""
    description: str = ""
    price: str = ""
    status: ProductStatus = ProductStatus.ACTIVE
    brand_ref: str = ""
    category_ref: str = ""
    subcategory_ref: str = ""

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> str:
        """Numbers are kept in their text form."""
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        """Seed a draft from an existing product."""
        return cls(
            product_id=product.product_id,
            name=product.name,
            description=product.description,
            price=product.price,
            status=product.status,
            brand_ref=product.brand_ref,
            category_ref=product.category_ref,
            subcategory_ref=product.subcategory_ref or "",
        )
