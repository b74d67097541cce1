"""Common schemas shared by the store adapter and the mutation layer."""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from catalog.core.errors import CatalogError

T = TypeVar("T")


class MutationStatus(str, Enum):
    """Outcome of a mutation-triggering action."""

    APPLIED = "applied"
    ARMED = "armed"
    FAILED = "failed"
    DISCARDED = "discarded"


class MutationResult(BaseModel, Generic[T]):
    """Generic mutation result wrapper.

    ``discarded`` means the store answered after the originating listing was
    gone, so nothing was applied locally; ``value``/``error`` still carry
    what the store said.
    """

    status: MutationStatus = Field(description="What happened to the mutation")
    value: T | None = Field(default=None, description="Confirmed record, if any")
    error: CatalogError | None = Field(default=None, description="Failure, if any")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def ok(self) -> bool:
        """True only when the mutation was confirmed and applied."""
        return self.status is MutationStatus.APPLIED

    @classmethod
    def applied(cls, value: T | None = None) -> "MutationResult[T]":
        return cls(status=MutationStatus.APPLIED, value=value)

    @classmethod
    def armed(cls) -> "MutationResult[T]":
        return cls(status=MutationStatus.ARMED)

    @classmethod
    def failed(cls, error: CatalogError) -> "MutationResult[T]":
        return cls(status=MutationStatus.FAILED, error=error)

    @classmethod
    def discarded(
        cls, value: T | None = None, error: CatalogError | None = None
    ) -> "MutationResult[T]":
        return cls(status=MutationStatus.DISCARDED, value=value, error=error)


class RecordPage(BaseModel):
    """One page of records as returned by the store's list call."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    total_items: int = Field(default=0, ge=0, alias="totalItems")
    total_pages: int = Field(default=1, ge=0, alias="totalPages")
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=40, ge=1, alias="perPage")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
