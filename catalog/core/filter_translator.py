"""Translate a FilterState into a store-agnostic query predicate.

The predicate is a set of constraints:

- one ``TextConstraint`` per search token; a token matches a record when it
  is a case-insensitive substring of any of its search fields, and all
  tokens must match (AND across tokens, OR across fields)
- one ``EqualsConstraint`` per non-empty brand/category/subcategory choice

``Predicate.matches`` evaluates the same semantics locally. Rendering into
a particular store's filter grammar happens in the store adapter.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from catalog.core.filter_state import FilterState

SEARCH_FIELDS: tuple[str, ...] = ("name", "productId", "description")

# FilterState attribute -> record field
EQUALITY_FIELDS: tuple[tuple[str, str], ...] = (
    ("brand_ref", "brand"),
    ("category_ref", "category"),
    ("subcategory_ref", "subcategory"),
)


@dataclass(frozen=True)
class EqualsConstraint:
    """Record field must equal ``value`` exactly."""

    field: str
    value: str


@dataclass(frozen=True)
class TextConstraint:
    """``token`` must be a case-insensitive substring of one of ``fields``."""

    token: str
    fields: tuple[str, ...] = SEARCH_FIELDS


@dataclass(frozen=True)
class Predicate:
    """AND-combination of equality and text constraints."""

    equals: tuple[EqualsConstraint, ...] = field(default_factory=tuple)
    text: tuple[TextConstraint, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        """True when the predicate matches every record."""
        return not self.equals and not self.text

    def matches(self, record: Mapping[str, Any] | BaseModel) -> bool:
        """Evaluate the predicate against a record.

        Args:
            record: Wire-shaped mapping or a model dumped by alias

        Returns:
            True if every constraint holds
        """
        data = _as_wire_dict(record)
        for constraint in self.equals:
            if _field_text(data, constraint.field) != constraint.value:
                return False
        for constraint in self.text:
            if not any(
                constraint.token in _field_text(data, name).lower()
                for name in constraint.fields
            ):
                return False
        return True


def tokenize(search_text: str) -> list[str]:
    """Trim, lower-case and split search text on whitespace."""
    return search_text.strip().lower().split()


def translate(state: FilterState) -> Predicate:
    """Build the predicate for a filter selection.

    Args:
        state: Current filter selection

    Returns:
        Predicate with one text constraint per token and one equality
        constraint per selected relation
    """
    # Duplicate tokens add nothing under AND
    tokens = list(dict.fromkeys(tokenize(state.search_text)))
    equals = tuple(
        EqualsConstraint(field=record_field, value=getattr(state, attr))
        for attr, record_field in EQUALITY_FIELDS
        if getattr(state, attr)
    )
    return Predicate(
        equals=equals,
        text=tuple(TextConstraint(token=token) for token in tokens),
    )


def _as_wire_dict(record: Mapping[str, Any] | BaseModel) -> Mapping[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True)
    return record


def _field_text(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    return "" if value is None else str(value)
