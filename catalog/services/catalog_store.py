"""Client-side cache of the current listing page.

CatalogStore is the single source of truth for rendering. It is written
through three paths only:

- ``replace_page`` with a fresh listing from the store
- optimistic transitions: ``begin_*`` applies a tentative change and
  returns a ``Transition`` holding the snapshot; ``confirm`` or
  ``rollback`` settles it
- ``apply_confirmed`` with a record the store has acknowledged

Each listing gets a new generation. Transitions and confirmations from an
older generation are ignored, so late responses never touch a newer view.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from itertools import count
from uuid import uuid4

from catalog.core.pagination import PaginationController
from catalog.infra.logging import get_logger
from catalog.schemas.product import Product

logger = get_logger(__name__)

PLACEHOLDER_PREFIX = "pending-"


class TransitionKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass(frozen=True)
class CatalogRow:
    """A rendered row; ``speculative`` while its mutation is unconfirmed."""

    product: Product
    speculative: bool = False


@dataclass
class Transition:
    """Pending optimistic change with everything needed to undo it."""

    kind: TransitionKind
    product_id: str
    generation: int
    index: int
    previous: Product | None
    settled: bool = False


class CatalogStore:
    """Current page of products plus in-flight optimistic changes.

    A row being removed stays in place, hidden, until its delete settles.
    Rolling back only unhides it, so concurrent deletes that fail in any
    order restore the confirmed row order.
    """

    def __init__(self) -> None:
        self._rows: list[CatalogRow] = []
        self._hidden: set[str] = set()
        self._generations = count(1)
        self._generation = 0
        self._closed = False
        self.pagination = PaginationController()
        self.page = 1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def rows(self) -> tuple[CatalogRow, ...]:
        return tuple(self._visible())

    @property
    def products(self) -> tuple[Product, ...]:
        return tuple(row.product for row in self._visible())

    @property
    def total_items(self) -> int:
        return self.pagination.total_items

    def __len__(self) -> int:
        return len(self._rows) - len(self._hidden)

    def get(self, product_id: str) -> Product | None:
        position = self._position(product_id)
        return None if position is None else self._rows[position].product

    def index_of(self, product_id: str) -> int | None:
        """Position of a row as rendered."""
        for index, row in enumerate(self._visible()):
            if row.product.id == product_id:
                return index
        return None

    def is_speculative(self, product_id: str) -> bool:
        position = self._position(product_id)
        return position is not None and self._rows[position].speculative

    def is_live(self, generation: int) -> bool:
        """True while the listing a caller started from is still shown."""
        return not self._closed and generation == self._generation

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def replace_page(self, products: Iterable[Product], total_items: int, page: int) -> int:
        """Show a new listing page; returns its generation.

        Any in-flight transitions from the previous listing become stale.
        """
        self._rows = [CatalogRow(product) for product in products]
        self._hidden = set()
        self.pagination.update_total(total_items)
        self.page = page
        self._closed = False
        self._generation = next(self._generations)
        logger.debug(
            "Listing replaced",
            generation=self._generation,
            page=page,
            rows=len(self._rows),
            total_items=total_items,
        )
        return self._generation

    def close(self) -> None:
        """The view is gone; every later result is discarded."""
        self._closed = True
        self._generation = next(self._generations)

    # ------------------------------------------------------------------
    # Optimistic transitions
    # ------------------------------------------------------------------

    def begin_insert(self, tentative: Product) -> Transition:
        """Show a speculative new row at the top of the page."""
        self._rows.insert(0, CatalogRow(tentative, speculative=True))
        return Transition(
            kind=TransitionKind.INSERT,
            product_id=tentative.id,
            generation=self._generation,
            index=0,
            previous=None,
        )

    def begin_update(self, tentative: Product) -> Transition:
        """Replace a row with its tentative state.

        Raises:
            KeyError: If the row is not on the current page
        """
        position = self._require_position(tentative.id)
        previous = self._rows[position].product
        self._rows[position] = CatalogRow(tentative, speculative=True)
        return Transition(
            kind=TransitionKind.UPDATE,
            product_id=tentative.id,
            generation=self._generation,
            index=self.index_of(tentative.id),
            previous=previous,
        )

    def begin_remove(self, product_id: str) -> Transition:
        """Hide a row until the delete settles.

        Raises:
            KeyError: If the row is not on the current page
        """
        position = self._require_position(product_id)
        index = self.index_of(product_id)
        self._hidden.add(product_id)
        return Transition(
            kind=TransitionKind.REMOVE,
            product_id=product_id,
            generation=self._generation,
            index=index,
            previous=self._rows[position].product,
        )

    def confirm(self, transition: Transition, confirmed: Product | None = None) -> bool:
        """Settle a transition with the store's answer.

        Args:
            transition: Transition returned by a ``begin_*`` call
            confirmed: Record returned by the store (None for removals)

        Returns:
            False if the transition was stale or already settled
        """
        if not self._settle(transition):
            return False

        if transition.kind is TransitionKind.REMOVE:
            self._hidden.discard(transition.product_id)
            self._rows = [r for r in self._rows if r.product.id != transition.product_id]
            self.pagination.update_total(self.pagination.total_items - 1)
            return True

        position = self._position(transition.product_id)
        if position is None:
            return True
        if confirmed is None:
            confirmed = self._rows[position].product
        self._rows[position] = CatalogRow(confirmed)
        if transition.kind is TransitionKind.INSERT:
            self.pagination.update_total(self.pagination.total_items + 1)
        return True

    def rollback(self, transition: Transition) -> bool:
        """Undo a ``begin_*`` call.

        Returns:
            False if the transition was stale or already settled
        """
        if not self._settle(transition):
            return False

        if transition.kind is TransitionKind.REMOVE:
            self._hidden.discard(transition.product_id)
        else:
            position = self._position(transition.product_id)
            if position is not None:
                if transition.kind is TransitionKind.INSERT:
                    del self._rows[position]
                else:
                    self._rows[position] = CatalogRow(transition.previous)

        logger.info(
            "Optimistic change rolled back",
            kind=transition.kind.value,
            product_id=transition.product_id,
        )
        return True

    # ------------------------------------------------------------------
    # Confirmed writes
    # ------------------------------------------------------------------

    def apply_confirmed(self, product: Product, generation: int | None = None) -> bool:
        """Replace a row with a record the store acknowledged.

        Returns:
            False if the generation is stale or the row is not shown
        """
        if generation is not None and not self.is_live(generation):
            return False
        position = self._position(product.id)
        if position is None:
            return False
        self._rows[position] = CatalogRow(product)
        return True

    # ------------------------------------------------------------------

    def _visible(self) -> list[CatalogRow]:
        return [row for row in self._rows if row.product.id not in self._hidden]

    def _position(self, product_id: str) -> int | None:
        """Index into the backing list of a shown row."""
        if product_id in self._hidden:
            return None
        for position, row in enumerate(self._rows):
            if row.product.id == product_id:
                return position
        return None

    def _require_position(self, product_id: str) -> int:
        position = self._position(product_id)
        if position is None:
            raise KeyError(product_id)
        return position

    def _settle(self, transition: Transition) -> bool:
        if transition.settled:
            return False
        transition.settled = True
        if not self.is_live(transition.generation):
            logger.info(
                "Stale transition ignored",
                kind=transition.kind.value,
                product_id=transition.product_id,
                generation=transition.generation,
            )
            return False
        return True


def placeholder_id() -> str:
    """Local id for a row that the store has not created yet."""
    return f"{PLACEHOLDER_PREFIX}{uuid4().hex}"
