"""Tests for CatalogStore."""

import pytest

from catalog.services.catalog_store import PLACEHOLDER_PREFIX, CatalogStore, placeholder_id


@pytest.fixture
def catalog(make_product) -> CatalogStore:
    catalog = CatalogStore()
    catalog.replace_page(
        [make_product(id="a", name="A"), make_product(id="b", name="B"), make_product(id="c", name="C")],
        total_items=3,
        page=1,
    )
    return catalog


def ids(catalog: CatalogStore) -> list[str]:
    return [p.id for p in catalog.products]


class TestListing:
    def test_replace_page_starts_new_generation(self, catalog, make_product):
        first = catalog.generation
        second = catalog.replace_page([make_product(id="z")], total_items=1, page=1)
        assert second == catalog.generation
        assert second > first
        assert not catalog.is_live(first)
        assert ids(catalog) == ["z"]

    def test_close_makes_every_generation_stale(self, catalog):
        generation = catalog.generation
        catalog.close()
        assert catalog.closed
        assert not catalog.is_live(generation)
        assert not catalog.is_live(catalog.generation)


class TestTransitions:
    """Tests for optimistic transitions."""

    def test_update_confirm(self, catalog, make_product):
        transition = catalog.begin_update(make_product(id="b", name="B2"))
        assert catalog.get("b").name == "B2"
        assert catalog.is_speculative("b")

        assert catalog.confirm(transition, make_product(id="b", name="B3"))
        assert catalog.get("b").name == "B3"
        assert not catalog.is_speculative("b")

    def test_update_rollback_restores_snapshot(self, catalog, make_product):
        transition = catalog.begin_update(make_product(id="b", name="B2"))
        assert catalog.rollback(transition)
        assert catalog.get("b").name == "B"
        assert not catalog.is_speculative("b")

    def test_remove_rollback_restores_original_index(self, catalog):
        transition = catalog.begin_remove("b")
        assert ids(catalog) == ["a", "c"]
        catalog.rollback(transition)
        assert ids(catalog) == ["a", "b", "c"]

    @pytest.mark.parametrize("first,second", [("b", "a"), ("a", "b")])
    def test_overlapping_removals_restore_order(self, catalog, first, second):
        removals = {"b": catalog.begin_remove("b"), "a": catalog.begin_remove("a")}
        assert ids(catalog) == ["c"]
        assert len(catalog) == 1

        catalog.rollback(removals[first])
        catalog.rollback(removals[second])
        assert ids(catalog) == ["a", "b", "c"]

    def test_overlapping_removal_confirm_then_rollback(self, catalog):
        remove_b = catalog.begin_remove("b")
        remove_c = catalog.begin_remove("c")
        catalog.rollback(remove_c)
        catalog.confirm(remove_b)
        assert ids(catalog) == ["a", "c"]
        assert catalog.total_items == 2

    def test_hidden_row_is_not_shown(self, catalog, make_product):
        catalog.begin_remove("b")
        assert catalog.get("b") is None
        assert catalog.index_of("c") == 1
        with pytest.raises(KeyError):
            catalog.begin_update(make_product(id="b"))

    def test_remove_confirm_decrements_total(self, catalog):
        transition = catalog.begin_remove("a")
        assert catalog.confirm(transition)
        assert ids(catalog) == ["b", "c"]
        assert catalog.total_items == 2

    def test_insert_shows_speculative_row_first(self, catalog, make_product):
        placeholder = make_product(id=placeholder_id(), name="New")
        transition = catalog.begin_insert(placeholder)
        assert catalog.products[0].id.startswith(PLACEHOLDER_PREFIX)
        assert catalog.rows[0].speculative

        assert catalog.confirm(transition, make_product(id="rec1", name="New"))
        assert ids(catalog) == ["rec1", "a", "b", "c"]
        assert catalog.total_items == 4

    def test_insert_rollback_removes_placeholder(self, catalog, make_product):
        transition = catalog.begin_insert(make_product(id=placeholder_id()))
        catalog.rollback(transition)
        assert ids(catalog) == ["a", "b", "c"]
        assert catalog.total_items == 3

    def test_settles_once(self, catalog):
        transition = catalog.begin_remove("a")
        assert catalog.rollback(transition)
        assert not catalog.rollback(transition)
        assert not catalog.confirm(transition)
        assert ids(catalog) == ["a", "b", "c"]

    def test_stale_transition_is_ignored(self, catalog, make_product):
        transition = catalog.begin_remove("a")
        catalog.replace_page([make_product(id="x")], total_items=1, page=2)
        assert not catalog.rollback(transition)
        assert ids(catalog) == ["x"]

    def test_missing_row_raises(self, catalog, make_product):
        with pytest.raises(KeyError):
            catalog.begin_remove("missing")
        with pytest.raises(KeyError):
            catalog.begin_update(make_product(id="missing"))


class TestApplyConfirmed:
    def test_replaces_row(self, catalog, make_product):
        assert catalog.apply_confirmed(make_product(id="c", price=5), catalog.generation)
        assert catalog.get("c").price == 5

    def test_stale_generation_is_ignored(self, catalog, make_product):
        generation = catalog.generation
        catalog.replace_page([make_product(id="c")], total_items=1, page=1)
        assert not catalog.apply_confirmed(make_product(id="c", price=5), generation)
        assert catalog.get("c").price == 100

    def test_unknown_row_is_ignored(self, catalog, make_product):
        assert not catalog.apply_confirmed(make_product(id="nope"))
