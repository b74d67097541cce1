"""Tests for ProductFormSession."""

import asyncio

import pytest

from catalog.core.errors import MutationInFlightError, RecordStoreError, RemoteValidationError
from catalog.core.taxonomy import Taxonomy
from catalog.schemas.common import MutationStatus
from catalog.schemas.product import Brand, Category
from catalog.services.catalog_store import CatalogStore
from catalog.services.mutation_coordinator import MutationCoordinator
from catalog.services.product_form import ProductFormSession

TAXONOMY = Taxonomy(
    brands=(Brand(id="b1", name="Acme"), Brand(id="b2", name="Other")),
    categories=(Category(id="c1", name="Cups"), Category(id="c2", name="Pans")),
)


@pytest.fixture
def catalog(make_product) -> CatalogStore:
    catalog = CatalogStore()
    catalog.replace_page([make_product(photos=["x.jpg", "y.jpg"])], total_items=1, page=1)
    return catalog


@pytest.fixture
def coordinator(fake_store, catalog) -> MutationCoordinator:
    return MutationCoordinator(fake_store, catalog, collection="products")


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestNewProductForm:
    def test_defaults_to_first_brand_and_category(self, coordinator, preview_factory):
        form = ProductFormSession(coordinator, taxonomy=TAXONOMY, preview_factory=preview_factory)
        assert not form.is_edit
        assert form.draft.brand_ref == "b1"
        assert form.draft.category_ref == "c1"
        assert form.photos.existing == []

    def test_empty_taxonomy_leaves_refs_blank(self, coordinator):
        form = ProductFormSession(coordinator)
        assert form.draft.brand_ref == ""
        assert form.draft.category_ref == ""

    @pytest.mark.asyncio
    async def test_submit_creates_and_closes(self, fake_store, catalog, coordinator, preview_factory):
        form = ProductFormSession(coordinator, taxonomy=TAXONOMY, preview_factory=preview_factory)
        form.set_field("product_id", "SKU-9")
        form.set_field("name", "Milk Jug")
        form.set_field("price", "12")
        form.photos.add_upload("jug.png", "image/png", b"png")

        result = await form.submit()
        assert result.ok
        assert form.closed
        assert catalog.products[0].name == "Milk Jug"
        assert fake_store.requests[-1]["files"] == {"photo_0": ("jug.png", b"png", "image/png")}
        assert preview_factory.created[0].release_calls == 1

    @pytest.mark.asyncio
    async def test_local_error_keeps_form_open(self, fake_store, coordinator):
        form = ProductFormSession(coordinator, taxonomy=TAXONOMY)
        form.set_field("name", "Milk Jug")
        result = await form.submit()
        assert result.status is MutationStatus.FAILED
        assert not form.closed
        assert form.error.message == "Product ID is required"
        assert fake_store.calls == []


class TestEditForm:
    def test_seeded_from_product(self, catalog, coordinator):
        form = ProductFormSession(coordinator, catalog.get("p1"))
        assert form.is_edit
        assert form.draft.name == "Espresso Cup"
        assert form.draft.price == "100.0"
        assert form.photos.existing == ["x.jpg", "y.jpg"]

    def test_category_change_clears_subcategory(self, catalog, coordinator):
        form = ProductFormSession(coordinator, catalog.get("p1"))
        form.set_field("subcategory_ref", "s1")
        form.set_field("category_ref", "c1")
        assert form.draft.subcategory_ref == "s1"
        form.set_field("category_ref", "c2")
        assert form.draft.subcategory_ref == ""

    def test_unknown_field_raises(self, catalog, coordinator):
        form = ProductFormSession(coordinator, catalog.get("p1"))
        with pytest.raises(ValueError):
            form.set_field("color", "red")

    @pytest.mark.asyncio
    async def test_submit_sends_photo_order(self, fake_store, catalog, coordinator):
        form = ProductFormSession(coordinator, catalog.get("p1"))
        form.photos.move(1, 0)
        form.set_field("price", "150")

        result = await form.submit()
        assert result.ok
        data = fake_store.requests[-1]["data"]
        assert data["photos"] == ["y.jpg", "x.jpg"]
        assert data["price"] == 150.0
        assert catalog.get("p1").cover_photo == "y.jpg"

    @pytest.mark.asyncio
    async def test_form_is_locked_while_submitting(self, fake_store, catalog, coordinator):
        form = ProductFormSession(coordinator, catalog.get("p1"))
        fake_store.hold()
        task = asyncio.create_task(form.submit())
        await settle()

        assert form.locked
        assert not form.set_field("name", "Changed")
        second = await form.submit()
        assert isinstance(second.error, MutationInFlightError)

        fake_store.resume()
        assert (await task).ok
        assert fake_store.ops().count("update") == 1

    @pytest.mark.asyncio
    async def test_photos_are_locked_while_submitting(
        self, fake_store, catalog, coordinator, preview_factory
    ):
        form = ProductFormSession(coordinator, catalog.get("p1"), preview_factory=preview_factory)
        fake_store.hold()
        task = asyncio.create_task(form.submit())
        await settle()

        assert form.photos.add_upload("late.png", "image/png", b"png") is None
        form.photos.move(1, 0)
        assert form.photos.remove_existing(0) is None
        assert form.photos.existing == ["x.jpg", "y.jpg"]
        assert preview_factory.created == []

        fake_store.resume()
        assert (await task).ok
        assert fake_store.requests[-1]["data"]["photos"] == ["x.jpg", "y.jpg"]

    @pytest.mark.asyncio
    async def test_photos_unlock_after_failed_submit(self, fake_store, catalog, coordinator, preview_factory):
        fake_store.fail_next("update", RecordStoreError(500))
        form = ProductFormSession(coordinator, catalog.get("p1"), preview_factory=preview_factory)
        await form.submit()

        assert not form.photos.locked
        assert form.photos.add_upload("retry.png", "image/png", b"png") is not None

    @pytest.mark.asyncio
    async def test_remote_error_attaches_to_form(self, fake_store, catalog, coordinator):
        body = {"data": {"productId": {"message": "Value must be unique."}}}
        fake_store.fail_next("update", RecordStoreError(400, body))
        form = ProductFormSession(coordinator, catalog.get("p1"))

        result = await form.submit()
        assert result.status is MutationStatus.FAILED
        assert isinstance(form.error, RemoteValidationError)
        assert not form.closed
        assert not form.locked

    @pytest.mark.asyncio
    async def test_result_after_close_is_not_applied_to_form(self, fake_store, catalog, coordinator):
        fake_store.fail_next("update", RecordStoreError(500))
        form = ProductFormSession(coordinator, catalog.get("p1"))
        fake_store.hold()
        task = asyncio.create_task(form.submit())
        await settle()

        form.close()
        fake_store.resume()
        result = await task
        assert result.status is MutationStatus.FAILED
        assert form.error is None

    @pytest.mark.asyncio
    async def test_submit_after_close_is_discarded(self, fake_store, catalog, coordinator):
        form = ProductFormSession(coordinator, catalog.get("p1"))
        form.close()
        result = await form.submit()
        assert result.status is MutationStatus.DISCARDED
        assert fake_store.calls == []


def test_close_releases_previews_once(coordinator, preview_factory):
    form = ProductFormSession(coordinator, preview_factory=preview_factory)
    form.photos.add_upload("a.png", "image/png", b"a")
    form.photos.add_upload("b.png", "image/png", b"b")
    form.close()
    form.close()
    assert [p.release_calls for p in preview_factory.created] == [1, 1]


def test_no_preview_created_after_close(coordinator, preview_factory):
    form = ProductFormSession(coordinator, preview_factory=preview_factory)
    form.close()
    assert form.photos.add_upload("a.png", "image/png", b"a") is None
    assert preview_factory.created == []
    assert form.photos.uploads == []
