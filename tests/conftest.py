"""Shared fixtures: an in-memory record store and sample records."""

from __future__ import annotations

import asyncio
import math
from itertools import count
from typing import Any

import pytest

from catalog.core.errors import RecordStoreError
from catalog.core.filter_translator import Predicate
from catalog.infra.preferences import ViewModePreference
from catalog.infra.previews import PreviewHandle
from catalog.schemas.common import RecordPage
from catalog.schemas.product import Product


def product_record(**overrides: Any) -> dict[str, Any]:
    """A product as the store returns it."""
    record: dict[str, Any] = {
        "id": "p1",
        "productId": "SKU-1",
        "name": "Espresso Cup",
        "description": "Porcelain cup",
        "price": 100,
        "status": "active",
        "brand": "b1",
        "category": "c1",
        "subcategory": "",
        "photos": [],
        "created": "2024-05-01 10:00:00.000Z",
        "updated": "2024-05-01 10:00:00.000Z",
    }
    record.update(overrides)
    return record


def make_product(**overrides: Any) -> Product:
    return Product.model_validate(product_record(**overrides))


class FakeRecordStore:
    """In-memory RecordStore that evaluates predicates locally.

    ``fail_next(op, exc)`` makes the next call of ``op`` raise ``exc``.
    ``hold()`` pauses every mutating call until ``resume()``.
    """

    def __init__(self, collections: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {
            name: [dict(r) for r in records] for name, records in (collections or {}).items()
        }
        self.calls: list[tuple[str, ...]] = []
        self.requests: list[dict[str, Any]] = []
        self._failures: dict[str, Exception] = {}
        self._ids = count(100)
        self._gate: asyncio.Event | None = None

    def fail_next(self, op: str, exc: Exception) -> None:
        self._failures[op] = exc

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def resume(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def _enter(self, op: str) -> None:
        if op != "list" and self._gate is not None:
            await self._gate.wait()
        if op in self._failures:
            raise self._failures.pop(op)

    async def list(
        self,
        collection: str,
        page: int,
        per_page: int,
        sort: str | None = None,
        predicate: Predicate | None = None,
        expand: str | None = None,
    ) -> RecordPage:
        self.calls.append(("list", collection, str(page)))
        self.requests.append(
            {"op": "list", "page": page, "per_page": per_page, "sort": sort,
             "predicate": predicate, "expand": expand}
        )
        await self._enter("list")
        records = self.collections.get(collection, [])
        if predicate is not None:
            records = [r for r in records if predicate.matches(r)]
        total = len(records)
        start = (page - 1) * per_page
        return RecordPage(
            items=[dict(r) for r in records[start:start + per_page]],
            total_items=total,
            total_pages=max(1, math.ceil(total / per_page)),
            page=page,
            per_page=per_page,
        )

    async def create(self, collection, data, files=None) -> dict[str, Any]:
        self.calls.append(("create", collection))
        self.requests.append({"op": "create", "data": dict(data), "files": files})
        await self._enter("create")
        record = {**data, "id": f"rec{next(self._ids)}"}
        self.collections.setdefault(collection, []).insert(0, record)
        return dict(record)

    async def update(self, collection, record_id, data, files=None) -> dict[str, Any]:
        self.calls.append(("update", collection, record_id))
        self.requests.append({"op": "update", "id": record_id, "data": dict(data), "files": files})
        await self._enter("update")
        for record in self.collections.get(collection, []):
            if record["id"] == record_id:
                record.update(data)
                return dict(record)
        raise RecordStoreError(404, {"message": "The requested resource wasn't found."})

    async def delete(self, collection, record_id) -> None:
        self.calls.append(("delete", collection, record_id))
        self.requests.append({"op": "delete", "id": record_id})
        await self._enter("delete")
        records = self.collections.get(collection, [])
        for index, record in enumerate(records):
            if record["id"] == record_id:
                del records[index]
                return
        raise RecordStoreError(404, {"message": "The requested resource wasn't found."})

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakePreview(PreviewHandle):
    """PreviewHandle that counts releases instead of touching the disk."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.release_calls = 0
        self._released = False

    @property
    def uri(self) -> str:
        return f"preview://{self.name}"

    def release(self) -> bool:
        self.release_calls += 1
        if self._released:
            return False
        self._released = True
        return True


@pytest.fixture
def preview_factory():
    """Preview factory that records every preview it creates."""
    created: list[FakePreview] = []

    def factory(data: bytes) -> FakePreview:
        preview = FakePreview(f"upload-{len(created)}")
        created.append(preview)
        return preview

    factory.created = created  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore({"products": [product_record()]})


@pytest.fixture
def preferences(tmp_path) -> ViewModePreference:
    return ViewModePreference(tmp_path / "prefs.yaml")


@pytest.fixture(name="product_record")
def product_record_fixture():
    """Factory for store-shaped product records."""
    return product_record


@pytest.fixture(name="make_product")
def make_product_fixture():
    """Factory for Product models."""
    return make_product


@pytest.fixture
def store_factory():
    """Build a FakeRecordStore from collection contents."""
    return FakeRecordStore
