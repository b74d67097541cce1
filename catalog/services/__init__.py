"""Services - record store client, catalog cache, mutations, view."""

from catalog.services.catalog_store import CatalogRow, CatalogStore
from catalog.services.catalog_view import CatalogView
from catalog.services.mutation_coordinator import MutationCoordinator
from catalog.services.product_form import ProductFormSession
from catalog.services.record_store import HttpRecordStore, RecordStore, get_record_store

__all__ = [
    "CatalogRow",
    "CatalogStore",
    "CatalogView",
    "MutationCoordinator",
    "ProductFormSession",
    "HttpRecordStore",
    "RecordStore",
    "get_record_store",
]
