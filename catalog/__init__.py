"""Catalog console engine: filtered listing and optimistic product editing."""

__version__ = "0.1.0"
