"""Core module - filters, pagination, validation, photo order, inline edits."""
