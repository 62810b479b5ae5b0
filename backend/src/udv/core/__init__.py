"""Field type registry."""

from udv.core.types import CategoryHandler, FieldCategory, classify, is_searchable

__all__ = ["CategoryHandler", "FieldCategory", "classify", "is_searchable"]
