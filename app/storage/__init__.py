"""Object storage adapters."""

from .object_store import ObjectPage, ObjectRecord, S3ObjectStore, get_object_store

__all__ = ["ObjectPage", "ObjectRecord", "S3ObjectStore", "get_object_store"]
