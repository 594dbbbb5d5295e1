"""Transport layer exports."""

from .backend import CloudBackendClient
from .object_store import ObjectStoreReader

__all__ = ["CloudBackendClient", "ObjectStoreReader"]
