"""Persistent storage for exported files: backends, key-value store, writer."""

from .base import (
    DirectoryPicker,
    ScopedDirectoryAccess,
    ShareTarget,
    StorageBackend,
    is_already_exists_error,
    is_permission_error,
)
from .kvstore import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from .sandbox import SandboxDirectoryBackend
from .scoped import LocalScopedDirectoryAccess, ScopedGrantBackend
from .writer import DEFAULT_SHARE_TITLE, StorageWriter, select_storage_backend

__all__ = [
    "StorageBackend",
    "ScopedGrantBackend",
    "SandboxDirectoryBackend",
    "LocalScopedDirectoryAccess",
    "DirectoryPicker",
    "ScopedDirectoryAccess",
    "ShareTarget",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "StorageWriter",
    "select_storage_backend",
    "DEFAULT_SHARE_TITLE",
    "is_permission_error",
    "is_already_exists_error",
]
