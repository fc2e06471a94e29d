from __future__ import annotations

import threading
from typing import Any, Dict, Tuple

from shared_debrid.errors import ConflictError


class MemoryDocumentStore:
    """In-process document store with per-file versions for conditional writes."""

    supports_conditional_writes = True

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files: Dict[str, Tuple[str, int]] = {}

    def get_content(self, file_name: str) -> str:
        return self.get_versioned_content(file_name)[0]

    def get_versioned_content(self, file_name: str) -> Tuple[str, int]:
        with self._lock:
            return self._files.get(file_name, ("", 0))

    def update_content(self, file_name: str, content: str) -> Dict[str, Any]:
        with self._lock:
            _, version = self._files.get(file_name, ("", 0))
            return self._write(file_name, content, version + 1)

    def update_content_if_match(self, file_name: str, content: str, version: int) -> Dict[str, Any]:
        with self._lock:
            _, current = self._files.get(file_name, ("", 0))
            if current != version:
                raise ConflictError(
                    f"{file_name} changed since it was read (expected v{version}, found v{current})"
                )
            return self._write(file_name, content, current + 1)

    def _write(self, file_name: str, content: str, version: int) -> Dict[str, Any]:
        self._files[file_name] = (content, version)
        return {"file_name": file_name, "version": version}


class MemoryStoreRegistry:
    """One MemoryDocumentStore per container id, shared across requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stores: Dict[str, MemoryDocumentStore] = {}

    def get(self, container_id: str) -> MemoryDocumentStore:
        with self._lock:
            store = self._stores.get(container_id)
            if store is None:
                store = MemoryDocumentStore()
                self._stores[container_id] = store
            return store

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()


memory_stores = MemoryStoreRegistry()
