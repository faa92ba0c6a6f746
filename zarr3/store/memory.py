from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from zarr3.abc.store import Store

if TYPE_CHECKING:
    from typing import Dict, List, Optional
    from zarr3.common import BytesLike


class MemoryStore(Store):
    """Store for local memory, backed by a ``dict`` and guarded by a lock."""

    supports_listing: bool = True

    _store_dict: Dict[str, bytes]

    def __init__(self, store_dict: Optional[Dict[str, bytes]] = None, read_only: bool = False):
        self._store_dict = {} if store_dict is None else store_dict
        self._lock = threading.Lock()
        self.read_only = read_only

    def __str__(self) -> str:
        return f"memory://{id(self._store_dict)}"

    def __repr__(self) -> str:
        return f"MemoryStore({repr(str(self))})"

    def get(self, key: str) -> Optional[bytes]:
        assert isinstance(key, str)
        with self._lock:
            return self._store_dict.get(key)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._store_dict

    def set(self, key: str, value: BytesLike) -> None:
        assert isinstance(key, str)
        self._check_writable()
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected BytesLike. Got {type(value)}.")
        value = bytes(value)
        with self._lock:
            self._store_dict[key] = value

    def delete(self, key: str) -> bool:
        self._check_writable()
        with self._lock:
            return self._store_dict.pop(key, None) is not None

    def list(self) -> List[str]:
        with self._lock:
            return sorted(self._store_dict)

    def list_prefix(self, prefix: str) -> List[str]:
        with self._lock:
            return sorted(key for key in self._store_dict if key.startswith(prefix))

    def list_dir(self, prefix: str) -> List[str]:
        prefix = prefix.rstrip("/")
        if prefix != "":
            prefix = prefix + "/"
        with self._lock:
            keys = [key[len(prefix) :] for key in self._store_dict if key.startswith(prefix)]
        return sorted({key.split("/", 1)[0] for key in keys})
