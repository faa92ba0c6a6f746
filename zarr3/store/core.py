from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from zarr3.abc.store import Store
from zarr3.common import BytesLike
from zarr3.errors import InvalidNodeNameError

logger = logging.getLogger(__name__)

_recommended_node_name = re.compile(r"^[A-Za-z0-9_.\-]+$")


def validate_node_name(name: str) -> str:
    """Check that ``name`` can name a group or array.

    Raises
    ------
    InvalidNodeNameError
        If the name is empty, contains ``/``, consists only of periods, or starts with the
        reserved prefix ``__``.
    """
    if not isinstance(name, str):
        raise InvalidNodeNameError(name, "must be a str")
    if name == "":
        raise InvalidNodeNameError(name, "must not be empty")
    if "/" in name:
        raise InvalidNodeNameError(name, "must not contain '/'")
    if name.strip(".") == "":
        raise InvalidNodeNameError(name, "must not consist only of periods")
    if name.startswith("__"):
        raise InvalidNodeNameError(name, "the prefix '__' is reserved")
    if not _recommended_node_name.match(name):
        logger.warning(
            "Node name %r contains characters outside of a-z, A-Z, 0-9, '-', '_' and '.'; "
            "it may not be portable to all stores.",
            name,
        )
    return name


def _dereference_path(root: str, path: str) -> str:
    assert isinstance(root, str)
    assert isinstance(path, str)
    root = root.rstrip("/")
    path = f"{root}/{path}" if root != "" else path
    path = path.rstrip("/")
    return path


class StorePath:
    store: Store
    path: str

    def __init__(self, store: Store, path: Optional[str] = None):
        self.store = store
        self.path = path or ""

    @property
    def name(self) -> str:
        return self.path.rpartition("/")[2]

    def get(self) -> Optional[bytes]:
        return self.store.get(self.path)

    def set(self, value: BytesLike) -> None:
        self.store.set(self.path, value)

    def delete(self) -> bool:
        return self.store.delete(self.path)

    def exists(self) -> bool:
        return self.store.exists(self.path)

    def __truediv__(self, other: str) -> StorePath:
        return self.__class__(self.store, _dereference_path(self.path, other))

    def __str__(self) -> str:
        return _dereference_path(str(self.store), self.path)

    def __repr__(self) -> str:
        return f"StorePath({self.store.__class__.__name__}, {str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StorePath):
            return NotImplemented
        return self.store == other.store and self.path == other.path


StoreLike = Union[Store, StorePath, Path, str]


def make_store_path(store_like: StoreLike) -> StorePath:
    """Wrap ``store_like`` in a :class:`StorePath`.

    Strings and ``pathlib.Path`` objects are taken as directories on the local file system.
    """
    from zarr3.store.local import LocalStore

    if isinstance(store_like, StorePath):
        return store_like
    elif isinstance(store_like, Store):
        return StorePath(store_like)
    elif isinstance(store_like, (str, Path)):
        return StorePath(LocalStore(store_like))
    raise TypeError(f"Expected a Store, StorePath, str or Path. Got {type(store_like)}.")
