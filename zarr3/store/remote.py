from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Type

import fsspec

from zarr3.abc.store import Store
from zarr3.errors import StoreError
from zarr3.store.core import _dereference_path

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem
    from zarr3.common import BytesLike


class RemoteStore(Store):
    supports_listing: bool = True

    _fs: AbstractFileSystem
    exceptions: Tuple[Type[Exception], ...]

    def __init__(
        self,
        url: str,
        allowed_exceptions: Tuple[Type[Exception], ...] = (
            FileNotFoundError,
            IsADirectoryError,
            NotADirectoryError,
        ),
        read_only: bool = False,
        **storage_options: Any,
    ):
        """
        Parameters
        ----------
        url: root of the datastore. In fsspec notation, this is usually like "protocol://path/to".
        allowed_exceptions: when fetching data, these cases will be deemed to correspond to missing
            keys, rather than some other IO failure
        read_only: refuse writes and deletes
        storage_options: passed on to fsspec to make the filesystem instance.
        """

        if not isinstance(url, str):
            raise TypeError(f"URL not understood: {url!r}")
        self._fs, self.path = fsspec.url_to_fs(url, **storage_options)
        self.path = self.path.rstrip("/")
        self.exceptions = allowed_exceptions
        self.read_only = read_only

    def __str__(self) -> str:
        protocol = self._fs.protocol
        if isinstance(protocol, tuple):
            protocol = protocol[0]
        return f"{protocol}://{self.path.lstrip('/')}"

    def __repr__(self) -> str:
        return f"<RemoteStore({self.path})>"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, type(self)) and self._fs == other._fs and self.path == other.path
        )

    def _relative(self, path: str) -> str:
        path = path.rstrip("/")
        root = self.path + "/" if self.path else ""
        if root and path.startswith(root):
            return path[len(root) :]
        return path.lstrip("/") if not self.path else path

    def get(self, key: str) -> Optional[BytesLike]:
        path = _dereference_path(self.path, key)

        try:
            return self._fs.cat_file(path)
        except self.exceptions:
            return None
        except OSError as e:
            raise StoreError(f"failed to read {path}: {e}") from e

    def set(self, key: str, value: BytesLike) -> None:
        self._check_writable()
        path = _dereference_path(self.path, key)
        try:
            self._fs.pipe_file(path, bytes(value))
        except OSError as e:
            raise StoreError(f"failed to write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        self._check_writable()
        path = _dereference_path(self.path, key)
        try:
            if not self._fs.isfile(path):
                return False
            self._fs.rm(path)
            return True
        except (FileNotFoundError,) + self.exceptions:
            return False
        except OSError as e:
            raise StoreError(f"failed to delete {path}: {e}") from e

    def exists(self, key: str) -> bool:
        path = _dereference_path(self.path, key)
        try:
            return self._fs.isfile(path)
        except OSError as e:
            raise StoreError(f"failed to stat {path}: {e}") from e

    def _find(self, path: str) -> List[str]:
        try:
            allfiles = self._fs.find(path, detail=False, withdirs=False)
        except (FileNotFoundError,) + self.exceptions:
            return []
        except OSError as e:
            raise StoreError(f"failed to list {path}: {e}") from e
        return sorted(self._relative(a) for a in allfiles)

    def list(self) -> List[str]:
        return self._find(self.path)

    def list_prefix(self, prefix: str) -> List[str]:
        base = _dereference_path(self.path, prefix.rpartition("/")[0])
        return [key for key in self._find(base) if key.startswith(prefix)]

    def list_dir(self, prefix: str) -> List[str]:
        path = _dereference_path(self.path, prefix.strip("/"))
        try:
            allfiles = self._fs.ls(path, detail=False)
        except (FileNotFoundError,) + self.exceptions:
            return []
        except OSError as e:
            raise StoreError(f"failed to list {path}: {e}") from e
        return sorted({a.rstrip("/").rpartition("/")[2] for a in allfiles if a.rstrip("/") != path})
