from __future__ import annotations

import os
import re
import uuid
from pathlib import Path
from typing import List, Optional, Union

from zarr3.abc.store import Store
from zarr3.common import BytesLike
from zarr3.errors import StoreError
from zarr3.sync import ProcessSynchronizer

# not a valid node name, so it never collides with a group or array
LOCK_DIR = "__zarr3_locks"

_partial_file = re.compile(r"\.[0-9a-f]{32}\.partial$")


def _get(path: Path) -> bytes:
    return path.read_bytes()


def _put(path: Path, value: BytesLike, auto_mkdir: bool = True) -> None:
    if auto_mkdir:
        path.parent.mkdir(parents=True, exist_ok=True)

    # write to temporary file, then move it into place so readers never see a partial value
    temp_path = path.with_name(path.name + "." + uuid.uuid4().hex + ".partial")
    try:
        temp_path.write_bytes(value)
        os.replace(temp_path, path)
    finally:
        # clean up if temp file still exists for whatever reason
        if temp_path.exists():
            temp_path.unlink()


class LocalStore(Store):
    """Storage class using directories and files on a standard file system.

    Parameters
    ----------
    root : str or pathlib.Path
        Location of directory to use as the root of the storage hierarchy.
    auto_mkdir : bool, optional
        Create missing parent directories when writing. Default value is True.
    read_only : bool, optional
        Refuse writes and deletes with :class:`zarr3.errors.ReadOnlyError`.

    Notes
    -----
    Atomic writes are used, which means that data are first written to a
    temporary file, then moved into place when the write is successfully
    completed.

    Every write and delete holds an advisory lock for its key, combining a thread
    lock and a `fasteners` inter-process file lock. Lock files are kept in the
    ``__zarr3_locks`` directory below the root, which is hidden from listings.

    Safe to write in multiple threads or processes.
    """

    supports_listing: bool = True

    root: Path
    auto_mkdir: bool

    def __init__(self, root: Union[Path, str], auto_mkdir: bool = True, read_only: bool = False):
        if isinstance(root, str):
            root = Path(root)
        if not isinstance(root, Path):
            raise TypeError(f"Expected a str or Path. Got {type(root)}.")
        root = root.absolute()
        if root.exists() and not root.is_dir():
            raise StoreError(f"path exists but is not a directory: {root}")

        self.root = root
        self.auto_mkdir = auto_mkdir
        self.read_only = read_only
        self._synchronizer = ProcessSynchronizer(root / LOCK_DIR)

    def __str__(self) -> str:
        return f"file://{self.root}"

    def __repr__(self) -> str:
        return f"LocalStore({repr(str(self))})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, type(self)) and self.root == other.root

    def _path(self, key: str) -> Path:
        assert isinstance(key, str)
        parts = key.split("/")
        if any(part in ("", ".", "..") for part in parts) or parts[0] == LOCK_DIR:
            raise StoreError(f"invalid key for a local store: {key!r}")
        return self.root.joinpath(*parts)

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)

        try:
            return _get(path)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None
        except OSError as e:
            raise StoreError(f"failed to read {path}: {e}") from e

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def set(self, key: str, value: BytesLike) -> None:
        self._check_writable()
        path = self._path(key)
        try:
            with self._synchronizer[key]:
                _put(path, value, auto_mkdir=self.auto_mkdir)
        except OSError as e:
            raise StoreError(f"failed to write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        self._check_writable()
        path = self._path(key)
        try:
            with self._synchronizer[key]:
                if not path.is_file():
                    return False
                path.unlink()
                return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StoreError(f"failed to delete {path}: {e}") from e

    def _walk(self, base: Path) -> List[str]:
        keys = []
        for dirpath, dirnames, filenames in os.walk(base):
            if Path(dirpath) == self.root and LOCK_DIR in dirnames:
                dirnames.remove(LOCK_DIR)
            rel = Path(dirpath).relative_to(self.root).as_posix()
            for f in filenames:
                if _partial_file.search(f):
                    continue
                keys.append(f if rel == "." else f"{rel}/{f}")
        return sorted(keys)

    def list(self) -> List[str]:
        """Retrieve all keys in the store.

        Returns
        -------
        list[str]
        """
        return self._walk(self.root)

    def list_prefix(self, prefix: str) -> List[str]:
        """Retrieve all keys in the store that begin with a given prefix.

        Parameters
        ----------
        prefix : str

        Returns
        -------
        list[str]
        """
        # only the directory holding the prefix needs to be walked
        base = self.root.joinpath(*prefix.rpartition("/")[0].split("/"))
        return [key for key in self._walk(base) if key.startswith(prefix)]

    def list_dir(self, prefix: str) -> List[str]:
        """
        Retrieve the names of all keys and prefixes directly below ``prefix``.

        Parameters
        ----------
        prefix : str

        Returns
        -------
        list[str]
        """
        prefix = prefix.strip("/")
        base = self.root.joinpath(*prefix.split("/")) if prefix else self.root
        try:
            names = os.listdir(base)
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise StoreError(f"failed to list {base}: {e}") from e
        return sorted(
            name
            for name in names
            if not (base == self.root and name == LOCK_DIR) and not _partial_file.search(name)
        )

    def erase_prefix(self, prefix: str) -> None:
        super().erase_prefix(prefix)

        # remove the directories left empty, so they are not listed as implicit groups
        base = self.root.joinpath(*prefix.rpartition("/")[0].split("/"))
        if not base.is_dir():
            return
        for dirpath, _, _ in os.walk(base, topdown=False):
            path = Path(dirpath)
            if path == self.root or path.parts[len(self.root.parts) :][:1] == (LOCK_DIR,):
                continue
            if path.relative_to(self.root).as_posix().startswith(prefix.rstrip("/")) and not any(
                path.iterdir()
            ):
                path.rmdir()
