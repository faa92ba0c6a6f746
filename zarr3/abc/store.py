from __future__ import annotations

from abc import abstractmethod, ABC

from typing import TYPE_CHECKING

from zarr3.errors import ReadOnlyError

if TYPE_CHECKING:
    from typing import List, Optional
    from zarr3.common import BytesLike


class Store(ABC):
    """A flat mapping of ``/``-separated string keys to byte strings.

    Reading a key that does not exist is not an error: ``get`` returns ``None`` and ``delete``
    returns ``False``. Every other failure of the backend raises
    :class:`zarr3.errors.StoreError`, chained from the underlying exception.
    """

    read_only: bool = False

    @property
    def supports_writes(self) -> bool:
        """Does the store support writes?"""
        return not self.read_only

    @property
    @abstractmethod
    def supports_listing(self) -> bool:
        """Does the store support listing?"""
        ...

    def _check_writable(self) -> None:
        if self.read_only:
            raise ReadOnlyError()

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Retrieve the value associated with a given key.

        Parameters
        ----------
        key : str

        Returns
        -------
        bytes or None
            ``None`` if the key does not exist.
        """
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if a key exists in the store.

        Parameters
        ----------
        key : str

        Returns
        -------
        bool
        """
        ...

    @abstractmethod
    def set(self, key: str, value: BytesLike) -> None:
        """Store a (key, value) pair.

        Parameters
        ----------
        key : str
        value : bytes
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key from the store.

        Parameters
        ----------
        key : str

        Returns
        -------
        bool
            ``False`` if the key did not exist.
        """
        ...

    @abstractmethod
    def list(self) -> List[str]:
        """Retrieve all keys in the store.

        Returns
        -------
        list[str]
        """
        ...

    @abstractmethod
    def list_prefix(self, prefix: str) -> List[str]:
        """Retrieve all keys in the store that begin with a given prefix.

        Parameters
        ----------
        prefix : str

        Returns
        -------
        list[str]
        """
        ...

    @abstractmethod
    def list_dir(self, prefix: str) -> List[str]:
        """
        Retrieve the names of all keys and prefixes directly below ``prefix``, that is, the
        part of each key after ``prefix + "/"`` up to the next “/”.

        Parameters
        ----------
        prefix : str

        Returns
        -------
        list[str]
        """
        ...

    def erase_prefix(self, prefix: str) -> None:
        """Remove all keys that begin with a given prefix.

        Parameters
        ----------
        prefix : str
        """
        self._check_writable()
        for key in self.list_prefix(prefix):
            self.delete(key)

    def close(self) -> None:
        pass

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *args) -> None:
        self.close()
