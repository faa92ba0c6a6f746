from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from zarr3.array import Array, _check_no_node
from zarr3.common import ZARR_JSON
from zarr3.errors import ContainsArrayError, GroupNotFoundError, NodeNotFoundError
from zarr3.metadata import ArrayMetadata, GroupMetadata, parse_node_metadata
from zarr3.store.core import StorePath, make_store_path, validate_node_name
from zarr3.tree import TreeViewer

if TYPE_CHECKING:
    from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
    from zarr3.common import JSON
    from zarr3.store.core import StoreLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Group:
    """A node of the hierarchy holding named arrays and groups.

    Children are discovered by listing the store below the group's path. A prefix that holds
    keys but no ``zarr.json`` document is opened as an implicit group with no attributes.
    """

    metadata: GroupMetadata
    store_path: StorePath
    implicit: bool = False

    @classmethod
    def create(
        cls,
        store: StoreLike,
        *,
        attributes: Optional[Dict[str, JSON]] = None,
        exists_ok: bool = False,
    ) -> Group:
        store_path = make_store_path(store)
        if not exists_ok:
            _check_no_node(store_path)
        group = cls(
            metadata=GroupMetadata(attributes=attributes),
            store_path=store_path,
        )
        group._save_metadata()
        return group

    @classmethod
    def open(cls, store: StoreLike) -> Group:
        store_path = make_store_path(store)
        zarr_json_bytes = (store_path / ZARR_JSON).get()
        if zarr_json_bytes is None:
            if not store_path.store.list_dir(store_path.path):
                raise GroupNotFoundError(store_path.path)
            logger.debug("Opening %s as an implicit group", store_path)
            return cls(metadata=GroupMetadata(), store_path=store_path, implicit=True)
        metadata = parse_node_metadata(zarr_json_bytes)
        if not isinstance(metadata, GroupMetadata):
            raise ContainsArrayError(store_path.path)
        return cls(metadata=metadata, store_path=store_path)

    @classmethod
    def open_or_array(cls, store: StoreLike) -> Union[Array, Group]:
        store_path = make_store_path(store)
        zarr_json_bytes = (store_path / ZARR_JSON).get()
        if zarr_json_bytes is None:
            return cls.open(store_path)
        metadata = parse_node_metadata(zarr_json_bytes)
        if isinstance(metadata, ArrayMetadata):
            return Array(metadata=metadata, store_path=store_path)
        return cls(metadata=metadata, store_path=store_path)

    def _save_metadata(self) -> None:
        (self.store_path / ZARR_JSON).set(self.metadata.to_bytes())

    @property
    def attrs(self) -> Dict[str, JSON]:
        return self.metadata.attributes

    @property
    def path(self) -> str:
        return self.store_path.path

    @property
    def name(self) -> str:
        return "/" + self.store_path.path

    @property
    def basename(self) -> str:
        return self.store_path.name

    def _child_path(self, name: str) -> StorePath:
        return self.store_path / validate_node_name(name)

    def __getitem__(self, name: str) -> Union[Array, Group]:
        try:
            return Group.open_or_array(self._child_path(name))
        except NodeNotFoundError as e:
            raise KeyError(name) from e

    def get(self, name: str, default: Any = None) -> Union[Array, Group, Any]:
        try:
            return self[name]
        except KeyError:
            return default

    def __contains__(self, name: str) -> bool:
        return name in self.children()

    def __iter__(self) -> Iterator[str]:
        return iter(self.children())

    def __len__(self) -> int:
        return len(self.children())

    def create_group(
        self,
        name: str,
        *,
        attributes: Optional[Dict[str, JSON]] = None,
        exists_ok: bool = False,
    ) -> Group:
        return type(self).create(
            self._child_path(name), attributes=attributes, exists_ok=exists_ok
        )

    def create_array(self, name: str, **kwargs: Any) -> Array:
        return Array.create(self._child_path(name), **kwargs)

    def children(self) -> List[str]:
        """Names of the nodes directly below this group, sorted."""
        names = []
        for name in self.store_path.store.list_dir(self.store_path.path):
            if name == ZARR_JSON:
                continue
            if name.startswith("__") or name.strip(".") == "":
                continue
            names.append(name)
        return sorted(names)

    def members(self) -> List[Tuple[str, Union[Array, Group]]]:
        return [(name, self[name]) for name in self.children()]

    def arrays(self) -> List[Tuple[str, Array]]:
        return [(name, node) for name, node in self.members() if isinstance(node, Array)]

    def groups(self) -> List[Tuple[str, Group]]:
        return [(name, node) for name, node in self.members() if isinstance(node, Group)]

    def update_attributes(self, new_attributes: Dict[str, JSON]) -> Group:
        new_group = replace(
            self, metadata=self.metadata.update_attributes(new_attributes), implicit=False
        )
        new_group._save_metadata()
        return new_group

    def delete(self, name: str) -> None:
        """Remove the child ``name`` and everything below it."""
        child_path = self._child_path(name)
        self.store_path.store.erase_prefix(child_path.path + "/")

    def tree(self, level: Optional[int] = None) -> TreeViewer:
        return TreeViewer(self, level=level)

    def __repr__(self) -> str:
        return f"<Group {self.store_path}>"
