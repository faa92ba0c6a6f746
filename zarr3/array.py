from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np

from zarr3 import engine
from zarr3.common import ZARR_JSON, json_loads, parse_shapelike, product
from zarr3.config import config, parse_write_empty_chunks
from zarr3.data_types import cast_scalar
from zarr3.errors import (
    ArrayNotFoundError,
    ContainsArrayError,
    ContainsGroupError,
    ShapeMismatchError,
    TypeMismatchError,
)
from zarr3.indexing import BasicIndexer, is_total_slice
from zarr3.metadata import ArrayMetadata, parse_node_metadata
from zarr3.store.core import StorePath, make_store_path

if TYPE_CHECKING:
    from typing import Any, Dict, Iterable, Literal, Optional, Tuple, Union
    from zarr3.common import JSON, ChunkCoords, Selection
    from zarr3.data_types import DataType
    from zarr3.store.core import StoreLike


def _cast_array(value: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Cast ``value`` to ``dtype`` following numpy's ``same_kind`` rule, except that integers
    may change signedness or width as long as every value is in range."""
    if value.dtype.kind in "iu" and dtype.kind in "iu":
        info = np.iinfo(dtype)
        if value.size and (value.min() < info.min or value.max() > info.max):
            raise TypeMismatchError(
                f"Values in [{value.min()}, {value.max()}] are out of range for data type "
                f"{dtype} [{info.min}, {info.max}]."
            )
        return value.astype(dtype, copy=False)
    if dtype.kind == "V":
        if value.dtype.kind not in "SV" or value.dtype.itemsize != dtype.itemsize:
            raise TypeMismatchError(f"Can not store values of type {value.dtype} as {dtype}.")
        return np.ascontiguousarray(value).view(dtype)
    try:
        return value.astype(dtype, casting="same_kind", copy=False)
    except TypeError as e:
        raise TypeMismatchError(str(e)) from e


def _check_no_node(store_path: StorePath) -> None:
    zarr_json_bytes = (store_path / ZARR_JSON).get()
    if zarr_json_bytes is None:
        return
    if json_loads(zarr_json_bytes).get("node_type") == "group":
        raise ContainsGroupError(store_path.path)
    raise ContainsArrayError(store_path.path)


@dataclass(frozen=True)
class Array:
    """A chunked N-dimensional array in a store.

    ``Array`` objects are immutable: operations that change the metadata, such as
    :meth:`resize` and :meth:`update_attributes`, write the new metadata document and return
    a new ``Array``.
    """

    metadata: ArrayMetadata
    store_path: StorePath
    write_empty_chunks: Optional[bool] = None

    @classmethod
    def create(
        cls,
        store: StoreLike,
        *,
        shape: ChunkCoords,
        dtype: Union[str, np.dtype, DataType],
        chunk_shape: ChunkCoords,
        fill_value: Optional[Any] = None,
        chunk_key_encoding: Union[
            Tuple[Literal["default"], Literal[".", "/"]],
            Tuple[Literal["v2"], Literal[".", "/"]],
        ] = ("default", "/"),
        codecs: Optional[Iterable[Any]] = None,
        dimension_names: Optional[Iterable[Optional[str]]] = None,
        attributes: Optional[Dict[str, JSON]] = None,
        exists_ok: bool = False,
        write_empty_chunks: Optional[bool] = None,
    ) -> Array:
        store_path = make_store_path(store)
        if not exists_ok:
            _check_no_node(store_path)

        metadata = ArrayMetadata.create(
            shape=shape,
            dtype=dtype,
            chunk_shape=chunk_shape,
            fill_value=fill_value,
            chunk_key_encoding=chunk_key_encoding,
            codecs=codecs,
            dimension_names=dimension_names,
            attributes=attributes,
        )

        array = cls(
            metadata=metadata,
            store_path=store_path,
            write_empty_chunks=write_empty_chunks,
        )

        array._save_metadata()
        return array

    @classmethod
    def open(cls, store: StoreLike, write_empty_chunks: Optional[bool] = None) -> Array:
        store_path = make_store_path(store)
        zarr_json_bytes = (store_path / ZARR_JSON).get()
        if zarr_json_bytes is None:
            raise ArrayNotFoundError(store_path.path)
        metadata = parse_node_metadata(zarr_json_bytes)
        if not isinstance(metadata, ArrayMetadata):
            raise ContainsGroupError(store_path.path)
        return cls(metadata=metadata, store_path=store_path, write_empty_chunks=write_empty_chunks)

    def _save_metadata(self) -> None:
        (self.store_path / ZARR_JSON).set(self.metadata.to_bytes())

    @property
    def ndim(self) -> int:
        return len(self.metadata.shape)

    @property
    def shape(self) -> ChunkCoords:
        return self.metadata.shape

    @property
    def chunk_shape(self) -> ChunkCoords:
        return self.metadata.chunk_shape

    @property
    def size(self) -> int:
        return product(self.metadata.shape)

    @property
    def dtype(self) -> np.dtype:
        return self.metadata.dtype

    @property
    def fill_value(self) -> np.generic:
        return self.metadata.fill_value

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

    @property
    def nchunks(self) -> int:
        return product(self.metadata.chunk_grid.grid_shape(self.metadata.shape))

    @property
    def nchunks_initialized(self) -> int:
        """The number of chunks that are present in the store."""
        prefix = self.store_path.path + "/" if self.store_path.path else ""
        grid_shape = self.metadata.chunk_grid.grid_shape(self.metadata.shape)
        count = 0
        for key in self.store_path.store.list_prefix(prefix):
            chunk_key = key[len(prefix) :]
            if chunk_key == ZARR_JSON:
                continue
            try:
                chunk_coords = self.metadata.chunk_key_encoding.decode_chunk_key(chunk_key)
            except ValueError:
                continue
            if len(chunk_coords) == len(grid_shape) and all(
                0 <= c < n for c, n in zip(chunk_coords, grid_shape)
            ):
                count += 1
        return count

    def _write_empty_chunks(self, write_empty_chunks: Optional[bool]) -> bool:
        if write_empty_chunks is None:
            write_empty_chunks = self.write_empty_chunks
        return parse_write_empty_chunks(write_empty_chunks)

    def read_chunk(self, chunk_coords: ChunkCoords) -> np.ndarray:
        return engine.read_chunk(self.metadata, self.store_path, chunk_coords)

    def write_chunk(
        self,
        chunk_coords: ChunkCoords,
        chunk: np.ndarray,
        *,
        write_empty_chunks: Optional[bool] = None,
    ) -> None:
        engine.write_chunk(
            self.metadata,
            self.store_path,
            chunk_coords,
            chunk,
            write_empty_chunks=self._write_empty_chunks(write_empty_chunks),
        )

    def __getitem__(self, selection: Selection) -> Union[np.ndarray, np.generic]:
        indexer = BasicIndexer(
            selection,
            shape=self.metadata.shape,
            chunk_shape=self.metadata.chunk_shape,
        )

        # setup output array
        out = np.empty(
            indexer.shape,
            dtype=self.metadata.dtype,
            order=config.get("array.order"),
        )

        # reading chunks and decoding them
        for chunk_coords, chunk_selection, out_selection in indexer:
            chunk_array = self.read_chunk(chunk_coords)
            out[out_selection] = chunk_array[chunk_selection]

        if out.shape:
            return out
        else:
            return out[()]

    def __setitem__(self, selection: Selection, value: Any) -> None:
        chunk_shape = self.metadata.chunk_shape
        indexer = BasicIndexer(
            selection,
            shape=self.metadata.shape,
            chunk_shape=chunk_shape,
        )

        sel_shape = indexer.shape

        # check value shape
        if np.isscalar(value):
            # setting a scalar value
            value = np.asarray(cast_scalar(self.metadata.data_type, value))
        else:
            value = np.asarray(value)
            if value.shape != sel_shape:
                raise ShapeMismatchError(sel_shape, value.shape)
            value = _cast_array(value, self.metadata.dtype)

        # merging with existing data and encoding chunks
        for chunk_coords, chunk_selection, out_selection in indexer:
            chunk_value = value if value.ndim == 0 else value[out_selection]
            if is_total_slice(chunk_selection, chunk_shape):
                # write entire chunks
                chunk_array = np.empty(chunk_shape, dtype=self.metadata.dtype)
                chunk_array[...] = chunk_value
            else:
                # writing partial chunks
                # read chunk first
                chunk_array = self.read_chunk(chunk_coords)
                chunk_array[chunk_selection] = chunk_value
            self.write_chunk(chunk_coords, chunk_array)

    def resize(self, new_shape: ChunkCoords) -> Array:
        """Change the shape of the array.

        Chunks that fall outside of the new chunk grid are deleted, and elements of the
        remaining chunks beyond the new shape are reset to the fill value, so that growing
        the array again exposes only fill values.
        """
        new_shape = parse_shapelike(new_shape)
        if len(new_shape) != self.ndim:
            raise ShapeMismatchError(self.metadata.shape, new_shape)
        old_shape = self.metadata.shape
        new_metadata = self.metadata.update_shape(new_shape)

        # Remove all chunks outside of the new shape
        chunk_grid = self.metadata.chunk_grid
        chunk_shape = chunk_grid.chunk_shape
        old_chunk_coords = set(chunk_grid.all_chunk_coords(old_shape))
        new_chunk_coords = set(chunk_grid.all_chunk_coords(new_shape))

        for chunk_coords in sorted(old_chunk_coords.difference(new_chunk_coords)):
            engine.chunk_store_path(self.metadata, self.store_path, chunk_coords).delete()

        # Clear the parts of retained chunks that are now out of bounds
        for chunk_coords in sorted(old_chunk_coords.intersection(new_chunk_coords)):
            cut = tuple(
                slice(n - c * cs, None) if o > n and (c + 1) * cs > n else None
                for c, cs, o, n in zip(chunk_coords, chunk_shape, old_shape, new_shape)
            )
            if all(s is None for s in cut):
                continue
            chunk_path = engine.chunk_store_path(self.metadata, self.store_path, chunk_coords)
            if not chunk_path.exists():
                continue
            chunk_array = self.read_chunk(chunk_coords)
            for dim, dim_sel in enumerate(cut):
                if dim_sel is not None:
                    index = (slice(None),) * dim + (dim_sel,)
                    chunk_array[index] = self.metadata.fill_value
            self.write_chunk(chunk_coords, chunk_array)

        # Write new metadata
        new_array = replace(self, metadata=new_metadata)
        new_array._save_metadata()
        return new_array

    def update_attributes(self, new_attributes: Dict[str, JSON]) -> Array:
        new_metadata = self.metadata.update_attributes(new_attributes)

        # Write new metadata
        new_array = replace(self, metadata=new_metadata)
        new_array._save_metadata()
        return new_array

    def __repr__(self) -> str:
        return f"<Array {self.store_path} shape={self.shape} dtype={self.dtype}>"
