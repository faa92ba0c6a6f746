"""
Reading and writing single chunks.

The functions in this module are stateless: every call takes the array metadata, the store
path of the array, and a chunk index, and touches exactly one store key. They hold no locks
and keep no caches, so calls for distinct chunks may run concurrently from any number of
threads. Serializing writes to the same key is the job of the store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from zarr3.common import product
from zarr3.config import parse_write_empty_chunks
from zarr3.errors import CodecError, ShapeMismatchError, TypeMismatchError

if TYPE_CHECKING:
    from typing import Any, Optional
    from zarr3.common import BytesLike, ChunkCoords
    from zarr3.metadata import ArrayMetadata
    from zarr3.store.core import StorePath


def chunk_store_path(
    metadata: ArrayMetadata, store_path: StorePath, chunk_coords: ChunkCoords
) -> StorePath:
    """The store path of a chunk; raises ``InvalidChunkIndexError`` for indices outside the
    chunk grid."""
    return store_path / metadata.encode_chunk_key(chunk_coords)


def encode_chunk(metadata: ArrayMetadata, chunk: np.ndarray) -> bytes:
    return bytes(metadata.codecs.encode(chunk, metadata.get_chunk_spec()))


def decode_chunk(metadata: ArrayMetadata, data: BytesLike) -> np.ndarray:
    chunk_spec = metadata.get_chunk_spec()
    chunk = metadata.codecs.decode(data, chunk_spec)
    if chunk.shape != chunk_spec.shape:
        raise CodecError(
            f"Decoded chunk has shape {chunk.shape}, expected {chunk_spec.shape}."
        )
    # decoded chunks may be read-only views of the input buffer
    return np.require(chunk, dtype=metadata.dtype, requirements=["C", "W"])


def fill_chunk(metadata: ArrayMetadata) -> np.ndarray:
    if metadata.dtype.kind == "V":
        fill_bytes = np.asarray(metadata.fill_value).tobytes() * product(metadata.chunk_shape)
        return np.frombuffer(fill_bytes, dtype=metadata.dtype).reshape(metadata.chunk_shape).copy()
    return np.full(metadata.chunk_shape, metadata.fill_value, dtype=metadata.dtype)


def is_fill_value_chunk(chunk: np.ndarray, fill_value: Any) -> bool:
    """Whether every element of ``chunk`` equals ``fill_value``, counting NaN as equal to
    NaN."""
    if chunk.dtype.kind == "c":
        # each part of a complex number is compared on its own
        fill_value = np.broadcast_to(np.asarray(fill_value, dtype=chunk.dtype), chunk.shape)
        return np.array_equal(chunk.real, fill_value.real, equal_nan=True) and np.array_equal(
            chunk.imag, fill_value.imag, equal_nan=True
        )
    if chunk.dtype.kind == "V":
        fill_bytes = np.frombuffer(np.asarray(fill_value).tobytes(), dtype=np.uint8)
        chunk_bytes = np.frombuffer(np.ascontiguousarray(chunk).tobytes(), dtype=np.uint8)
        return bool(np.all(chunk_bytes.reshape(-1, chunk.dtype.itemsize) == fill_bytes))
    if chunk.dtype.kind == "f":
        return np.array_equal(chunk, np.full_like(chunk, fill_value), equal_nan=True)
    return bool(np.all(chunk == fill_value))


def check_chunk(metadata: ArrayMetadata, chunk: Any) -> np.ndarray:
    if not isinstance(chunk, np.ndarray):
        raise TypeMismatchError(f"Expected a numpy array, got {type(chunk)}.")
    if chunk.shape != metadata.chunk_shape:
        raise ShapeMismatchError(metadata.chunk_shape, chunk.shape)
    if chunk.dtype.name != metadata.dtype.name:
        raise TypeMismatchError(
            f"Expected a chunk of data type {metadata.dtype}, got {chunk.dtype}."
        )
    return chunk


def read_chunk(
    metadata: ArrayMetadata, store_path: StorePath, chunk_coords: ChunkCoords
) -> np.ndarray:
    """Read and decode one chunk.

    A chunk that was never written, or was removed for holding only the fill value, reads as
    a chunk filled with the fill value.

    Raises
    ------
    InvalidChunkIndexError
        If ``chunk_coords`` is outside the chunk grid.
    CodecError
        If the stored bytes can not be decoded.
    StoreError
        If the store fails.
    """
    chunk_bytes = chunk_store_path(metadata, store_path, chunk_coords).get()
    if chunk_bytes is None:
        return fill_chunk(metadata)
    return decode_chunk(metadata, chunk_bytes)


def write_chunk(
    metadata: ArrayMetadata,
    store_path: StorePath,
    chunk_coords: ChunkCoords,
    chunk: np.ndarray,
    *,
    write_empty_chunks: Optional[bool] = None,
) -> None:
    """Encode and store one chunk.

    The chunk is validated before the store is touched. If ``write_empty_chunks`` is false
    and every element equals the fill value, the chunk's key is deleted instead of written.
    ``None`` means the ``array.write_empty_chunks`` config value.

    Raises
    ------
    InvalidChunkIndexError
        If ``chunk_coords`` is outside the chunk grid.
    ShapeMismatchError
        If the chunk's shape is not the chunk shape of the array.
    TypeMismatchError
        If the chunk's data type is not the data type of the array.
    """
    chunk_path = chunk_store_path(metadata, store_path, chunk_coords)
    check_chunk(metadata, chunk)
    write_empty_chunks = parse_write_empty_chunks(write_empty_chunks)

    if not write_empty_chunks and is_fill_value_chunk(chunk, metadata.fill_value):
        chunk_path.delete()
    else:
        chunk_path.set(encode_chunk(metadata, chunk))
