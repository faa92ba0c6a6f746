from __future__ import annotations

import numpy as np
import pytest

from zarr3 import config
from zarr3.codecs import BytesCodec, Crc32cCodec, GzipCodec, TransposeCodec
from zarr3.engine import (
    chunk_store_path,
    decode_chunk,
    encode_chunk,
    fill_chunk,
    is_fill_value_chunk,
    read_chunk,
    write_chunk,
)
from zarr3.errors import (
    ChecksumMismatchError,
    CodecError,
    InvalidChunkIndexError,
    ShapeMismatchError,
    StoreError,
    TypeMismatchError,
)
from zarr3.metadata import ArrayMetadata
from zarr3.store import LocalStore, MemoryStore, StorePath


@pytest.fixture
def metadata() -> ArrayMetadata:
    return ArrayMetadata.create(
        shape=(10, 10),
        dtype="float32",
        chunk_shape=(4, 4),
        fill_value=0.0,
        codecs=[BytesCodec(), Crc32cCodec()],
    )


def test_chunk_store_path(metadata, store_path):
    array_path = store_path / "arr"
    assert chunk_store_path(metadata, array_path, (2, 1)).path == "arr/c/2/1"
    with pytest.raises(InvalidChunkIndexError):
        chunk_store_path(metadata, array_path, (3, 0))


def test_scenario(metadata, store_path):
    write_chunk(metadata, store_path, (0, 0), np.ones((4, 4), dtype="float32"))

    assert np.array_equal(read_chunk(metadata, store_path, (0, 0)), np.ones((4, 4)))

    # the edge chunk covers rows and columns 8..9 of the array, the rest is padding
    edge = read_chunk(metadata, store_path, (2, 2))
    assert edge.shape == (4, 4)
    assert edge.dtype == np.dtype("float32")
    assert np.array_equal(edge, np.zeros((4, 4), dtype="float32"))
    assert store_path.store.list() == ["c/0/0"]


@pytest.mark.parametrize("write_empty_chunks", [True, False])
def test_write_read(metadata, store_path, write_empty_chunks):
    rng = np.random.default_rng(42)
    chunks = {
        coords: rng.random((4, 4), dtype="float32")
        for coords in metadata.chunk_grid.all_chunk_coords(metadata.shape)
    }
    for coords, chunk in chunks.items():
        write_chunk(metadata, store_path, coords, chunk, write_empty_chunks=write_empty_chunks)
    for coords, chunk in chunks.items():
        assert np.array_equal(read_chunk(metadata, store_path, coords), chunk)


def test_read_missing_chunk(metadata, store_path):
    chunk = read_chunk(metadata, store_path, (1, 1))
    assert np.array_equal(chunk, fill_chunk(metadata))
    # the result is writable
    chunk[0, 0] = 5


def test_read_missing_chunk_nan_fill(store_path):
    metadata = ArrayMetadata.create(
        shape=(5,), dtype="float16", chunk_shape=(5,), fill_value="NaN"
    )
    chunk = read_chunk(metadata, store_path, (0,))
    assert chunk.dtype == np.dtype("float16")
    assert np.all(np.isnan(chunk))


def test_write_empty_chunks_true(metadata, store_path):
    zeros = np.zeros((4, 4), dtype="float32")
    write_chunk(metadata, store_path, (1, 1), zeros, write_empty_chunks=True)
    assert store_path.store.list() == ["c/1/1"]
    assert np.array_equal(read_chunk(metadata, store_path, (1, 1)), zeros)


def test_write_empty_chunks_false(metadata, store_path):
    write_chunk(metadata, store_path, (1, 1), np.ones((4, 4), dtype="float32"))
    assert store_path.store.list() == ["c/1/1"]

    zeros = np.zeros((4, 4), dtype="float32")
    write_chunk(metadata, store_path, (1, 1), zeros, write_empty_chunks=False)
    assert store_path.store.list() == []
    assert np.array_equal(read_chunk(metadata, store_path, (1, 1)), zeros)


def test_write_empty_chunks_config(metadata, store_path):
    zeros = np.zeros((4, 4), dtype="float32")
    with config.set({"array.write_empty_chunks": False}):
        write_chunk(metadata, store_path, (0, 1), zeros)
    assert store_path.store.list() == []
    write_chunk(metadata, store_path, (0, 1), zeros)
    assert store_path.store.list() == ["c/0/1"]


def test_write_empty_chunks_nan(store_path):
    metadata = ArrayMetadata.create(
        shape=(4,), dtype="complex64", chunk_shape=(2,), fill_value=[float("nan"), 0.0]
    )
    chunk = np.full((2,), complex(np.nan, 0), dtype="complex64")
    write_chunk(metadata, store_path, (1,), chunk, write_empty_chunks=False)
    assert store_path.store.list() == []
    assert np.all(np.isnan(read_chunk(metadata, store_path, (1,))))

    # NaN in only one part of a complex element is not the fill value
    for mixed in ([complex(np.nan, 1), complex(0, np.nan)], [complex(np.nan, np.nan)] * 2):
        chunk = np.array(mixed, dtype="complex64")
        write_chunk(metadata, store_path, (1,), chunk, write_empty_chunks=False)
        assert store_path.store.list() == ["c/1"]
        out = read_chunk(metadata, store_path, (1,))
        assert np.array_equal(out.real, chunk.real, equal_nan=True)
        assert np.array_equal(out.imag, chunk.imag, equal_nan=True)
        store_path.store.delete("c/1")


@pytest.mark.parametrize(
    "chunk, error",
    [
        (np.zeros((4, 3), dtype="float32"), ShapeMismatchError),
        (np.zeros((16,), dtype="float32"), ShapeMismatchError),
        (np.zeros((4, 4), dtype="float64"), TypeMismatchError),
        (np.zeros((4, 4), dtype="int32"), TypeMismatchError),
        ([[0.0] * 4] * 4, TypeMismatchError),
    ],
)
def test_write_invalid_chunk(metadata, chunk, error):
    store = MemoryStore()
    with pytest.raises(error):
        write_chunk(metadata, StorePath(store), (0, 0), chunk)
    # nothing is written
    assert store.list() == []


@pytest.mark.parametrize("chunk_coords", [(3, 0), (0, 3), (-1, 0), (0,), (0, 0, 0)])
def test_invalid_chunk_index(metadata, chunk_coords):
    store = MemoryStore()
    with pytest.raises(InvalidChunkIndexError):
        write_chunk(metadata, StorePath(store), chunk_coords, np.zeros((4, 4), dtype="float32"))
    with pytest.raises(InvalidChunkIndexError):
        read_chunk(metadata, StorePath(store), chunk_coords)
    assert store.list() == []


def test_read_corrupt_chunk(metadata, store_path):
    write_chunk(metadata, store_path, (0, 0), np.ones((4, 4), dtype="float32"))
    data = bytearray(store_path.store.get("c/0/0"))
    data[0] ^= 0x01
    store_path.store.set("c/0/0", bytes(data))
    with pytest.raises(ChecksumMismatchError):
        read_chunk(metadata, store_path, (0, 0))


@pytest.mark.parametrize("index", range(4 * 4 * 4 + 4))
def test_read_corrupt_chunk_any_byte(metadata, index):
    store_path = StorePath(MemoryStore())
    write_chunk(metadata, store_path, (0, 0), np.arange(16, dtype="float32").reshape(4, 4))
    data = bytearray(store_path.store.get("c/0/0"))
    assert len(data) == 68
    data[index] ^= 0x80
    store_path.store.set("c/0/0", bytes(data))
    with pytest.raises(ChecksumMismatchError):
        read_chunk(metadata, store_path, (0, 0))


def test_read_truncated_chunk(store_path):
    metadata = ArrayMetadata.create(shape=(8,), dtype="int32", chunk_shape=(4,))
    store_path.store.set("c/0", b"\x00" * 15)
    with pytest.raises(CodecError):
        read_chunk(metadata, store_path, (0,))


def test_read_store_error(metadata):
    class FailingStore(MemoryStore):
        def get(self, key):
            raise StoreError(f"failed to read {key}")

    # store failures are never turned into fill values
    with pytest.raises(StoreError):
        read_chunk(metadata, StorePath(FailingStore()), (0, 0))


def test_local_store_directory_as_chunk(metadata, tmp_path):
    (tmp_path / "c" / "0" / "0").mkdir(parents=True)
    chunk = read_chunk(metadata, StorePath(LocalStore(tmp_path)), (0, 0))
    assert np.array_equal(chunk, fill_chunk(metadata))


def test_encode_decode_chunk():
    metadata = ArrayMetadata.create(
        shape=(6, 4),
        dtype="uint16",
        chunk_shape=(3, 2),
        codecs=[TransposeCodec(order=(1, 0)), BytesCodec(endian="big"), GzipCodec()],
    )
    chunk = np.arange(6, dtype="uint16").reshape(3, 2)
    encoded = encode_chunk(metadata, chunk)
    assert isinstance(encoded, bytes)
    decoded = decode_chunk(metadata, encoded)
    assert np.array_equal(decoded, chunk)
    assert decoded.flags.writeable
    assert decoded.flags.c_contiguous


def test_is_fill_value_chunk():
    assert is_fill_value_chunk(np.zeros(4), 0)
    assert not is_fill_value_chunk(np.array([0, 1]), 0)
    assert is_fill_value_chunk(np.full(3, np.nan), np.float64("nan"))
    assert not is_fill_value_chunk(np.array([np.nan, 1.0]), np.float64("nan"))
    assert is_fill_value_chunk(np.ones(3, dtype=bool), np.True_)

    nan = np.float32("nan")
    fill = np.complex64(complex(nan, 0))
    assert is_fill_value_chunk(np.full(2, fill), fill)
    assert not is_fill_value_chunk(np.array([complex(nan, 1)], dtype="complex64"), fill)
    assert not is_fill_value_chunk(np.array([complex(0, nan)], dtype="complex64"), fill)
    assert not is_fill_value_chunk(np.array([complex(nan, nan)], dtype="complex64"), fill)
    assert is_fill_value_chunk(
        np.array([complex(nan, nan)], dtype="complex128"), complex(nan, nan)
    )

    raw = np.frombuffer(b"abab", dtype="V2")
    assert is_fill_value_chunk(raw, np.void(b"ab"))
    assert not is_fill_value_chunk(raw, np.void(b"ba"))
    assert not is_fill_value_chunk(np.frombuffer(b"abba", dtype="V2"), np.void(b"ab"))


def test_write_read_raw_chunk(store_path):
    metadata = ArrayMetadata.create(
        shape=(4,), dtype="r16", chunk_shape=(2,), fill_value=[0xFF, 0x00]
    )
    assert metadata.dtype == np.dtype("V2")
    chunk = np.frombuffer(b"\x01\x02\x03\x04", dtype="V2")
    write_chunk(metadata, store_path, (0,), chunk, write_empty_chunks=False)
    assert store_path.store.get("c/0") == b"\x01\x02\x03\x04"
    assert read_chunk(metadata, store_path, (0,)).tobytes() == b"\x01\x02\x03\x04"

    empty = np.frombuffer(b"\xff\x00\xff\x00", dtype="V2")
    write_chunk(metadata, store_path, (0,), empty, write_empty_chunks=False)
    assert store_path.store.list() == []
    assert read_chunk(metadata, store_path, (1,)).tobytes() == b"\xff\x00\xff\x00"
