from __future__ import annotations

import json
from typing import TYPE_CHECKING

import numpy as np
import pytest

from zarr3.codecs import BytesCodec, Crc32cCodec, GzipCodec, TransposeCodec
from zarr3.data_types import DataType
from zarr3.errors import InvalidChunkIndexError, MetadataError
from zarr3.metadata import (
    ArrayMetadata,
    GroupMetadata,
    parse_dimension_names,
    parse_extensions,
    parse_node_metadata,
    parse_storage_transformers,
    parse_zarr_format,
)

if TYPE_CHECKING:
    from typing import Any, Dict


def array_metadata_dict(**kwargs: Any) -> Dict[str, Any]:
    out = {
        "zarr_format": 3,
        "node_type": "array",
        "shape": [10, 10],
        "data_type": "float32",
        "chunk_grid": {"name": "regular", "configuration": {"chunk_shape": [4, 4]}},
        "chunk_key_encoding": {"name": "default", "configuration": {"separator": "/"}},
        "fill_value": "NaN",
        "codecs": [
            {"name": "bytes", "configuration": {"endian": "little"}},
            {"name": "crc32c"},
        ],
        "attributes": {"units": "K"},
    }
    out.update(kwargs)
    return out


def test_parse_zarr_format_valid():
    assert parse_zarr_format(3) == 3


@pytest.mark.parametrize("data", [None, 1, 2, "3", True])
def test_parse_zarr_format_invalid(data):
    with pytest.raises(ValueError):
        parse_zarr_format(data)


@pytest.mark.parametrize("data", [None, ("a", "b"), ["x", None]])
def test_parse_dimension_names_valid(data):
    assert parse_dimension_names(data) == (tuple(data) if data is not None else None)


@pytest.mark.parametrize("data", ["ab", [1, 2], {"a": 1}])
def test_parse_dimension_names_invalid(data):
    with pytest.raises(TypeError):
        parse_dimension_names(data)


def test_parse_storage_transformers():
    assert parse_storage_transformers(None) == ()
    assert parse_storage_transformers([]) == ()
    with pytest.raises(ValueError):
        parse_storage_transformers([{"name": "sharding"}])


def test_parse_extensions():
    ext = {"my_ext": {"must_understand": False, "value": 1}}
    assert parse_extensions(ext) == ext
    for invalid in (
        {"my_ext": {"must_understand": True}},
        {"my_ext": {}},
        {"my_ext": {"must_understand": "false"}},
        {"my_ext": 1},
    ):
        with pytest.raises(ValueError):
            parse_extensions(invalid)


def test_array_metadata_roundtrip():
    data = array_metadata_dict(dimension_names=["y", "x"])
    metadata = parse_node_metadata(json.dumps(data))
    assert isinstance(metadata, ArrayMetadata)
    assert metadata.shape == (10, 10)
    assert metadata.data_type is DataType.float32
    assert metadata.chunk_shape == (4, 4)
    assert np.isnan(metadata.fill_value)
    assert metadata.attributes == {"units": "K"}
    assert metadata.dimension_names == ("y", "x")
    assert metadata.to_dict() == data

    reparsed = parse_node_metadata(metadata.to_bytes())
    assert reparsed == metadata


def test_array_metadata_defaults():
    data = array_metadata_dict()
    del data["attributes"]
    metadata = ArrayMetadata.from_dict(data)
    assert metadata.attributes == {}
    assert metadata.dimension_names is None
    assert "dimension_names" not in metadata.to_dict()
    assert metadata.storage_transformers == ()


def test_array_metadata_create():
    metadata = ArrayMetadata.create(shape=(100,), dtype="i2", chunk_shape=(10,))
    assert metadata.data_type is DataType.int16
    assert metadata.fill_value == 0
    assert list(metadata.codecs) == [BytesCodec()]
    assert metadata.to_dict()["codecs"] == [
        {"name": "bytes", "configuration": {"endian": "little"}}
    ]

    metadata = ArrayMetadata.create(
        shape=(4, 6),
        dtype=DataType.complex64,
        chunk_shape=(2, 3),
        fill_value=complex(1, -1),
        codecs=[TransposeCodec(order=(1, 0)), BytesCodec(), GzipCodec()],
        dimension_names=["a", "b"],
    )
    assert metadata.to_dict()["fill_value"] == [1.0, -1.0]
    assert metadata.dimension_names == ("a", "b")


def test_array_metadata_zero_rank():
    metadata = ArrayMetadata.create(shape=(), dtype="float64", chunk_shape=())
    assert metadata.ndim == 0
    assert metadata.encode_chunk_key(()) == "c"


def test_array_metadata_extensions():
    data = array_metadata_dict(my_ext={"must_understand": False, "colour": "blue"})
    metadata = ArrayMetadata.from_dict(data)
    assert metadata.extensions == {"my_ext": {"must_understand": False, "colour": "blue"}}
    assert metadata.to_dict()["my_ext"] == {"must_understand": False, "colour": "blue"}


@pytest.mark.parametrize(
    "changes",
    [
        {"zarr_format": 2},
        {"node_type": "group"},
        {"node_type": "dataset"},
        {"shape": [10]},
        {"shape": [-1, 10]},
        {"data_type": "float128"},
        {"data_type": "<f4"},
        {"chunk_grid": {"name": "regular", "configuration": {"chunk_shape": [0, 4]}}},
        {"chunk_grid": {"name": "rectilinear", "configuration": {"chunk_shape": [4, 4]}}},
        {"chunk_key_encoding": {"name": "default", "configuration": {"separator": ":"}}},
        {"fill_value": 0.5j},
        {"fill_value": "nan"},
        {"fill_value": None},
        {"codecs": []},
        {"codecs": [{"name": "crc32c"}]},
        {"codecs": [{"name": "unknown_codec", "configuration": {}}]},
        {
            "codecs": [
                {"name": "transpose", "configuration": {"order": [0, 1, 2]}},
                {"name": "bytes", "configuration": {"endian": "little"}},
            ]
        },
        {"codecs": [{"name": "bytes"}]},
        {"storage_transformers": [{"name": "sharding"}]},
        {"dimension_names": ["x"]},
        {"attributes": ["not", "a", "dict"]},
        {"my_ext": {"must_understand": True}},
        {"my_ext": "no must_understand"},
    ],
)
def test_array_metadata_invalid(changes):
    data = array_metadata_dict(**changes)
    with pytest.raises(MetadataError):
        parse_node_metadata(data)


@pytest.mark.parametrize(
    "missing", ["shape", "data_type", "chunk_grid", "chunk_key_encoding", "fill_value", "codecs"]
)
def test_array_metadata_missing_field(missing):
    data = array_metadata_dict()
    del data[missing]
    with pytest.raises(MetadataError):
        ArrayMetadata.from_dict(data)


@pytest.mark.parametrize(
    "document", [b"{not json", b"[1, 2, 3]", b"\xff\xfe", "{}", {"zarr_format": 3}]
)
def test_parse_node_metadata_invalid(document):
    with pytest.raises(MetadataError):
        parse_node_metadata(document)


def test_int_fill_value_mismatch():
    data = array_metadata_dict(data_type="int8", fill_value=1000, codecs=[{"name": "bytes"}])
    with pytest.raises(MetadataError):
        parse_node_metadata(data)


@pytest.mark.parametrize(
    ("data_type", "fill_value"),
    [("float32", 10**400), ("float64", -(10**400)), ("complex64", [10**400, 0])],
)
def test_fill_value_overflow(data_type, fill_value):
    data = array_metadata_dict(data_type=data_type, fill_value=fill_value)
    with pytest.raises(MetadataError):
        parse_node_metadata(json.dumps(data).encode())
    with pytest.raises(MetadataError):
        parse_node_metadata(data)


def test_raw_metadata():
    data = array_metadata_dict(data_type="r24", fill_value=[1, 2, 3], codecs=[{"name": "bytes"}])
    metadata = parse_node_metadata(json.dumps(data).encode())
    assert metadata.data_type == DataType.r24
    assert metadata.dtype == np.dtype("V3")
    assert metadata.fill_value.tobytes() == b"\x01\x02\x03"
    assert metadata.to_dict() == data

    with pytest.raises(MetadataError):
        parse_node_metadata(array_metadata_dict(data_type="r24", fill_value=[1, 2]))


def test_bool_metadata():
    data = array_metadata_dict(data_type="bool", fill_value=True, codecs=[{"name": "bytes"}])
    metadata = parse_node_metadata(data)
    assert metadata.fill_value == np.True_
    assert metadata.to_dict()["fill_value"] is True


def test_encode_chunk_key():
    metadata = ArrayMetadata.from_dict(array_metadata_dict())
    assert metadata.encode_chunk_key((1, 2)) == "c/1/2"

    data = array_metadata_dict(
        chunk_key_encoding={"name": "v2", "configuration": {"separator": "."}}
    )
    assert ArrayMetadata.from_dict(data).encode_chunk_key((1, 2)) == "1.2"


@pytest.mark.parametrize("chunk_coords", [(3, 0), (0, -1), (0,), (0, 0, 0), (0.0, 1), "ab"])
def test_encode_chunk_key_invalid(chunk_coords):
    metadata = ArrayMetadata.from_dict(array_metadata_dict())
    with pytest.raises(InvalidChunkIndexError):
        metadata.encode_chunk_key(chunk_coords)
    # out of bounds chunk indices are index errors
    with pytest.raises(IndexError):
        metadata.encode_chunk_key(chunk_coords)


def test_update_shape():
    metadata = ArrayMetadata.from_dict(array_metadata_dict())
    resized = metadata.update_shape((20, 3))
    assert resized.shape == (20, 3)
    assert metadata.shape == (10, 10)
    assert resized.codecs == metadata.codecs
    assert resized.encode_chunk_key((4, 0)) == "c/4/0"


def test_update_attributes():
    metadata = ArrayMetadata.from_dict(array_metadata_dict())
    updated = metadata.update_attributes({"units": "C"})
    assert updated.attributes == {"units": "C"}
    assert metadata.attributes == {"units": "K"}


def test_chunk_spec():
    metadata = ArrayMetadata.create(
        shape=(10, 10),
        dtype="float32",
        chunk_shape=(4, 4),
        codecs=[BytesCodec(), Crc32cCodec()],
    )
    spec = metadata.get_chunk_spec((2, 2))
    # edge chunks are stored at full chunk size
    assert spec.shape == (4, 4)
    assert spec.dtype == np.dtype("float32")


def test_group_metadata():
    metadata = parse_node_metadata(b'{"zarr_format": 3, "node_type": "group"}')
    assert isinstance(metadata, GroupMetadata)
    assert metadata.attributes == {}
    assert metadata.to_dict() == {"zarr_format": 3, "node_type": "group", "attributes": {}}

    metadata = GroupMetadata(attributes={"a": [1, 2]})
    assert parse_node_metadata(metadata.to_bytes()) == metadata
    assert metadata.update_attributes({"b": None}).attributes == {"b": None}


@pytest.mark.parametrize(
    "document",
    [
        {"zarr_format": 2, "node_type": "group"},
        {"zarr_format": 3, "node_type": "group", "attributes": 1},
        {"zarr_format": 3, "node_type": "group", "ext": {"must_understand": True}},
    ],
)
def test_group_metadata_invalid(document):
    with pytest.raises(MetadataError):
        parse_node_metadata(document)


def test_to_bytes_is_json():
    metadata = GroupMetadata(attributes={"name": "café"})
    raw = metadata.to_bytes()
    assert isinstance(raw, bytes)
    assert json.loads(raw) == metadata.to_dict()
