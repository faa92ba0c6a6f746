from __future__ import annotations
from contextlib import contextmanager
from typing import TYPE_CHECKING
from dataclasses import dataclass, field, replace

import numpy as np

from zarr3.abc.metadata import Metadata
from zarr3.chunk_grids import ChunkGrid, RegularChunkGrid
from zarr3.chunk_key_encodings import ChunkKeyEncoding
from zarr3.codecs.bytes import BytesCodec
from zarr3.codecs.pipeline import CodecPipeline
from zarr3.common import (
    ArraySpec,
    ChunkCoords,
    json_dumps,
    json_loads,
    parse_shapelike,
)
from zarr3.data_types import (
    DataType,
    default_fill_value,
    fill_value_to_json,
    parse_data_type,
    parse_fill_value,
)
from zarr3.errors import InvalidChunkIndexError, MetadataError

if TYPE_CHECKING:
    from typing import Any, Dict, Iterable, Iterator, Literal, Optional, Tuple, Union
    from zarr3.common import JSON, BytesLike


ARRAY_METADATA_KEYS = frozenset(
    [
        "zarr_format",
        "node_type",
        "shape",
        "data_type",
        "chunk_grid",
        "chunk_key_encoding",
        "fill_value",
        "codecs",
        "attributes",
        "dimension_names",
        "storage_transformers",
    ]
)
GROUP_METADATA_KEYS = frozenset(["zarr_format", "node_type", "attributes"])


@contextmanager
def _metadata_errors() -> Iterator[None]:
    try:
        yield
    except MetadataError:
        raise
    except (KeyError, OverflowError, TypeError, ValueError) as e:
        raise MetadataError(f"Invalid metadata: {e}") from e


def parse_zarr_format(data: Any) -> Literal[3]:
    if data == 3 and not isinstance(data, bool):
        return data
    raise ValueError(f"Invalid value for `zarr_format`. Expected 3. Got {data}.")


def parse_node_type(data: Any) -> Literal["array", "group"]:
    if data in ("array", "group"):
        return data
    raise ValueError(f"Invalid value for `node_type`. Expected 'array' or 'group'. Got {data}.")


def parse_attributes(data: Any) -> Dict[str, JSON]:
    if data is None:
        return {}
    if isinstance(data, dict) and all(isinstance(k, str) for k in data):
        return dict(data)
    raise TypeError(f"Expected a dict with string keys for `attributes`. Got {data!r}.")


def parse_dimension_names(data: Any) -> Optional[Tuple[Optional[str], ...]]:
    if data is None:
        return data
    if isinstance(data, str) or not isinstance(data, (list, tuple)):
        raise TypeError(f"Expected a sequence for `dimension_names`. Got {data!r}.")
    if not all(name is None or isinstance(name, str) for name in data):
        raise TypeError(f"Expected `dimension_names` to hold strings or None. Got {data!r}.")
    return tuple(data)


def parse_storage_transformers(data: Any) -> Tuple[()]:
    if data is None:
        return ()
    if not isinstance(data, (list, tuple)):
        raise TypeError(f"Expected a list for `storage_transformers`. Got {data!r}.")
    if len(data) > 0:
        raise ValueError(f"Storage transformers are not supported. Got {data!r}.")
    return ()


def parse_extensions(data: Dict[str, Any]) -> Dict[str, Dict[str, JSON]]:
    """Check that every unrecognized top-level field may be ignored.

    An extension is an object with a boolean ``must_understand`` member; only extensions with
    ``must_understand: false`` are accepted.
    """
    for name, extension in data.items():
        if not isinstance(extension, dict):
            raise ValueError(f"Extension {name!r} is not an object.")
        if "must_understand" not in extension:
            raise ValueError(f"Extension {name!r} does not define 'must_understand'.")
        must_understand = extension["must_understand"]
        if not isinstance(must_understand, bool):
            raise ValueError(f"Extension {name!r} has a non-boolean 'must_understand'.")
        if must_understand:
            raise ValueError(f"Extension {name!r} must be understood.")
    return dict(data)


def parse_codecs(data: Union[Iterable[JSON], CodecPipeline]) -> CodecPipeline:
    return CodecPipeline.from_dict(data)


@dataclass(frozen=True)
class ArrayMetadata(Metadata):
    shape: ChunkCoords
    data_type: DataType
    chunk_grid: RegularChunkGrid
    chunk_key_encoding: ChunkKeyEncoding
    fill_value: np.generic
    codecs: CodecPipeline
    attributes: Dict[str, JSON] = field(default_factory=dict)
    dimension_names: Optional[Tuple[Optional[str], ...]] = None
    storage_transformers: Tuple[()] = ()
    extensions: Dict[str, Dict[str, JSON]] = field(default_factory=dict)
    zarr_format: Literal[3] = field(default=3, init=False)
    node_type: Literal["array"] = field(default="array", init=False)

    def __init__(
        self,
        *,
        shape,
        data_type,
        chunk_grid,
        chunk_key_encoding,
        fill_value,
        codecs,
        attributes=None,
        dimension_names=None,
        storage_transformers=None,
        extensions=None,
    ):
        """
        Because the class is a frozen dataclass, we set attributes using object.__setattr__
        """
        with _metadata_errors():
            shape_parsed = parse_shapelike(shape)
            data_type_parsed = parse_data_type(data_type)
            chunk_grid_parsed = ChunkGrid.from_dict(chunk_grid)
            chunk_key_encoding_parsed = ChunkKeyEncoding.from_dict(chunk_key_encoding)
            dimension_names_parsed = parse_dimension_names(dimension_names)
            fill_value_parsed = parse_fill_value(data_type_parsed, fill_value)
            attributes_parsed = parse_attributes(attributes)
            storage_transformers_parsed = parse_storage_transformers(storage_transformers)
            extensions_parsed = parse_extensions(extensions or {})

            if len(shape_parsed) != chunk_grid_parsed.ndim:
                raise ValueError(
                    "`chunk_shape` and `shape` need to have the same number of dimensions."
                )

            chunk_spec = ArraySpec(
                shape=chunk_grid_parsed.chunk_shape,
                dtype=data_type_parsed.to_numpy(),
                fill_value=fill_value_parsed,
            )
            codecs_parsed = parse_codecs(codecs).evolve(chunk_spec)

            object.__setattr__(self, "shape", shape_parsed)
            object.__setattr__(self, "data_type", data_type_parsed)
            object.__setattr__(self, "chunk_grid", chunk_grid_parsed)
            object.__setattr__(self, "chunk_key_encoding", chunk_key_encoding_parsed)
            object.__setattr__(self, "codecs", codecs_parsed)
            object.__setattr__(self, "dimension_names", dimension_names_parsed)
            object.__setattr__(self, "fill_value", fill_value_parsed)
            object.__setattr__(self, "attributes", attributes_parsed)
            object.__setattr__(self, "storage_transformers", storage_transformers_parsed)
            object.__setattr__(self, "extensions", extensions_parsed)
            object.__setattr__(self, "zarr_format", 3)
            object.__setattr__(self, "node_type", "array")

            self._validate_metadata()

    def _validate_metadata(self) -> None:
        if self.dimension_names is not None and len(self.shape) != len(self.dimension_names):
            raise ValueError(
                "`dimension_names` and `shape` need to have the same number of dimensions."
            )
        self.codecs.validate(self)

    @classmethod
    def create(
        cls,
        *,
        shape: Iterable[int],
        dtype: Union[str, np.dtype, DataType],
        chunk_shape: Iterable[int],
        fill_value: Any = None,
        chunk_key_encoding: Any = ("default", "/"),
        codecs: Optional[Iterable[Any]] = None,
        dimension_names: Optional[Iterable[Optional[str]]] = None,
        attributes: Optional[Dict[str, JSON]] = None,
    ) -> ArrayMetadata:
        """Build array metadata from python values.

        ``fill_value`` defaults to the zero value of the data type, and ``codecs`` to a single
        little-endian ``bytes`` codec.
        """
        with _metadata_errors():
            data_type = dtype if isinstance(dtype, DataType) else DataType.from_dtype(dtype)
        if fill_value is None:
            fill_value = default_fill_value(data_type)
        if codecs is None:
            codecs = [BytesCodec()]
        return cls(
            shape=shape,
            data_type=data_type,
            chunk_grid=RegularChunkGrid(chunk_shape=chunk_shape),
            chunk_key_encoding=chunk_key_encoding,
            fill_value=fill_value,
            codecs=list(codecs) if not isinstance(codecs, CodecPipeline) else codecs,
            attributes=attributes,
            dimension_names=(
                tuple(dimension_names) if dimension_names is not None else None
            ),
        )

    @property
    def dtype(self) -> np.dtype:
        return self.data_type.to_numpy()

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def chunk_shape(self) -> ChunkCoords:
        return self.chunk_grid.chunk_shape

    def get_chunk_spec(self, _chunk_coords: Optional[ChunkCoords] = None) -> ArraySpec:
        return ArraySpec(
            shape=self.chunk_grid.chunk_shape,
            dtype=self.dtype,
            fill_value=self.fill_value,
        )

    def validate_chunk_coords(self, chunk_coords: Any) -> ChunkCoords:
        grid_shape = self.chunk_grid.grid_shape(self.shape)
        if (
            not isinstance(chunk_coords, (tuple, list))
            or len(chunk_coords) != len(grid_shape)
            or not all(
                isinstance(c, (int, np.integer)) and not isinstance(c, bool)
                for c in chunk_coords
            )
            or not all(0 <= c < n for c, n in zip(chunk_coords, grid_shape))
        ):
            raise InvalidChunkIndexError(chunk_coords, grid_shape)
        return tuple(int(c) for c in chunk_coords)

    def encode_chunk_key(self, chunk_coords: ChunkCoords) -> str:
        """The store key of a chunk, relative to the array's path.

        Raises
        ------
        InvalidChunkIndexError
            If the index has the wrong rank, or a component outside the chunk grid.
        """
        return self.chunk_key_encoding.encode_chunk_key(self.validate_chunk_coords(chunk_coords))

    def update_shape(self, shape: Iterable[int]) -> ArrayMetadata:
        return replace(self, shape=shape)

    def update_attributes(self, attributes: Dict[str, JSON]) -> ArrayMetadata:
        return replace(self, attributes=attributes)

    def to_bytes(self) -> bytes:
        return json_dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArrayMetadata:
        with _metadata_errors():
            if not isinstance(data, dict):
                raise TypeError(f"Expected a JSON object. Got {type(data)}.")
            data = dict(data)
            # check that the zarr_format attribute is correct
            _ = parse_zarr_format(data.pop("zarr_format", None))
            # check that the node_type attribute is correct
            if parse_node_type(data.pop("node_type", None)) != "array":
                raise ValueError("Invalid value for `node_type`. Expected 'array'.")

            extensions = {k: data.pop(k) for k in list(data) if k not in ARRAY_METADATA_KEYS}
            for key in ("shape", "data_type", "chunk_grid", "chunk_key_encoding", "fill_value"):
                if key not in data:
                    raise ValueError(f"Missing required field `{key}`.")
            codecs = data.pop("codecs", None)
            if codecs is None:
                raise ValueError("Missing required field `codecs`.")

            return cls(**data, codecs=codecs, extensions=extensions)

    def to_dict(self) -> Dict[str, Any]:
        out_dict: Dict[str, Any] = {
            "zarr_format": self.zarr_format,
            "node_type": self.node_type,
            "shape": list(self.shape),
            "data_type": self.data_type.name,
            "chunk_grid": self.chunk_grid.to_dict(),
            "chunk_key_encoding": self.chunk_key_encoding.to_dict(),
            "fill_value": fill_value_to_json(self.data_type, self.fill_value),
            "codecs": self.codecs.to_dict(),
            "attributes": self.attributes,
        }

        # if `dimension_names` is `None`, we do not include it in
        # the metadata document
        if self.dimension_names is not None:
            out_dict["dimension_names"] = list(self.dimension_names)
        out_dict.update(self.extensions)
        return out_dict

    def __eq__(self, other: object) -> bool:
        # compared through the document so that NaN fill values are equal
        if not isinstance(other, ArrayMetadata):
            return NotImplemented
        return self.to_dict() == other.to_dict()


@dataclass(frozen=True)
class GroupMetadata(Metadata):
    attributes: Dict[str, JSON] = field(default_factory=dict)
    extensions: Dict[str, Dict[str, JSON]] = field(default_factory=dict)
    zarr_format: Literal[3] = field(default=3, init=False)
    node_type: Literal["group"] = field(default="group", init=False)

    def __init__(self, attributes=None, extensions=None):
        with _metadata_errors():
            attributes_parsed = parse_attributes(attributes)
            extensions_parsed = parse_extensions(extensions or {})

        object.__setattr__(self, "attributes", attributes_parsed)
        object.__setattr__(self, "extensions", extensions_parsed)
        object.__setattr__(self, "zarr_format", 3)
        object.__setattr__(self, "node_type", "group")

    def update_attributes(self, attributes: Dict[str, JSON]) -> GroupMetadata:
        return replace(self, attributes=attributes)

    def to_bytes(self) -> bytes:
        return json_dumps(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        out_dict: Dict[str, Any] = {
            "zarr_format": self.zarr_format,
            "node_type": self.node_type,
            "attributes": self.attributes,
        }
        out_dict.update(self.extensions)
        return out_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GroupMetadata:
        with _metadata_errors():
            if not isinstance(data, dict):
                raise TypeError(f"Expected a JSON object. Got {type(data)}.")
            data = dict(data)
            _ = parse_zarr_format(data.pop("zarr_format", None))
            if parse_node_type(data.pop("node_type", None)) != "group":
                raise ValueError("Invalid value for `node_type`. Expected 'group'.")
            extensions = {k: data.pop(k) for k in list(data) if k not in GROUP_METADATA_KEYS}
            return cls(attributes=data.get("attributes"), extensions=extensions)


def parse_node_metadata(
    document: Union[Dict[str, Any], BytesLike, str]
) -> Union[ArrayMetadata, GroupMetadata]:
    """Parse a ``zarr.json`` document into array or group metadata.

    Parameters
    ----------
    document : dict, bytes or str
        The decoded JSON object, or its raw text.

    Raises
    ------
    MetadataError
        If the document is not valid JSON or violates any metadata constraint. No partially
        validated metadata is ever returned.
    """
    with _metadata_errors():
        if isinstance(document, (bytes, bytearray, memoryview, str)):
            document = json_loads(document)
        if not isinstance(document, dict):
            raise TypeError(f"Expected a JSON object. Got {type(document)}.")
        node_type = parse_node_type(document.get("node_type"))
    if node_type == "array":
        return ArrayMetadata.from_dict(document)
    return GroupMetadata.from_dict(document)
