from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Tuple, TypeVar, Union
from dataclasses import dataclass
from enum import Enum
import functools
import json

if TYPE_CHECKING:
    from typing import Iterator, Optional, Type

import numpy as np

from zarr3.config import config

ZARR_JSON = "zarr.json"

BytesLike = Union[bytes, bytearray, memoryview]
ChunkCoords = Tuple[int, ...]
ChunkCoordsLike = Iterable[int]
SliceSelection = Tuple[slice, ...]
Selection = Union[slice, int, SliceSelection]
JSON = Union[str, None, int, float, Dict[str, "JSON"], List["JSON"]]


def product(tup: ChunkCoords) -> int:
    return functools.reduce(lambda x, y: x * y, tup, 1)


def ceildiv(a: int, b: int) -> int:
    return -(-a // b)


def enum_names(enum: Type[Enum]) -> Iterator[str]:
    for item in enum:
        yield item.name


E = TypeVar("E", bound=Enum)


def parse_enum(data: JSON, cls: Type[E]) -> E:
    if isinstance(data, cls):
        return data
    if not isinstance(data, str):
        raise TypeError(f"Expected str, got {type(data)}")
    if data in enum_names(cls):
        return cls[data]
    raise ValueError(f"Value must be one of {repr(list(enum_names(cls)))}. Got {data} instead.")


def parse_name(data: JSON, expected: Optional[str] = None) -> str:
    if isinstance(data, str):
        if expected is None or data == expected:
            return data
        raise ValueError(f"Expected '{expected}'. Got {data} instead.")
    else:
        raise TypeError(f"Expected a string, got an instance of {type(data)}.")


def parse_configuration(data: JSON) -> Dict[str, JSON]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict, got {type(data)}")
    return data


def parse_named_configuration(
    data: JSON, expected_name: Optional[str] = None, *, require_configuration: bool = True
) -> Tuple[str, Optional[Dict[str, JSON]]]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict, got {type(data)}")
    if "name" not in data:
        raise ValueError(f"Named configuration does not have a 'name' key. Got {data}.")
    name_parsed = parse_name(data["name"], expected_name)
    if "configuration" in data:
        configuration_parsed = parse_configuration(data["configuration"])
    elif require_configuration:
        raise ValueError(f"Named configuration does not have a 'configuration' key. Got {data}.")
    else:
        configuration_parsed = None
    return name_parsed, configuration_parsed


def parse_shapelike(data: Any) -> Tuple[int, ...]:
    """Parse an array shape. Rank 0 and zero-length extents are allowed."""
    if not isinstance(data, Iterable) or isinstance(data, (str, bytes)):
        raise TypeError(f"Expected an iterable. Got {data} instead.")
    data_tuple = tuple(data)
    if not all(isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in data_tuple):
        msg = f"Expected an iterable of integers. Got {data} instead."
        raise TypeError(msg)
    if not all(v >= 0 for v in data_tuple):
        raise ValueError(f"All values must be greater than or equal to 0. Got {data}.")
    return tuple(int(v) for v in data_tuple)


def parse_indexing_order(data: Any) -> str:
    if data in ("C", "F"):
        return data
    msg = f"Expected one of ('C', 'F'), got {data} instead."
    raise ValueError(msg)


def parse_bool(data: Any) -> bool:
    if isinstance(data, bool):
        return data
    raise TypeError(f"Expected bool, got {type(data)}")


@dataclass(frozen=True)
class ArraySpec:
    shape: ChunkCoords
    dtype: np.dtype
    fill_value: Any

    def __init__(self, shape, dtype, fill_value):
        shape_parsed = parse_shapelike(shape)
        dtype_parsed = np.dtype(dtype)

        object.__setattr__(self, "shape", shape_parsed)
        object.__setattr__(self, "dtype", dtype_parsed)
        object.__setattr__(self, "fill_value", fill_value)

    @property
    def ndim(self) -> int:
        return len(self.shape)


def json_dumps(o: Any) -> bytes:
    """Write JSON in a consistent, human-readable way."""
    return json.dumps(o, indent=config.get("json_indent"), ensure_ascii=True).encode("ascii")


def json_loads(s: Union[str, BytesLike]) -> Any:
    """Read JSON in a consistent way."""
    if isinstance(s, (bytes, bytearray, memoryview)):
        s = bytes(s).decode("utf-8")
    return json.loads(s)
