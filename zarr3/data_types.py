"""
Scalar data types and fill values.

Every supported data type maps onto a fixed-width numpy dtype. Half precision floats and
complex numbers are backed by numpy's ``float16``, ``complex64`` and ``complex128``.
Byte order is never implied; functions that turn scalars into bytes or back take an
explicit :class:`Endian`.
"""

from __future__ import annotations

import struct
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from zarr3.errors import CodecError, TypeMismatchError

if TYPE_CHECKING:
    from typing import Optional, Union

    from typing_extensions import Self

    from zarr3.common import JSON


# For type checking
_bool = bool


class Endian(Enum):
    big = "big"
    little = "little"

    @property
    def prefix(self) -> str:
        return "<" if self is Endian.little else ">"


class DataType(Enum):
    bool = "bool"
    int8 = "int8"
    int16 = "int16"
    int32 = "int32"
    int64 = "int64"
    uint8 = "uint8"
    uint16 = "uint16"
    uint32 = "uint32"
    uint64 = "uint64"
    float16 = "float16"
    float32 = "float32"
    float64 = "float64"
    complex64 = "complex64"
    complex128 = "complex128"
    r8 = "r8"
    r16 = "r16"
    r24 = "r24"
    r32 = "r32"
    r40 = "r40"
    r48 = "r48"
    r56 = "r56"
    r64 = "r64"
    r72 = "r72"
    r80 = "r80"
    r88 = "r88"
    r96 = "r96"
    r104 = "r104"
    r112 = "r112"
    r120 = "r120"
    r128 = "r128"

    @property
    def is_raw(self) -> _bool:
        return self.value.startswith("r")

    @property
    def byte_count(self) -> int:
        if self.is_raw:
            return int(self.value[1:]) // 8
        data_type_byte_counts = {
            DataType.bool: 1,
            DataType.int8: 1,
            DataType.int16: 2,
            DataType.int32: 4,
            DataType.int64: 8,
            DataType.uint8: 1,
            DataType.uint16: 2,
            DataType.uint32: 4,
            DataType.uint64: 8,
            DataType.float16: 2,
            DataType.float32: 4,
            DataType.float64: 8,
            DataType.complex64: 8,
            DataType.complex128: 16,
        }
        return data_type_byte_counts[self]

    @property
    def has_endianness(self) -> _bool:
        return self.byte_count != 1 and not self.is_raw

    @property
    def kind(self) -> str:
        return np.dtype(self.to_numpy_shortname()).kind

    def to_numpy_shortname(self) -> str:
        if self.is_raw:
            return f"V{self.byte_count}"
        data_type_to_numpy = {
            DataType.bool: "bool",
            DataType.int8: "i1",
            DataType.int16: "i2",
            DataType.int32: "i4",
            DataType.int64: "i8",
            DataType.uint8: "u1",
            DataType.uint16: "u2",
            DataType.uint32: "u4",
            DataType.uint64: "u8",
            DataType.float16: "f2",
            DataType.float32: "f4",
            DataType.float64: "f8",
            DataType.complex64: "c8",
            DataType.complex128: "c16",
        }
        return data_type_to_numpy[self]

    def to_numpy(self, endian: Optional[Endian] = None) -> np.dtype:
        """Return the numpy dtype, in native byte order unless ``endian`` is given."""
        dtype = np.dtype(self.to_numpy_shortname())
        if endian is not None and self.has_endianness:
            dtype = dtype.newbyteorder(endian.prefix)
        return dtype

    @classmethod
    def from_dtype(cls, dtype: Union[np.dtype, str, type]) -> Self:
        if isinstance(dtype, str) and dtype in cls.__members__:
            return cls[dtype]
        dtype = np.dtype(dtype)
        if dtype.kind == "V" and dtype.fields is None and dtype.subdtype is None:
            if 1 <= dtype.itemsize <= 16:
                return cls[f"r{dtype.itemsize * 8}"]
        try:
            return cls[dtype.name]
        except KeyError as e:
            raise ValueError(f"Unsupported data type {dtype}") from e


def parse_data_type(data: Any) -> DataType:
    if isinstance(data, DataType):
        return data
    if isinstance(data, str) and data in DataType.__members__:
        return DataType[data]
    if isinstance(data, (np.dtype, type)):
        return DataType.from_dtype(data)
    raise ValueError(f"Unknown data type {data!r}")


def size_of(data_type: DataType) -> int:
    return data_type.byte_count


def decode_scalar(data_type: DataType, data: bytes, endian: Endian) -> np.generic:
    if len(data) != data_type.byte_count:
        raise CodecError(
            f"Expected {data_type.byte_count} bytes for a {data_type.value} scalar, "
            f"got {len(data)}."
        )
    return np.frombuffer(data, dtype=data_type.to_numpy(endian), count=1)[0]


def encode_scalar(data_type: DataType, value: Any, endian: Endian) -> bytes:
    scalar = cast_scalar(data_type, value)
    return np.asarray(scalar).astype(data_type.to_numpy(endian)).tobytes()


def cast_scalar(data_type: DataType, value: Any) -> np.generic:
    """Convert a python or numpy scalar to ``data_type``, refusing lossy conversions."""
    kind = data_type.kind
    if isinstance(value, np.generic):
        value = value.item()
    if kind == "b":
        if not isinstance(value, _bool):
            raise TypeMismatchError(f"Expected a bool for data type bool, got {value!r}.")
        return np.bool_(value)
    if kind in "iu":
        if isinstance(value, _bool) or not isinstance(value, int):
            raise TypeMismatchError(
                f"Expected an integer for data type {data_type.value}, got {value!r}."
            )
        info = np.iinfo(data_type.to_numpy())
        if not info.min <= value <= info.max:
            raise TypeMismatchError(
                f"Value {value} is out of range for data type {data_type.value} "
                f"[{info.min}, {info.max}]."
            )
        return data_type.to_numpy().type(value)
    if kind == "V":
        return np.void(raw_from_json(value, data_type))
    if kind == "f":
        if isinstance(value, _bool) or not isinstance(value, (int, float)):
            raise TypeMismatchError(
                f"Expected a number for data type {data_type.value}, got {value!r}."
            )
    elif isinstance(value, _bool) or not isinstance(value, (int, float, complex)):
        raise TypeMismatchError(
            f"Expected a complex number for data type {data_type.value}, got {value!r}."
        )
    try:
        if isinstance(value, int):
            value = float(value)
        return data_type.to_numpy().type(value)
    except OverflowError as e:
        raise TypeMismatchError(
            f"Value {value} is too large for data type {data_type.value}."
        ) from e


def raw_from_json(data: Any, data_type: DataType) -> bytes:
    """The bytes of a raw value, given as ``bytes`` or as a list of integers in [0, 255]."""
    if isinstance(data, (bytes, bytearray)):
        value = bytes(data)
    elif isinstance(data, (list, tuple)) and all(
        isinstance(b, int) and not isinstance(b, _bool) and 0 <= b <= 255 for b in data
    ):
        value = bytes(data)
    else:
        raise TypeMismatchError(
            f"Expected a list of byte values for data type {data_type.value}, got {data!r}."
        )
    if len(value) != data_type.byte_count:
        raise TypeMismatchError(
            f"Expected {data_type.byte_count} bytes for data type {data_type.value}, "
            f"got {len(value)}."
        )
    return value


def float_from_json(data: JSON, data_type: DataType) -> float:
    if isinstance(data, str):
        if data == "NaN":
            return float("nan")
        if data == "Infinity":
            return float("inf")
        if data == "-Infinity":
            return float("-inf")
        if not data.startswith("0x"):
            raise TypeMismatchError(
                f"Invalid float value: {data!r}. Expected a string starting with the hex prefix"
                " '0x', or one of 'NaN', 'Infinity', or '-Infinity'."
            )
        dtype_codes = {4: ">e", 8: ">f", 16: ">d"}
        dtype_code = dtype_codes.get(len(data[2:]))
        expected_digits = 2 * data_type.to_numpy().type(0).real.itemsize
        if dtype_code is None or len(data[2:]) != expected_digits:
            raise TypeMismatchError(
                f"Invalid hexadecimal float value for data type {data_type.value}: {data!r}. "
                f"Expected the '0x' prefix to be followed by {expected_digits} hex digits."
            )
        try:
            return float(struct.unpack(dtype_code, bytes.fromhex(data[2:]))[0])
        except ValueError as e:
            raise TypeMismatchError(f"Invalid hexadecimal float value: {data!r}") from e
    if isinstance(data, _bool) or not isinstance(data, (int, float)):
        raise TypeMismatchError(f"Expected a float for data type {data_type.value}, got {data!r}.")
    try:
        return float(data)
    except OverflowError as e:
        raise TypeMismatchError(
            f"Value {data} is too large for data type {data_type.value}."
        ) from e


def float_to_json(data: Union[float, np.floating]) -> JSON:
    if np.isnan(data):
        return "NaN"
    elif np.isinf(data):
        return "Infinity" if data > 0 else "-Infinity"
    return float(data)


def parse_fill_value(data_type: DataType, data: JSON) -> np.generic:
    """Parse the JSON literal of a fill value for ``data_type``.

    Raises
    ------
    TypeMismatchError
        If the literal's kind disagrees with the data type, or an integer is out of range.
    """
    kind = data_type.kind
    if isinstance(data, np.generic):
        data = data.item()
    if kind == "V":
        return np.void(raw_from_json(data, data_type))
    if kind == "f":
        return data_type.to_numpy().type(float_from_json(data, data_type))
    if kind == "c":
        if isinstance(data, complex):
            return data_type.to_numpy().type(data)
        if not isinstance(data, (list, tuple)) or len(data) != 2:
            raise TypeMismatchError(
                f"Expected a pair [real, imag] for data type {data_type.value}, got {data!r}."
            )
        real = float_from_json(data[0], data_type)
        imag = float_from_json(data[1], data_type)
        return data_type.to_numpy().type(complex(real, imag))
    return cast_scalar(data_type, data)


def fill_value_to_json(data_type: DataType, value: Any) -> JSON:
    kind = data_type.kind
    if kind == "b":
        return bool(value)
    if kind in "iu":
        return int(value)
    if kind == "V":
        return list(np.asarray(value).tobytes())
    if kind == "f":
        return float_to_json(value)
    value = complex(value)
    return [float_to_json(value.real), float_to_json(value.imag)]


def default_fill_value(data_type: DataType) -> np.generic:
    if data_type == DataType.bool:
        return np.bool_(False)
    if data_type.is_raw:
        return np.void(bytes(data_type.byte_count))
    return data_type.to_numpy().type(0)
