from __future__ import annotations
from dataclasses import dataclass

from typing import TYPE_CHECKING

import numpy as np

from zarr3.abc.codec import ArrayBytesCodec
from zarr3.common import JSON, parse_enum, parse_named_configuration, product
from zarr3.data_types import Endian
from zarr3.errors import CodecError
from zarr3.registry import register_codec

if TYPE_CHECKING:
    from zarr3.common import ArraySpec, BytesLike
    from typing_extensions import Self
    from typing import Dict, Optional


def parse_endian(data: JSON) -> Endian:
    return parse_enum(data, Endian)


@dataclass(frozen=True)
class BytesCodec(ArrayBytesCodec):
    """Serializes a chunk to its raw row-major element bytes in the given byte order."""

    is_fixed_size = True

    endian: Optional[Endian]

    def __init__(self, *, endian=Endian.little) -> None:
        endian_parsed = None if endian is None else parse_endian(endian)

        object.__setattr__(self, "endian", endian_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        name, configuration = parse_named_configuration(data, require_configuration=False)
        if name not in ("bytes", "endian"):
            raise ValueError(f"Expected 'bytes', got {name} instead.")
        return cls(**(configuration or {"endian": None}))

    def to_dict(self) -> Dict[str, JSON]:
        if self.endian is None:
            return {"name": "bytes"}
        else:
            return {"name": "bytes", "configuration": {"endian": self.endian.name}}

    def evolve(self, array_spec: ArraySpec) -> Self:
        if array_spec.dtype.byteorder != "|" and self.endian is None:
            raise ValueError(
                "The `endian` configuration needs to be specified for multi-byte data types."
            )
        return self

    def _encoded_dtype(self, dtype: np.dtype) -> np.dtype:
        if dtype.byteorder != "|":
            return dtype.newbyteorder(self.endian.prefix)
        return dtype

    def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_spec: ArraySpec,
    ) -> np.ndarray:
        dtype = self._encoded_dtype(chunk_spec.dtype)
        expected = product(chunk_spec.shape) * dtype.itemsize
        if len(chunk_bytes) != expected:
            raise CodecError(
                f"Expected {expected} bytes for a chunk of shape {chunk_spec.shape} "
                f"and data type {chunk_spec.dtype}, got {len(chunk_bytes)}."
            )
        chunk_array = np.frombuffer(chunk_bytes, dtype)

        # ensure correct chunk shape and native byte order
        chunk_array = chunk_array.reshape(chunk_spec.shape)
        return chunk_array.astype(chunk_spec.dtype, copy=False)

    def encode(
        self,
        chunk_array: np.ndarray,
        chunk_spec: ArraySpec,
    ) -> BytesLike:
        chunk_array = chunk_array.astype(self._encoded_dtype(chunk_spec.dtype), copy=False)
        return chunk_array.tobytes(order="C")

    def compute_encoded_size(self, input_byte_length: int, _chunk_spec: ArraySpec) -> int:
        return input_byte_length


register_codec("bytes", BytesCodec)

# compatibility with earlier drafts of the format
register_codec("endian", BytesCodec)
