from __future__ import annotations
from dataclasses import dataclass
import zlib

from typing import TYPE_CHECKING

from numcodecs.gzip import GZip

from zarr3.abc.codec import BytesBytesCodec
from zarr3.common import JSON, parse_named_configuration
from zarr3.errors import CodecError
from zarr3.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict
    from typing_extensions import Self
    from zarr3.common import ArraySpec, BytesLike


def parse_gzip_level(data: JSON) -> int:
    if isinstance(data, bool) or data not in range(0, 10):
        raise ValueError(
            f"Expected an integer from the inclusive range (0, 9). Got {data} instead."
        )
    return data


@dataclass(frozen=True)
class GzipCodec(BytesBytesCodec):
    is_fixed_size = False

    level: int = 5

    def __init__(self, *, level=5) -> None:
        level_parsed = parse_gzip_level(level)

        object.__setattr__(self, "level", level_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(data, "gzip")
        return cls(**configuration_parsed)

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "gzip", "configuration": {"level": self.level}}

    def decode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        try:
            return GZip(self.level).decode(chunk_bytes)
        except (OSError, EOFError, zlib.error) as e:
            raise CodecError(f"gzip decompression failed: {e}") from e

    def encode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        return GZip(self.level).encode(chunk_bytes)

    def compute_encoded_size(
        self,
        _input_byte_length: int,
        _chunk_spec: ArraySpec,
    ) -> int:
        raise NotImplementedError


register_codec("gzip", GzipCodec)
