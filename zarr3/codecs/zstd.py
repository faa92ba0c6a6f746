from __future__ import annotations
from typing import TYPE_CHECKING
from dataclasses import dataclass

from zstandard import ZstdCompressor, ZstdDecompressor, ZstdError

from zarr3.abc.codec import BytesBytesCodec
from zarr3.common import parse_bool, parse_named_configuration
from zarr3.errors import CodecError
from zarr3.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict
    from typing_extensions import Self
    from zarr3.common import ArraySpec, BytesLike, JSON


def parse_zstd_level(data: JSON) -> int:
    if isinstance(data, int) and not isinstance(data, bool):
        if data >= 23:
            msg = f"Value must be less than or equal to 22. Got {data} instead."
            raise ValueError(msg)
        return data
    msg = f"Got value with type {type(data)}, but expected an int"
    raise TypeError(msg)


@dataclass(frozen=True)
class ZstdCodec(BytesBytesCodec):
    is_fixed_size = True

    level: int = 0
    checksum: bool = False

    def __init__(self, *, level=0, checksum=False) -> None:
        level_parsed = parse_zstd_level(level)
        checksum_parsed = parse_bool(checksum)

        object.__setattr__(self, "level", level_parsed)
        object.__setattr__(self, "checksum", checksum_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(data, "zstd")
        return cls(**configuration_parsed)

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "zstd", "configuration": {"level": self.level, "checksum": self.checksum}}

    def _compress(self, data: BytesLike) -> bytes:
        ctx = ZstdCompressor(level=self.level, write_checksum=self.checksum)
        return ctx.compress(data)

    def _decompress(self, data: BytesLike) -> bytes:
        ctx = ZstdDecompressor()
        return ctx.decompress(data)

    def decode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        try:
            return self._decompress(chunk_bytes)
        except ZstdError as e:
            raise CodecError(f"zstd decompression failed: {e}") from e

    def encode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        return self._compress(chunk_bytes)

    def compute_encoded_size(self, _input_byte_length: int, _chunk_spec: ArraySpec) -> int:
        raise NotImplementedError


register_codec("zstd", ZstdCodec)
