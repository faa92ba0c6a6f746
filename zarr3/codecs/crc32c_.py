from __future__ import annotations
from dataclasses import dataclass

from typing import TYPE_CHECKING

import numpy as np

from crc32c import crc32c

from zarr3.abc.codec import BytesBytesCodec
from zarr3.common import parse_named_configuration
from zarr3.errors import ChecksumMismatchError, CodecError
from zarr3.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict
    from typing_extensions import Self
    from zarr3.common import JSON, ArraySpec, BytesLike


@dataclass(frozen=True)
class Crc32cCodec(BytesBytesCodec):
    """Appends a little-endian CRC32C checksum and verifies it on decode."""

    is_fixed_size = True

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        parse_named_configuration(data, "crc32c", require_configuration=False)
        return cls()

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "crc32c"}

    def decode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        data = memoryview(chunk_bytes)
        if len(data) < 4:
            raise CodecError(
                f"Expected at least 4 bytes for a crc32c checksum, got {len(data)}."
            )
        crc32_bytes = data[-4:]
        inner_bytes = data[:-4]

        computed_checksum = np.uint32(crc32c(inner_bytes)).astype("<u4").tobytes()
        stored_checksum = bytes(crc32_bytes)
        if computed_checksum != stored_checksum:
            raise ChecksumMismatchError(
                "Stored and computed checksum do not match. "
                + f"Stored: {stored_checksum!r}. Computed: {computed_checksum!r}."
            )
        return bytes(inner_bytes)

    def encode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        checksum = crc32c(chunk_bytes)
        return bytes(chunk_bytes) + np.uint32(checksum).astype("<u4").tobytes()

    def compute_encoded_size(self, input_byte_length: int, _chunk_spec: ArraySpec) -> int:
        return input_byte_length + 4


register_codec("crc32c", Crc32cCodec)
