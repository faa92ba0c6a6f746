from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from functools import lru_cache

from typing import TYPE_CHECKING

import numcodecs
import numpy as np
from numcodecs.blosc import Blosc

from zarr3.abc.codec import BytesBytesCodec
from zarr3.common import JSON, parse_enum, parse_named_configuration
from zarr3.errors import CodecError
from zarr3.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict, Optional
    from typing_extensions import Self
    from zarr3.common import ArraySpec, BytesLike


class BloscShuffle(Enum):
    noshuffle = "noshuffle"
    shuffle = "shuffle"
    bitshuffle = "bitshuffle"

    @classmethod
    def from_int(cls, num: int) -> Self:
        blosc_shuffle_int_to_str = {
            0: "noshuffle",
            1: "shuffle",
            2: "bitshuffle",
        }
        if num not in blosc_shuffle_int_to_str:
            raise ValueError(f"Value must be between 0 and 2. Got {num}.")
        return BloscShuffle[blosc_shuffle_int_to_str[num]]


class BloscCname(Enum):
    lz4 = "lz4"
    lz4hc = "lz4hc"
    blosclz = "blosclz"
    zstd = "zstd"
    snappy = "snappy"
    zlib = "zlib"


# See https://zarr.readthedocs.io/en/stable/tutorial.html#configuring-blosc
numcodecs.blosc.use_threads = False


def _parse_int(data: JSON, name: str) -> int:
    if isinstance(data, int) and not isinstance(data, bool):
        return data
    msg = f"Value of `{name}` should be an int, got {type(data)} instead"
    raise TypeError(msg)


def parse_typesize(data: JSON) -> Optional[int]:
    if data is None:
        return data
    if _parse_int(data, "typesize") > 0:
        return data
    msg = f"Value must be greater than 0. Got {data}."
    raise ValueError(msg)


def parse_cname(data: JSON) -> BloscCname:
    return parse_enum(data, BloscCname)


def parse_clevel(data: JSON) -> int:
    if _parse_int(data, "clevel") in range(0, 10):
        return data
    msg = f"Expected an integer from the inclusive range (0, 9). Got {data} instead."
    raise ValueError(msg)


def parse_shuffle(data: JSON) -> BloscShuffle:
    if isinstance(data, int) and not isinstance(data, bool):
        return BloscShuffle.from_int(data)
    return parse_enum(data, BloscShuffle)


def parse_blocksize(data: JSON) -> int:
    if _parse_int(data, "blocksize") >= 0:
        return data
    msg = f"Value must be greater than or equal to 0. Got {data}."
    raise ValueError(msg)


@dataclass(frozen=True)
class BloscCodec(BytesBytesCodec):
    is_fixed_size = False

    typesize: Optional[int]
    cname: BloscCname = BloscCname.zstd
    clevel: int = 5
    shuffle: BloscShuffle = BloscShuffle.noshuffle
    blocksize: int = 0

    def __init__(
        self,
        *,
        typesize=None,
        cname=BloscCname.zstd,
        clevel=5,
        shuffle=BloscShuffle.noshuffle,
        blocksize=0,
    ) -> None:
        typesize_parsed = parse_typesize(typesize)
        cname_parsed = parse_cname(cname)
        clevel_parsed = parse_clevel(clevel)
        shuffle_parsed = parse_shuffle(shuffle)
        blocksize_parsed = parse_blocksize(blocksize)

        object.__setattr__(self, "typesize", typesize_parsed)
        object.__setattr__(self, "cname", cname_parsed)
        object.__setattr__(self, "clevel", clevel_parsed)
        object.__setattr__(self, "shuffle", shuffle_parsed)
        object.__setattr__(self, "blocksize", blocksize_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(data, "blosc")
        return cls(**configuration_parsed)

    def to_dict(self) -> Dict[str, JSON]:
        if self.typesize is None:
            raise ValueError("`typesize` needs to be set for serialization.")
        return {
            "name": "blosc",
            "configuration": {
                "typesize": self.typesize,
                "cname": self.cname.name,
                "clevel": self.clevel,
                "shuffle": self.shuffle.name,
                "blocksize": self.blocksize,
            },
        }

    def evolve(self, array_spec: ArraySpec) -> Self:
        new_codec = self
        if new_codec.typesize is None:
            new_codec = replace(new_codec, typesize=array_spec.dtype.itemsize)

        return new_codec

    @lru_cache
    def get_blosc_codec(self) -> Blosc:
        map_shuffle_str_to_int = {
            BloscShuffle.noshuffle: 0,
            BloscShuffle.shuffle: 1,
            BloscShuffle.bitshuffle: 2,
        }
        config_dict = {
            "cname": self.cname.name,
            "clevel": self.clevel,
            "shuffle": map_shuffle_str_to_int[self.shuffle],
            "blocksize": self.blocksize,
        }
        return Blosc.from_config(config_dict)

    def decode(
        self,
        chunk_bytes: BytesLike,
        _chunk_spec: ArraySpec,
    ) -> BytesLike:
        try:
            return self.get_blosc_codec().decode(chunk_bytes)
        except (RuntimeError, ValueError, TypeError) as e:
            raise CodecError(f"blosc decompression failed: {e}") from e

    def encode(
        self,
        chunk_bytes: BytesLike,
        chunk_spec: ArraySpec,
    ) -> BytesLike:
        # the element width of the input buffer sets the blosc typesize
        typesize = self.typesize or chunk_spec.dtype.itemsize
        if len(chunk_bytes) % typesize == 0 and typesize in (1, 2, 4, 8):
            dtype = np.dtype(f"u{typesize}")
        else:
            dtype = np.dtype("u1")
        chunk_array = np.frombuffer(chunk_bytes, dtype=dtype)
        return self.get_blosc_codec().encode(chunk_array)

    def compute_encoded_size(self, _input_byte_length: int, _chunk_spec: ArraySpec) -> int:
        raise NotImplementedError


register_codec("blosc", BloscCodec)
