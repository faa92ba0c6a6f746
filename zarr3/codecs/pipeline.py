from __future__ import annotations

from typing import TYPE_CHECKING
import numpy as np
from dataclasses import dataclass

from zarr3.abc.codec import (
    ArrayArrayCodec,
    ArrayBytesCodec,
    BytesBytesCodec,
    Codec,
)
from zarr3.abc.metadata import Metadata
from zarr3.registry import get_codec_class

if TYPE_CHECKING:
    from typing import Iterator, List, Optional, Tuple, Union
    from typing_extensions import Self
    from zarr3.metadata import ArrayMetadata
    from zarr3.common import JSON, ArraySpec, BytesLike


@dataclass(frozen=True)
class CodecPipeline(Metadata):
    """An ordered chain of codecs.

    Zero or more array-to-array codecs, followed by exactly one array-to-bytes codec, followed
    by zero or more bytes-to-bytes codecs. Encoding applies the codecs in order; decoding
    applies their inverses in reverse order.
    """

    array_array_codecs: Tuple[ArrayArrayCodec, ...]
    array_bytes_codec: ArrayBytesCodec
    bytes_bytes_codecs: Tuple[BytesBytesCodec, ...]

    @classmethod
    def from_dict(cls, data: Union[JSON, List[Codec]]) -> Self:
        if isinstance(data, CodecPipeline):
            return data
        if not isinstance(data, (list, tuple)):
            raise TypeError(f"Expected a list of codecs, got {type(data)}")
        out: List[Codec] = []
        for c in data:
            if isinstance(c, Codec):
                out.append(c)
            else:
                if not isinstance(c, dict) or "name" not in c:
                    raise ValueError(f"Expected a named codec configuration. Got {c!r}.")
                out.append(get_codec_class(c["name"]).from_dict(c))
        return CodecPipeline.from_list(out)

    def to_dict(self) -> List[JSON]:
        return [c.to_dict() for c in self]

    def evolve(self, array_spec: ArraySpec) -> Self:
        return CodecPipeline.from_list([c.evolve(array_spec) for c in self])

    @classmethod
    def from_list(cls, codecs: List[Codec]) -> CodecPipeline:
        if not any(isinstance(codec, ArrayBytesCodec) for codec in codecs):
            raise ValueError("Exactly one array-to-bytes codec is required.")

        prev_codec: Optional[Codec] = None
        for codec in codecs:
            if prev_codec is not None:
                if isinstance(codec, ArrayBytesCodec) and isinstance(prev_codec, ArrayBytesCodec):
                    raise ValueError(
                        f"ArrayBytesCodec '{type(codec)}' cannot follow after "
                        + f"ArrayBytesCodec '{type(prev_codec)}' because exactly "
                        + "1 ArrayBytesCodec is allowed."
                    )
                if isinstance(codec, ArrayBytesCodec) and isinstance(prev_codec, BytesBytesCodec):
                    raise ValueError(
                        f"ArrayBytesCodec '{type(codec)}' cannot follow after "
                        + f"BytesBytesCodec '{type(prev_codec)}'."
                    )
                if isinstance(codec, ArrayArrayCodec) and isinstance(prev_codec, ArrayBytesCodec):
                    raise ValueError(
                        f"ArrayArrayCodec '{type(codec)}' cannot follow after "
                        + f"ArrayBytesCodec '{type(prev_codec)}'."
                    )
                if isinstance(codec, ArrayArrayCodec) and isinstance(prev_codec, BytesBytesCodec):
                    raise ValueError(
                        f"ArrayArrayCodec '{type(codec)}' cannot follow after "
                        + f"BytesBytesCodec '{type(prev_codec)}'."
                    )
            prev_codec = codec

        return CodecPipeline(
            array_array_codecs=tuple(
                codec for codec in codecs if isinstance(codec, ArrayArrayCodec)
            ),
            array_bytes_codec=[codec for codec in codecs if isinstance(codec, ArrayBytesCodec)][0],
            bytes_bytes_codecs=tuple(
                codec for codec in codecs if isinstance(codec, BytesBytesCodec)
            ),
        )

    def __iter__(self) -> Iterator[Codec]:
        for aa_codec in self.array_array_codecs:
            yield aa_codec

        yield self.array_bytes_codec

        for bb_codec in self.bytes_bytes_codecs:
            yield bb_codec

    def __len__(self) -> int:
        return len(self.array_array_codecs) + 1 + len(self.bytes_bytes_codecs)

    def validate(self, array_metadata: ArrayMetadata) -> None:
        for codec in self:
            codec.validate(array_metadata)

    def _codecs_with_resolved_metadata(
        self, array_spec: ArraySpec
    ) -> Tuple[
        List[Tuple[ArrayArrayCodec, ArraySpec]],
        Tuple[ArrayBytesCodec, ArraySpec],
        List[Tuple[BytesBytesCodec, ArraySpec]],
    ]:
        aa_codecs_with_spec: List[Tuple[ArrayArrayCodec, ArraySpec]] = []
        for aa_codec in self.array_array_codecs:
            aa_codecs_with_spec.append((aa_codec, array_spec))
            array_spec = aa_codec.resolve_metadata(array_spec)

        ab_codec_with_spec = (self.array_bytes_codec, array_spec)
        array_spec = self.array_bytes_codec.resolve_metadata(array_spec)

        bb_codecs_with_spec: List[Tuple[BytesBytesCodec, ArraySpec]] = []
        for bb_codec in self.bytes_bytes_codecs:
            bb_codecs_with_spec.append((bb_codec, array_spec))
            array_spec = bb_codec.resolve_metadata(array_spec)

        return (aa_codecs_with_spec, ab_codec_with_spec, bb_codecs_with_spec)

    def decode(
        self,
        chunk_bytes: BytesLike,
        array_spec: ArraySpec,
    ) -> np.ndarray:
        (
            aa_codecs_with_spec,
            ab_codec_with_spec,
            bb_codecs_with_spec,
        ) = self._codecs_with_resolved_metadata(array_spec)

        for bb_codec, array_spec in bb_codecs_with_spec[::-1]:
            chunk_bytes = bb_codec.decode(chunk_bytes, array_spec)

        ab_codec, array_spec = ab_codec_with_spec
        chunk_array = ab_codec.decode(chunk_bytes, array_spec)

        for aa_codec, array_spec in aa_codecs_with_spec[::-1]:
            chunk_array = aa_codec.decode(chunk_array, array_spec)

        return chunk_array

    def encode(
        self,
        chunk_array: np.ndarray,
        array_spec: ArraySpec,
    ) -> BytesLike:
        (
            aa_codecs_with_spec,
            ab_codec_with_spec,
            bb_codecs_with_spec,
        ) = self._codecs_with_resolved_metadata(array_spec)

        for aa_codec, array_spec in aa_codecs_with_spec:
            chunk_array = aa_codec.encode(chunk_array, array_spec)

        ab_codec, array_spec = ab_codec_with_spec
        chunk_bytes = ab_codec.encode(chunk_array, array_spec)

        for bb_codec, array_spec in bb_codecs_with_spec:
            chunk_bytes = bb_codec.encode(chunk_bytes, array_spec)

        return chunk_bytes

    def compute_encoded_size(self, byte_length: int, array_spec: ArraySpec) -> int:
        for codec in self:
            byte_length = codec.compute_encoded_size(byte_length, array_spec)
            array_spec = codec.resolve_metadata(array_spec)
        return byte_length
