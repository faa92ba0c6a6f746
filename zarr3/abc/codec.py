from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from zarr3.abc.metadata import Metadata

if TYPE_CHECKING:
    from typing_extensions import Self
    from zarr3.common import ArraySpec, BytesLike
    from zarr3.metadata import ArrayMetadata


class Codec(Metadata, ABC):
    """A configured, reversible chunk transform.

    Codecs hold no state between calls: ``encode`` and ``decode`` are pure functions of the
    codec's configuration, the input, and the ``ArraySpec`` describing the input.
    """

    is_fixed_size: bool

    @abstractmethod
    def compute_encoded_size(self, input_byte_length: int, chunk_spec: ArraySpec) -> int:
        pass

    def resolve_metadata(self, chunk_spec: ArraySpec) -> ArraySpec:
        return chunk_spec

    def evolve(self, array_spec: ArraySpec) -> Self:
        return self

    def validate(self, array_metadata: ArrayMetadata) -> None:
        pass


class ArrayArrayCodec(Codec):
    @abstractmethod
    def decode(
        self,
        chunk_array: np.ndarray,
        chunk_spec: ArraySpec,
    ) -> np.ndarray:
        pass

    @abstractmethod
    def encode(
        self,
        chunk_array: np.ndarray,
        chunk_spec: ArraySpec,
    ) -> np.ndarray:
        pass


class ArrayBytesCodec(Codec):
    @abstractmethod
    def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_spec: ArraySpec,
    ) -> np.ndarray:
        pass

    @abstractmethod
    def encode(
        self,
        chunk_array: np.ndarray,
        chunk_spec: ArraySpec,
    ) -> BytesLike:
        pass


class BytesBytesCodec(Codec):
    @abstractmethod
    def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_spec: ArraySpec,
    ) -> BytesLike:
        pass

    @abstractmethod
    def encode(
        self,
        chunk_bytes: BytesLike,
        chunk_spec: ArraySpec,
    ) -> BytesLike:
        pass
