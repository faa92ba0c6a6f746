from __future__ import annotations
from typing import TYPE_CHECKING, Dict, Iterable

from dataclasses import dataclass

from zarr3.common import JSON, ArraySpec, parse_named_configuration

if TYPE_CHECKING:
    from typing import Tuple
    from typing_extensions import Self

import numpy as np

from zarr3.abc.codec import ArrayArrayCodec
from zarr3.registry import register_codec


def parse_transpose_order(data: JSON) -> Tuple[int, ...]:
    if not isinstance(data, Iterable) or isinstance(data, str):
        raise TypeError(f"Expected an iterable. Got {data} instead.")
    data = tuple(data)
    if not all(isinstance(a, int) and not isinstance(a, bool) for a in data):
        raise TypeError(f"Expected an iterable of integers. Got {data} instead.")
    return data


@dataclass(frozen=True)
class TransposeCodec(ArrayArrayCodec):
    is_fixed_size = True

    order: Tuple[int, ...]

    def __init__(self, *, order) -> None:
        order_parsed = parse_transpose_order(order)

        object.__setattr__(self, "order", order_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(data, "transpose")
        return cls(**configuration_parsed)

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "transpose", "configuration": {"order": list(self.order)}}

    def evolve(self, array_spec: ArraySpec) -> Self:
        if len(self.order) != array_spec.ndim:
            raise ValueError(
                "The `order` tuple needs have as many entries as "
                + f"there are dimensions in the array. Got: {self.order}"
            )
        if len(self.order) != len(set(self.order)):
            raise ValueError(
                "There must not be duplicates in the `order` tuple. " + f"Got: {self.order}"
            )
        if not all(0 <= x < array_spec.ndim for x in self.order):
            raise ValueError(
                "All entries in the `order` tuple must be between 0 and "
                + f"the number of dimensions in the array. Got: {self.order}"
            )
        return self

    def resolve_metadata(self, chunk_spec: ArraySpec) -> ArraySpec:
        return ArraySpec(
            shape=tuple(chunk_spec.shape[self.order[i]] for i in range(chunk_spec.ndim)),
            dtype=chunk_spec.dtype,
            fill_value=chunk_spec.fill_value,
        )

    def decode(
        self,
        chunk_array: np.ndarray,
        chunk_spec: ArraySpec,
    ) -> np.ndarray:
        inverse_order = tuple(int(i) for i in np.argsort(self.order))
        return chunk_array.transpose(inverse_order)

    def encode(
        self,
        chunk_array: np.ndarray,
        chunk_spec: ArraySpec,
    ) -> np.ndarray:
        return chunk_array.transpose(self.order)

    def compute_encoded_size(self, input_byte_length: int, _chunk_spec: ArraySpec) -> int:
        return input_byte_length


register_codec("transpose", TransposeCodec)
