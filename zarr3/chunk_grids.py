from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterator, Tuple
from dataclasses import dataclass
import itertools

from zarr3.abc.metadata import Metadata
from zarr3.common import (
    JSON,
    ChunkCoords,
    ChunkCoordsLike,
    SliceSelection,
    ceildiv,
    parse_named_configuration,
    parse_shapelike,
    product,
)

if TYPE_CHECKING:
    from typing_extensions import Self


def parse_chunk_shape(data: Any) -> ChunkCoords:
    data_tuple = parse_shapelike(data)
    if not all(v > 0 for v in data_tuple):
        raise ValueError(f"All chunk extents must be greater than 0. Got {data}.")
    return data_tuple


def _normalize_region(region: SliceSelection, array_shape: ChunkCoords) -> Tuple[range, ...]:
    if len(region) != len(array_shape):
        raise ValueError(
            f"Region has {len(region)} dimensions, but the array has {len(array_shape)}."
        )
    bounds = []
    for dim_sel, dim_len in zip(region, array_shape):
        if not isinstance(dim_sel, slice) or dim_sel.step not in (None, 1):
            raise ValueError(f"Expected a slice with unit step. Got {dim_sel!r}.")
        start = 0 if dim_sel.start is None else dim_sel.start
        stop = dim_len if dim_sel.stop is None else dim_sel.stop
        if not 0 <= start <= stop <= dim_len:
            raise ValueError(
                f"Region {dim_sel!r} is not within the extent [0, {dim_len}] of the array."
            )
        bounds.append(range(start, stop))
    return tuple(bounds)


@dataclass(frozen=True)
class ChunkRegion:
    """The chunk indices overlapping a region, in row-major order.

    Iterating regenerates the indices from the bounds every time, so a ``ChunkRegion`` can be
    iterated any number of times.
    """

    ranges: Tuple[range, ...]

    def __iter__(self) -> Iterator[ChunkCoords]:
        return itertools.product(*self.ranges)

    def __len__(self) -> int:
        return product(tuple(len(r) for r in self.ranges))

    def __contains__(self, chunk_coords: object) -> bool:
        if not isinstance(chunk_coords, tuple) or len(chunk_coords) != len(self.ranges):
            return False
        return all(c in r for c, r in zip(chunk_coords, self.ranges))


@dataclass(frozen=True)
class ChunkGrid(Metadata):
    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> ChunkGrid:
        if isinstance(data, ChunkGrid):
            return data  # type: ignore

        name_parsed, _ = parse_named_configuration(data)
        if name_parsed == "regular":
            return RegularChunkGrid.from_dict(data)
        raise ValueError(f"Unknown chunk grid. Got {name_parsed}.")


@dataclass(frozen=True)
class RegularChunkGrid(ChunkGrid):
    chunk_shape: ChunkCoords

    def __init__(self, *, chunk_shape: ChunkCoordsLike) -> None:
        chunk_shape_parsed = parse_chunk_shape(chunk_shape)

        object.__setattr__(self, "chunk_shape", chunk_shape_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Self:
        _, configuration_parsed = parse_named_configuration(data, "regular")

        return cls(**configuration_parsed)  # type: ignore[arg-type]

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "regular", "configuration": {"chunk_shape": list(self.chunk_shape)}}

    @property
    def ndim(self) -> int:
        return len(self.chunk_shape)

    def grid_shape(self, array_shape: ChunkCoords) -> ChunkCoords:
        return tuple(ceildiv(s, c) for s, c in zip(array_shape, self.chunk_shape))

    def all_chunk_coords(self, array_shape: ChunkCoords) -> Iterator[ChunkCoords]:
        return itertools.product(*(range(n) for n in self.grid_shape(array_shape)))

    def chunks_overlapping(self, region: SliceSelection, array_shape: ChunkCoords) -> ChunkRegion:
        """Chunk indices whose extent intersects ``region``.

        Parameters
        ----------
        region : tuple of slice
            One ``slice(start, stop)`` per dimension, in array coordinates. Missing bounds
            default to the full extent of the array.
        array_shape : tuple of int

        Returns
        -------
        ChunkRegion
        """
        bounds = _normalize_region(region, array_shape)
        return ChunkRegion(
            tuple(
                range(b.start // c, ceildiv(b.stop, c)) if len(b) else range(0)
                for b, c in zip(bounds, self.chunk_shape)
            )
        )

    def chunk_region(self, chunk_coords: ChunkCoords, array_shape: ChunkCoords) -> SliceSelection:
        """The array-space extent of a chunk, clipped to the array shape."""
        return tuple(
            slice(i * c, min((i + 1) * c, s))
            for i, c, s in zip(chunk_coords, self.chunk_shape, array_shape)
        )

    def voxel_chunk(self, voxel: ChunkCoords) -> Tuple[ChunkCoords, ChunkCoords]:
        """The chunk holding a single element, and the element's offset within it."""
        return (
            tuple(v // c for v, c in zip(voxel, self.chunk_shape)),
            tuple(v % c for v, c in zip(voxel, self.chunk_shape)),
        )
