from __future__ import annotations

import itertools
import numbers
from typing import Iterator, List, NamedTuple, Optional, Tuple, Union

from zarr3.common import ChunkCoords, Selection, SliceSelection, ceildiv
from zarr3.errors import NegativeStepError, err_too_many_indices


def _ensure_tuple(v: Selection) -> tuple:
    if not isinstance(v, tuple):
        v = (v,)
    return v


def _err_boundscheck(dim_len: int):
    raise IndexError(f"index out of bounds for dimension with length {dim_len}")


def _replace_ellipsis(selection: tuple, shape: ChunkCoords) -> tuple:
    n_ellipsis = sum(1 for dim_sel in selection if dim_sel is Ellipsis)
    if n_ellipsis > 1:
        raise IndexError("an index can only have a single ellipsis ('...')")
    if n_ellipsis == 1:
        idx = selection.index(Ellipsis)
        n_missing = len(shape) - (len(selection) - 1)
        selection = selection[:idx] + (slice(None),) * max(n_missing, 0) + selection[idx + 1 :]
    return selection


def _ensure_selection(
    selection: Selection,
    shape: ChunkCoords,
) -> tuple:
    selection = _replace_ellipsis(_ensure_tuple(selection), shape)

    # fill out selection if not completely specified
    if len(selection) < len(shape):
        selection += (slice(None),) * (len(shape) - len(selection))

    # check selection not too long
    if len(selection) > len(shape):
        err_too_many_indices(selection, shape)

    return selection


def normalize_integer_selection(dim_sel: int, dim_len: int) -> int:
    # normalize type to int
    dim_sel = int(dim_sel)

    # handle wraparound
    if dim_sel < 0:
        dim_sel = dim_len + dim_sel

    # handle out of bounds
    if dim_sel >= dim_len or dim_sel < 0:
        _err_boundscheck(dim_len)

    return dim_sel


class _ChunkDimProjection(NamedTuple):
    dim_chunk_ix: int
    dim_chunk_sel: Union[int, slice]
    dim_out_sel: Optional[slice]


class _IntDimIndexer:
    dim_sel: int
    dim_len: int
    dim_chunk_len: int
    nitems: int = 1

    def __init__(self, dim_sel: int, dim_len: int, dim_chunk_len: int):
        self.dim_sel = normalize_integer_selection(dim_sel, dim_len)
        self.dim_len = dim_len
        self.dim_chunk_len = dim_chunk_len

    def __iter__(self) -> Iterator[_ChunkDimProjection]:
        dim_chunk_ix = self.dim_sel // self.dim_chunk_len
        dim_offset = dim_chunk_ix * self.dim_chunk_len
        dim_chunk_sel = self.dim_sel - dim_offset
        dim_out_sel = None
        yield _ChunkDimProjection(dim_chunk_ix, dim_chunk_sel, dim_out_sel)


class _SliceDimIndexer:
    dim_len: int
    dim_chunk_len: int
    nitems: int

    start: int
    stop: int
    step: int

    def __init__(self, dim_sel: slice, dim_len: int, dim_chunk_len: int):
        # out-of-range bounds are clipped to the extent of the dimension
        self.start, self.stop, self.step = dim_sel.indices(dim_len)
        if self.step < 1:
            raise NegativeStepError()

        self.dim_len = dim_len
        self.dim_chunk_len = dim_chunk_len
        self.nitems = max(0, ceildiv((self.stop - self.start), self.step))
        self.nchunks = ceildiv(self.dim_len, self.dim_chunk_len)

    def __iter__(self) -> Iterator[_ChunkDimProjection]:
        if self.nitems == 0:
            return

        # figure out the range of chunks we need to visit
        dim_chunk_ix_from = self.start // self.dim_chunk_len
        dim_chunk_ix_to = ceildiv(self.stop, self.dim_chunk_len)

        # iterate over chunks in range
        for dim_chunk_ix in range(dim_chunk_ix_from, dim_chunk_ix_to):
            # compute offsets for chunk within overall array
            dim_offset = dim_chunk_ix * self.dim_chunk_len
            dim_limit = min(self.dim_len, (dim_chunk_ix + 1) * self.dim_chunk_len)

            # determine chunk length, accounting for trailing chunk
            dim_chunk_len = dim_limit - dim_offset

            if self.start < dim_offset:
                # selection starts before current chunk
                dim_chunk_sel_start = 0
                remainder = (dim_offset - self.start) % self.step
                if remainder:
                    dim_chunk_sel_start += self.step - remainder
                # compute number of previous items, provides offset into output array
                dim_out_offset = ceildiv((dim_offset - self.start), self.step)

            else:
                # selection starts within current chunk
                dim_chunk_sel_start = self.start - dim_offset
                dim_out_offset = 0

            if self.stop > dim_limit:
                # selection ends after current chunk
                dim_chunk_sel_stop = dim_chunk_len

            else:
                # selection ends within current chunk
                dim_chunk_sel_stop = self.stop - dim_offset

            if dim_chunk_sel_start >= dim_chunk_sel_stop:
                # a strided selection can step over a chunk entirely
                continue

            dim_chunk_sel = slice(dim_chunk_sel_start, dim_chunk_sel_stop, self.step)
            dim_chunk_nitems = ceildiv((dim_chunk_sel_stop - dim_chunk_sel_start), self.step)
            dim_out_sel = slice(dim_out_offset, dim_out_offset + dim_chunk_nitems)

            yield _ChunkDimProjection(dim_chunk_ix, dim_chunk_sel, dim_out_sel)


class _ChunkProjection(NamedTuple):
    chunk_coords: ChunkCoords
    chunk_selection: tuple
    out_selection: SliceSelection


class BasicIndexer:
    """Maps a selection of integers and slices onto the chunks it touches.

    Iterating yields, per chunk, the chunk's coordinates, the selection within the chunk, and
    the matching selection within the output array. Integer selections drop their dimension
    from the output.
    """

    dim_indexers: List[Union[_IntDimIndexer, _SliceDimIndexer]]
    shape: ChunkCoords

    def __init__(
        self,
        selection: Selection,
        shape: Tuple[int, ...],
        chunk_shape: Tuple[int, ...],
    ):
        # setup per-dimension indexers
        dim_indexers: List[Union[_IntDimIndexer, _SliceDimIndexer]] = []
        for dim_sel, dim_len, dim_chunk_len in zip(
            _ensure_selection(selection, shape), shape, chunk_shape
        ):
            if isinstance(dim_sel, numbers.Integral) and not isinstance(dim_sel, bool):
                dim_indexers.append(_IntDimIndexer(dim_sel, dim_len, dim_chunk_len))
            elif isinstance(dim_sel, slice):
                dim_indexers.append(_SliceDimIndexer(dim_sel, dim_len, dim_chunk_len))
            else:
                raise IndexError(
                    "unsupported selection item for basic indexing; "
                    f"expected integer or slice, got {type(dim_sel)!r}"
                )
        self.dim_indexers = dim_indexers
        self.shape = tuple(
            s.nitems for s in self.dim_indexers if not isinstance(s, _IntDimIndexer)
        )

    def __iter__(self) -> Iterator[_ChunkProjection]:
        for dim_projections in itertools.product(*self.dim_indexers):
            chunk_coords = tuple(p.dim_chunk_ix for p in dim_projections)
            chunk_selection = tuple(p.dim_chunk_sel for p in dim_projections)
            out_selection = tuple(
                p.dim_out_sel for p in dim_projections if p.dim_out_sel is not None
            )

            yield _ChunkProjection(chunk_coords, chunk_selection, out_selection)


def is_total_slice(item: tuple, shape: ChunkCoords) -> bool:
    """Determine whether `item` specifies a complete slice of array with the
    given `shape`. Used to skip reading a chunk that is about to be overwritten
    entirely."""

    return all(
        isinstance(dim_sel, slice)
        and dim_sel.step in (1, None)
        and dim_sel.indices(dim_len)[:2] == (0, dim_len)
        for dim_sel, dim_len in zip(item, shape)
    )
