# flake8: noqa
from typing import Union

import zarr3.codecs
from zarr3.array import Array
from zarr3.codecs import (
    BloscCodec,
    BytesCodec,
    CodecPipeline,
    Crc32cCodec,
    GzipCodec,
    TransposeCodec,
    ZstdCodec,
)
from zarr3.config import config
from zarr3.data_types import DataType, Endian
from zarr3.errors import (
    ArrayNotFoundError,
    ChecksumMismatchError,
    CodecError,
    ContainsArrayError,
    ContainsGroupError,
    GroupNotFoundError,
    InvalidChunkIndexError,
    InvalidNodeNameError,
    MetadataError,
    NodeNotFoundError,
    ReadOnlyError,
    ShapeMismatchError,
    StoreError,
    TypeMismatchError,
)
from zarr3.group import Group
from zarr3.metadata import ArrayMetadata, GroupMetadata, parse_node_metadata
from zarr3.store import (
    HttpStore,
    LocalStore,
    LoggingStore,
    MemoryStore,
    RemoteStore,
    StoreLike,
    StorePath,
    make_store_path,
)
from zarr3.version import version as __version__


def open(store: StoreLike) -> Union[Array, Group]:
    """Open the array or group at ``store``."""
    return Group.open_or_array(store)
