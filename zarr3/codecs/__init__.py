from __future__ import annotations

from zarr3.codecs.blosc import BloscCodec, BloscCname, BloscShuffle  # noqa: F401
from zarr3.codecs.bytes import BytesCodec  # noqa: F401
from zarr3.codecs.crc32c_ import Crc32cCodec  # noqa: F401
from zarr3.codecs.gzip import GzipCodec  # noqa: F401
from zarr3.codecs.pipeline import CodecPipeline  # noqa: F401
from zarr3.codecs.transpose import TransposeCodec  # noqa: F401
from zarr3.codecs.zstd import ZstdCodec  # noqa: F401
