"""
The config module is responsible for managing the configuration of zarr3 and is based on the
Donfig python library.

Example:
    A custom implementation of the gzip codec in a class ``your.module.NewGzipCodec`` is
    selected by registering it and pointing ``codecs.gzip`` at it.

    ```python
    from your.module import NewGzipCodec
    from zarr3.registry import register_codec
    from zarr3.config import config

    register_codec("gzip", NewGzipCodec)
    config.set({"codecs.gzip": "your.module.NewGzipCodec"})
    ```

    The same setting can come from the environment variable ``ZARR3_CODECS__GZIP``. The double
    underscore ``__`` is used to indicate nested access.

    Whether chunks holding only the fill value are stored or deleted is controlled by
    ``array.write_empty_chunks``. With the default of ``True`` every written chunk is stored;
    with ``False`` such chunks are removed from the store instead, which changes what listing
    the store returns but never what reading returns.

For more information, see the Donfig documentation at https://github.com/pytroll/donfig.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from donfig import Config as DConfig

if TYPE_CHECKING:
    from typing import Any


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):  # type: ignore[misc]
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "ZARR3_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    It transforms the key and value in the following way:

    -  Lower-cases the key text
    -  Treats ``__`` (double-underscore) as nested access
    -  Calls ``ast.literal_eval`` on the value

    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


config = Config(
    "zarr3",
    defaults=[
        {
            "array": {
                "order": "C",
                "write_empty_chunks": True,
            },
            "json_indent": 2,
            "codecs": {
                "blosc": "zarr3.codecs.blosc.BloscCodec",
                "gzip": "zarr3.codecs.gzip.GzipCodec",
                "zstd": "zarr3.codecs.zstd.ZstdCodec",
                "bytes": "zarr3.codecs.bytes.BytesCodec",
                "endian": "zarr3.codecs.bytes.BytesCodec",
                "crc32c": "zarr3.codecs.crc32c_.Crc32cCodec",
                "transpose": "zarr3.codecs.transpose.TransposeCodec",
            },
        }
    ],
)


def parse_write_empty_chunks(data: Any) -> bool:
    if data is None:
        data = config.get("array.write_empty_chunks")
    if isinstance(data, bool):
        return data
    raise BadConfigError(data)
