from typing import Any
from unittest.mock import Mock

import numpy as np
import pytest

from zarr3 import Array
from zarr3.codecs import BytesCodec, GzipCodec
from zarr3.config import BadConfigError, config, parse_write_empty_chunks
from zarr3.registry import fully_qualified_name, get_codec_class, register_codec


def test_config_defaults_set() -> None:
    # regression test for available defaults
    assert config.defaults == [
        {
            "array": {"order": "C", "write_empty_chunks": True},
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
    ]
    assert config.get("array.order") == "C"
    assert config.get("array.write_empty_chunks") is True
    assert config.get("json_indent") == 2


@pytest.mark.parametrize(
    ("key", "old_val", "new_val"),
    [("array.order", "C", "F"), ("array.write_empty_chunks", True, False), ("json_indent", 2, 0)],
)
def test_config_defaults_can_be_overridden(key: str, old_val: Any, new_val: Any) -> None:
    assert config.get(key) == old_val
    with config.set({key: new_val}):
        assert config.get(key) == new_val
    assert config.get(key) == old_val


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ZARR3_ARRAY__WRITE_EMPTY_CHUNKS", "False")
    config.refresh()
    assert config.get("array.write_empty_chunks") is False
    assert parse_write_empty_chunks(None) is False


def test_parse_write_empty_chunks() -> None:
    assert parse_write_empty_chunks(None) is True
    assert parse_write_empty_chunks(False) is False
    with config.set({"array.write_empty_chunks": False}):
        assert parse_write_empty_chunks(None) is False
        assert parse_write_empty_chunks(True) is True
    with pytest.raises(BadConfigError):
        parse_write_empty_chunks("yes")
    with config.set({"array.write_empty_chunks": 1}):
        with pytest.raises(BadConfigError):
            parse_write_empty_chunks(None)


def test_json_indent(store_path) -> None:
    with config.set({"json_indent": 0}):
        Array.create(store_path, shape=(1,), dtype="int8", chunk_shape=(1,))
    assert b"\n  " not in (store_path / "zarr.json").get()


def test_fully_qualified_name() -> None:
    class MockClass:
        pass

    assert (
        fully_qualified_name(MockClass)
        == "zarr3.tests.test_config.test_fully_qualified_name.<locals>.MockClass"
    )


def test_config_codec_implementation(store_path) -> None:
    # has default value
    assert fully_qualified_name(get_codec_class("gzip")) == config.defaults[0]["codecs"]["gzip"]

    _mock = Mock()

    class MockGzipCodec(GzipCodec):
        def encode(self, chunk_bytes, chunk_spec):
            _mock.call()
            return super().encode(chunk_bytes, chunk_spec)

    register_codec("gzip", MockGzipCodec)
    # the configured implementation still wins
    assert get_codec_class("gzip") is GzipCodec

    config.set({"codecs.gzip": fully_qualified_name(MockGzipCodec)})
    assert get_codec_class("gzip") is MockGzipCodec

    # test if codec is used
    arr = Array.create(
        store_path,
        shape=(100,),
        dtype="int32",
        chunk_shape=(10,),
        codecs=[BytesCodec(), {"name": "gzip", "configuration": {}}],
    )
    arr[:] = np.arange(100)
    _mock.call.assert_called()
    assert np.array_equal(arr[:], np.arange(100))

    config.set({"codecs.gzip": "not.a.Codec"})
    with pytest.raises(KeyError):
        get_codec_class("gzip")


def test_config_codec_from_env(monkeypatch) -> None:
    class EnvGzipCodec(GzipCodec):
        pass

    register_codec("gzip", EnvGzipCodec)
    monkeypatch.setenv("ZARR3_CODECS__GZIP", fully_qualified_name(EnvGzipCodec))
    config.refresh()
    assert get_codec_class("gzip") is EnvGzipCodec


def test_unconfigured_codec_warns() -> None:
    class FirstCodec(BytesCodec):
        pass

    class SecondCodec(BytesCodec):
        pass

    register_codec("mock-unconfigured", FirstCodec)
    assert get_codec_class("mock-unconfigured") is FirstCodec

    register_codec("mock-unconfigured", SecondCodec)
    with pytest.warns(UserWarning, match="not configured"):
        assert get_codec_class("mock-unconfigured") is SecondCodec


def test_unknown_codec() -> None:
    with pytest.raises(KeyError):
        get_codec_class("does-not-exist")
