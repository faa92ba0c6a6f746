from zarr3.codecs import BytesCodec


class TestEntrypointCodec(BytesCodec):
    pass


class TestEntrypointGroup:
    class Codec(BytesCodec):
        pass
