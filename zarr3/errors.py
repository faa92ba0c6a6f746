class MetadataError(ValueError):
    pass


class CodecError(ValueError):
    pass


class ChecksumMismatchError(CodecError):
    pass


class StoreError(OSError):
    pass


class TypeMismatchError(TypeError):
    pass


class _BaseZarrError(ValueError):
    _msg = ""

    def __init__(self, *args):
        super().__init__(self._msg.format(*args))


class _BaseZarrIndexError(IndexError):
    _msg = ""

    def __init__(self, *args):
        super().__init__(self._msg.format(*args))


class ContainsGroupError(_BaseZarrError):
    _msg = "path {0!r} contains a group"


class ContainsArrayError(_BaseZarrError):
    _msg = "path {0!r} contains an array"


class NodeNotFoundError(_BaseZarrError):
    _msg = "nothing found at path {0!r}"


class ArrayNotFoundError(NodeNotFoundError):
    _msg = "array not found at path {0!r}"


class GroupNotFoundError(NodeNotFoundError):
    _msg = "group not found at path {0!r}"


class ShapeMismatchError(_BaseZarrError):
    _msg = "shape mismatch; expected {0}, got {1}"


class InvalidNodeNameError(_BaseZarrError):
    _msg = "invalid node name {0!r}: {1}"


class ReadOnlyError(PermissionError):
    def __init__(self):
        super().__init__("object is read-only")


class InvalidChunkIndexError(_BaseZarrIndexError):
    _msg = "chunk index {0} is out of bounds for chunk grid with shape {1}"


class NegativeStepError(IndexError):
    def __init__(self):
        super().__init__("only slices with step >= 1 are supported")


def err_too_many_indices(selection, shape):
    raise IndexError(f"too many indices for array; expected {len(shape)}, got {len(selection)}")
