"""
The registry module is responsible for managing codec implementations and collecting them
from entrypoints. Where several implementations are registered under the same codec name, the
one used is determined by the ``codecs.<name>`` config entry.
"""

from __future__ import annotations

import warnings
from collections import defaultdict
from importlib.metadata import entry_points as get_entry_points
from typing import TYPE_CHECKING, Dict, Generic, List, Optional, Type, TypeVar

from zarr3.config import config

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

    from zarr3.abc.codec import Codec

__all__ = [
    "Registry",
    "get_codec_class",
    "register_codec",
]

T = TypeVar("T")


class Registry(Dict[str, Type[T]], Generic[T]):
    def __init__(self) -> None:
        super().__init__()
        self.lazy_load_list: List[EntryPoint] = []

    def lazy_load(self) -> None:
        for e in self.lazy_load_list:
            self.register(e.load())

        self.lazy_load_list.clear()

    def register(self, cls: Type[T], qualname: Optional[str] = None) -> None:
        if qualname is None:
            qualname = fully_qualified_name(cls)
        self[qualname] = cls


__codec_registries: Dict[str, Registry[Codec]] = defaultdict(Registry)


def _collect_entrypoints() -> List[Registry[Codec]]:
    """
    Collects codecs from entrypoints. Allowed syntax for entry_points.txt is e.g.

        [zarr3.codecs]
        gzip = package:EntrypointGzipCodec1
        [zarr3.codecs.gzip]
        some_name = package:EntrypointGzipCodec2
    """
    entry_points = get_entry_points()

    for e in entry_points.select(group="zarr3.codecs"):
        __codec_registries[e.name].lazy_load_list.append(e)
    for group in entry_points.groups:
        if group.startswith("zarr3.codecs."):
            codec_name = group.split(".")[2]
            __codec_registries[codec_name].lazy_load_list.extend(entry_points.select(group=group))
    return list(__codec_registries.values())


def fully_qualified_name(cls: type) -> str:
    module = cls.__module__
    return module + "." + cls.__qualname__


def register_codec(key: str, codec_cls: Type[Codec]) -> None:
    if key not in __codec_registries:
        __codec_registries[key] = Registry()
    __codec_registries[key].register(codec_cls)


def get_codec_class(key: str) -> Type[Codec]:
    if key in __codec_registries:
        __codec_registries[key].lazy_load()

    codec_classes = __codec_registries.get(key)
    if not codec_classes:
        raise KeyError(key)

    config_entry = config.get("codecs", {}).get(key)
    if config_entry is None:
        if len(codec_classes) == 1:
            return next(iter(codec_classes.values()))
        warnings.warn(
            f"Codec '{key}' not configured in config. Selecting any implementation.",
            stacklevel=2,
        )
        return list(codec_classes.values())[-1]
    selected_codec_cls = codec_classes.get(config_entry)

    if selected_codec_cls:
        return selected_codec_cls
    raise KeyError(key)


_collect_entrypoints()
