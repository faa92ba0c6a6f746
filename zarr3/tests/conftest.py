from __future__ import annotations

import pathlib
import uuid
from typing import TYPE_CHECKING

import pytest

from zarr3 import config
from zarr3.store import LocalStore, MemoryStore, RemoteStore, StorePath

if TYPE_CHECKING:
    from typing import Any, Literal


def parse_store(
    store: Literal["local", "memory", "remote"], path: str
) -> LocalStore | MemoryStore | RemoteStore:
    if store == "local":
        return LocalStore(path)
    if store == "memory":
        return MemoryStore()
    if store == "remote":
        return RemoteStore(url=f"memory://{uuid.uuid4().hex}/{pathlib.Path(path).name}")
    raise AssertionError


@pytest.fixture(params=[str, pathlib.Path])
def path_type(request: pytest.FixtureRequest) -> Any:
    return request.param


@pytest.fixture
def local_store(tmp_path: pathlib.Path) -> LocalStore:
    return LocalStore(tmp_path)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def remote_store(tmp_path: pathlib.Path) -> RemoteStore:
    return parse_store("remote", str(tmp_path))


@pytest.fixture(params=["local", "memory", "remote"])
def store(request: pytest.FixtureRequest, tmp_path: pathlib.Path):
    return parse_store(request.param, str(tmp_path))


@pytest.fixture
def store_path(store) -> StorePath:
    return StorePath(store)


@pytest.fixture(autouse=True)
def reset_config():
    config.reset()
    yield
    config.reset()
