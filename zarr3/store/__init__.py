# flake8: noqa
from zarr3.store.core import StorePath, StoreLike, make_store_path, validate_node_name
from zarr3.store.http import HttpStore
from zarr3.store.local import LocalStore
from zarr3.store.logging import LoggingStore
from zarr3.store.memory import MemoryStore
from zarr3.store.remote import RemoteStore
