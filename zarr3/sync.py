import os
import zlib
from contextlib import contextmanager
from threading import Lock
from typing import Protocol
from weakref import WeakValueDictionary

import fasteners


class Synchronizer(Protocol):
    """Base class for synchronizers."""

    def __getitem__(self, item):
        # see subclasses
        ...


class _KeyLock:
    """A ``threading.Lock`` that can be weakly referenced."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = Lock()

    def acquire(self, blocking=True, timeout=-1):
        return self._lock.acquire(blocking, timeout)

    def release(self):
        self._lock.release()

    def locked(self):
        return self._lock.locked()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *args):
        self._lock.release()


class ThreadSynchronizer(Synchronizer):
    """Provides synchronization using thread locks.

    The lock of a key lives as long as something references it, so the same lock is
    returned to every thread that holds or waits for it, and locks of keys nobody uses any
    more are dropped.
    """

    def __init__(self):
        self.mutex = Lock()
        self.locks = WeakValueDictionary()

    def __getitem__(self, item):
        with self.mutex:
            lock = self.locks.get(item)
            if lock is None:
                lock = self.locks[item] = _KeyLock()
            return lock

    def __getstate__(self):
        return True

    def __setstate__(self, *args):
        # reinitialize from scratch
        self.__init__()


@contextmanager
def _hold(thread_lock, process_lock):
    with thread_lock:
        with process_lock:
            yield


class ProcessSynchronizer(Synchronizer):
    """Provides synchronization using file locks via the
    `fasteners <https://fasteners.readthedocs.io/en/latest/api/inter_process/>`_
    package.

    Indexing with a store key returns a context manager that blocks until it holds the lock
    for that key, and releases it on exit. Keys are hashed onto a fixed number of stripes
    with one lock file each, so the number of files does not grow with the number of keys;
    keys sharing a stripe exclude each other. File locks are held per process, so a thread
    lock on the stripe is taken first to exclude other threads of the same process.

    Parameters
    ----------
    path : string
        Path to a directory on a file system that is shared by all processes.
    stripes : int
        Number of lock files. All processes sharing ``path`` must use the same value.

    """

    def __init__(self, path, stripes=64):
        if stripes < 1:
            raise ValueError(f"stripes must be positive, got {stripes}")
        self.path = os.fspath(path)
        self.stripes = stripes
        self._thread_locks = ThreadSynchronizer()

    def stripe(self, item):
        return zlib.crc32(item.encode("utf-8")) % self.stripes

    def lock_path(self, item):
        return os.path.join(self.path, f"{self.stripe(item):04d}.lock")

    def __getitem__(self, item):
        stripe = self.stripe(item)
        lock = fasteners.InterProcessLock(self.lock_path(item))
        return _hold(self._thread_locks[stripe], lock)

    def __getstate__(self):
        return self.path, self.stripes

    def __setstate__(self, state):
        self.__init__(*state)
