import gc
import os
import pickle
from multiprocessing import Pool as ProcessPool
from multiprocessing.pool import ThreadPool

import pytest

from zarr3.sync import ProcessSynchronizer, ThreadSynchronizer


def _increment(args):
    synchronizer, counter_path, n = args
    for _ in range(n):
        with synchronizer["counter"]:
            with open(counter_path) as f:
                value = int(f.read())
            with open(counter_path, "w") as f:
                f.write(str(value + 1))


def test_thread_synchronizer():
    synchronizer = ThreadSynchronizer()
    assert synchronizer["foo"] is synchronizer["foo"]
    assert synchronizer["foo"] is not synchronizer["bar"]
    with synchronizer["foo"]:
        assert synchronizer["foo"].locked()
    assert not synchronizer["foo"].locked()


def test_thread_synchronizer_pickle():
    synchronizer = ThreadSynchronizer()
    lock = synchronizer["foo"]
    lock.acquire()
    restored = pickle.loads(pickle.dumps(synchronizer))
    # locks are never carried over
    assert not restored["foo"].locked()
    assert synchronizer["foo"].locked()
    lock.release()


def test_thread_synchronizer_drops_unused_locks():
    synchronizer = ThreadSynchronizer()
    held = synchronizer["held"]
    for i in range(1000):
        with synchronizer[f"key{i}"]:
            assert f"key{i}" in synchronizer.locks
    gc.collect()
    assert list(synchronizer.locks) == ["held"]
    assert synchronizer["held"] is held


def test_process_synchronizer_lock_path(tmp_path):
    synchronizer = ProcessSynchronizer(tmp_path, stripes=8)
    assert synchronizer.lock_path("a/c/0/1") == synchronizer.lock_path("a/c/0/1")
    assert os.path.dirname(synchronizer.lock_path("a/c/0/1")) == str(tmp_path)
    assert {synchronizer.stripe(f"c/{i}") for i in range(1000)} == set(range(8))
    restored = pickle.loads(pickle.dumps(synchronizer))
    assert restored.path == str(tmp_path)
    assert restored.stripes == 8
    assert restored.lock_path("a/c/0/1") == synchronizer.lock_path("a/c/0/1")
    with pytest.raises(ValueError):
        ProcessSynchronizer(tmp_path, stripes=0)


def test_process_synchronizer_bounded_lock_files(tmp_path):
    synchronizer = ProcessSynchronizer(tmp_path, stripes=4)
    for i in range(100):
        with synchronizer[f"c/{i}"]:
            pass
    assert 0 < len(os.listdir(tmp_path)) <= 4
    gc.collect()
    assert len(synchronizer._thread_locks.locks) == 0


def test_process_synchronizer_releases_on_error(tmp_path):
    synchronizer = ProcessSynchronizer(tmp_path)
    with pytest.raises(RuntimeError):
        with synchronizer["foo"]:
            raise RuntimeError("boom")
    # the lock can be taken again, so it was released
    with synchronizer["foo"]:
        pass
    assert os.path.exists(synchronizer.lock_path("foo"))


def test_process_synchronizer_threads(tmp_path):
    counter_path = tmp_path / "counter"
    counter_path.write_text("0")
    synchronizer = ProcessSynchronizer(tmp_path / "locks")
    with ThreadPool(4) as pool:
        pool.map(_increment, [(synchronizer, str(counter_path), 25)] * 4)
    assert counter_path.read_text() == "100"


def test_process_synchronizer_processes(tmp_path):
    counter_path = tmp_path / "counter"
    counter_path.write_text("0")
    synchronizer = ProcessSynchronizer(tmp_path / "locks")
    with ProcessPool(4) as pool:
        pool.map(_increment, [(synchronizer, str(counter_path), 25)] * 4)
    assert counter_path.read_text() == "100"
