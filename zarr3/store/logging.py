from __future__ import annotations

import inspect
import logging
import sys
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING

from zarr3.abc.store import Store

if TYPE_CHECKING:
    from typing import Any, DefaultDict, Iterator, List, Optional
    from zarr3.common import BytesLike


class LoggingStore(Store):
    """
    Store wrapper that logs all calls to the wrapped store.

    Parameters
    ----------
    store : Store
        Store to wrap
    log_level : str
        Log level
    log_handler : logging.Handler
        Log handler

    Attributes
    ----------
    counter : dict
        Counter of number of times each method has been called
    """

    counter: DefaultDict[str, int]

    def __init__(
        self,
        store: Store,
        log_level: str = "DEBUG",
        log_handler: Optional[logging.Handler] = None,
    ) -> None:
        self._store = store
        self.counter = defaultdict(int)
        self.log_level = log_level
        self.log_handler = log_handler
        self._configure_logger(log_level, log_handler)

    def _configure_logger(
        self, log_level: str = "DEBUG", log_handler: Optional[logging.Handler] = None
    ) -> None:
        self.log_level = log_level
        self.logger = logging.getLogger(f"LoggingStore({self._store})")
        self.logger.setLevel(log_level)

        if not self.logger.hasHandlers():
            if not log_handler:
                log_handler = self._default_handler()
            # Add handler to logger
            self.logger.addHandler(log_handler)

    def _default_handler(self) -> logging.Handler:
        """Define a default log handler"""
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(self.log_level)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        return handler

    @contextmanager
    def log(self, hint: Any = "") -> Iterator[None]:
        """Context manager to log method calls

        Each call to the wrapped store is logged to the configured logger and added to
        the counter dict.
        """
        method = inspect.stack()[2].function
        op = f"{type(self._store).__name__}.{method}"
        if hint:
            op = f"{op}({hint})"
        self.logger.info(" Calling %s", op)
        start_time = time.time()
        try:
            self.counter[method] += 1
            yield
        finally:
            end_time = time.time()
            self.logger.info("Finished %s [%.2f s]", op, end_time - start_time)

    def __str__(self) -> str:
        return f"logging-{self._store}"

    def __repr__(self) -> str:
        return f"LoggingStore({type(self._store).__name__}, {str(self._store)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LoggingStore):
            other = other._store
        return self._store == other

    @property
    def read_only(self) -> bool:
        return self._store.read_only

    @property
    def supports_writes(self) -> bool:
        with self.log():
            return self._store.supports_writes

    @property
    def supports_listing(self) -> bool:
        with self.log():
            return self._store.supports_listing

    def get(self, key: str) -> Optional[bytes]:
        with self.log(key):
            return self._store.get(key)

    def exists(self, key: str) -> bool:
        with self.log(key):
            return self._store.exists(key)

    def set(self, key: str, value: BytesLike) -> None:
        with self.log(key):
            return self._store.set(key, value)

    def delete(self, key: str) -> bool:
        with self.log(key):
            return self._store.delete(key)

    def list(self) -> List[str]:
        with self.log():
            return self._store.list()

    def list_prefix(self, prefix: str) -> List[str]:
        with self.log(prefix):
            return self._store.list_prefix(prefix)

    def list_dir(self, prefix: str) -> List[str]:
        with self.log(prefix):
            return self._store.list_dir(prefix)

    def erase_prefix(self, prefix: str) -> None:
        with self.log(prefix):
            return self._store.erase_prefix(prefix)

    def close(self) -> None:
        with self.log():
            return self._store.close()
