"""
Reader/writer lock shared by request handlers and background tasks
"""

import threading
import contextlib
from typing import Iterator


class ReadWriteLock:
    """
    Lock allowing either many concurrent readers or one exclusive writer

    Waiting writers are preferred over newly arriving readers, so a steady
    stream of readers can't starve the background tasks. The lock is not
    reentrant: a thread holding it must not try to acquire it again.
    """

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._waiting_writers = 0

    def acquire_read(self):
        with self._condition:
            while self._writing or self._waiting_writers:
                self._condition.wait()
            self._readers += 1

    def release_read(self):
        with self._condition:
            if self._readers <= 0:
                raise RuntimeError("Releasing a read lock that isn't held")
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def acquire_write(self):
        with self._condition:
            self._waiting_writers += 1
            try:
                while self._writing or self._readers:
                    self._condition.wait()
            finally:
                self._waiting_writers -= 1
            self._writing = True

    def release_write(self):
        with self._condition:
            if not self._writing:
                raise RuntimeError("Releasing a write lock that isn't held")
            self._writing = False
            self._condition.notify_all()

    @contextlib.contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextlib.contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
