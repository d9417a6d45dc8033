import threading
from contextlib import contextmanager
from typing import Hashable


class KeyedLock:
    """A fixed set of mutexes, a key always maps to the same one.

    Two different keys may share a shard; the same key never gets two.
    """

    def __init__(self, shards: int = 64):
        self._locks = [threading.Lock() for _ in range(shards)]

    def lock_for(self, key: Hashable) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    @contextmanager
    def hold(self, key: Hashable):
        lock = self.lock_for(key)
        with lock:
            yield
