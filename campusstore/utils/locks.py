import threading
import weakref


class KeyedLocks:
    """
    One re-entrant lock per key, created on first use.

    Keys are whatever identifies the thing being serialized: an index file path
    for id allocation, ("room", building_id, room_id) for a room's booking list.
    The table holds locks weakly, so a key's lock lives only while some caller
    holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def lock_for(self, key):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def __call__(self, key):
        return self.lock_for(key)

    def __len__(self):
        return len(self._locks)

    def clear(self):
        with self._guard:
            self._locks.clear()
