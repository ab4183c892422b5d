from __future__ import annotations

import threading
from typing import Optional

from .collection import Collection


class CollectionStore:
    """Process-wide holder of the collection readers currently see.

    The first build publishes through ``init``; every rebuild builds a new
    Collection off to the side and publishes it with ``swap``, which only
    replaces the reference. Readers holding the old collection keep a
    complete, consistent view.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[Collection] = None

    @property
    def initialized(self) -> bool:
        return self._current is not None

    def init(self, collection: Collection) -> None:
        with self._lock:
            if self._current is not None:
                raise RuntimeError("collection store already initialized")
            self._current = collection

    def current(self) -> Collection:
        collection = self._current
        if collection is None:
            raise RuntimeError("collection store not initialized")
        return collection

    def swap(self, collection: Collection) -> Collection:
        with self._lock:
            if self._current is None:
                raise RuntimeError("collection store not initialized")
            previous, self._current = self._current, collection
        return previous


store = CollectionStore()
