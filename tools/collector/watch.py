from __future__ import annotations

import pathlib
import sys
import threading
import time
import traceback
from typing import Callable, Dict, Optional, Tuple

from .collection import Collection, build_collection
from .config import SiteConfig
from .errors import BuildFailed
from .store import CollectionStore

Snapshot = Dict[pathlib.Path, Tuple[int, int]]


def snapshot(content_dir: pathlib.Path) -> Snapshot:
    """(mtime_ns, size) of every file under ``content_dir``, assets included."""
    content_dir = pathlib.Path(content_dir)
    snap: Snapshot = {}
    if not content_dir.is_dir():
        return snap
    for p in content_dir.rglob("*"):
        try:
            if p.is_file():
                st = p.stat()
                snap[p] = (st.st_mtime_ns, st.st_size)
        except FileNotFoundError:
            # deleted between listing and stat; the next poll sees it gone
            continue
    return snap


def rebuild_into(store: CollectionStore, config: SiteConfig) -> Optional[Collection]:
    """Build a fresh collection and publish it; keep the old one on failure."""
    try:
        collection = build_collection(config.content_path, date_format=config.date_format)
    except BuildFailed as exc:
        print(f"! {exc}", file=sys.stderr)
        for line in exc.diagnostics():
            print(f"  {line}", file=sys.stderr)
        if store.initialized:
            print("- keeping the previous collection", file=sys.stderr)
        return None
    if store.initialized:
        store.swap(collection)
    else:
        store.init(collection)
    return collection


class Watcher:
    """Poll the content directory and rebuild when it changes.

    Changes landing within ``debounce`` seconds of each other coalesce into
    one rebuild, and only one rebuild runs at a time. The baseline snapshot
    is taken before a rebuild starts, so edits made during it trigger a
    single follow-up rebuild once it has finished.
    """

    def __init__(
        self,
        content_dir: pathlib.Path,
        rebuild: Callable[[], object],
        interval: float = 0.5,
        debounce: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.content_dir = pathlib.Path(content_dir)
        self.rebuild = rebuild
        self.interval = interval
        self.debounce = debounce
        self.clock = clock
        self.rebuilds = 0
        self._baseline = snapshot(self.content_dir)
        self._pending: Optional[Snapshot] = None
        self._changed_at = 0.0
        self._rebuild_lock = threading.Lock()
        self._stop = threading.Event()

    def check(self) -> bool:
        """One poll step. Returns True when a rebuild ran."""
        current = snapshot(self.content_dir)
        now = self.clock()

        if self._pending is None:
            if current == self._baseline:
                return False
            self._pending, self._changed_at = current, now
        elif current != self._pending:
            # still changing: extend the quiet window
            self._pending, self._changed_at = current, now

        if now - self._changed_at < self.debounce:
            return False

        if not self._rebuild_lock.acquire(blocking=False):
            return False
        try:
            self._baseline, self._pending = current, None
            self.rebuilds += 1
            print(f"- content changed, rebuilding ({self.rebuilds})")
            self.rebuild()
        finally:
            self._rebuild_lock.release()
        return True

    def poll(self) -> bool:
        """``check`` that reports an unexpected rebuild error and carries on."""
        try:
            return self.check()
        except Exception as exc:
            print(f"! rebuild failed: {exc!r}", file=sys.stderr)
            traceback.print_exc(file=sys.stderr)
            return False

    def run(self) -> None:
        while not self._stop.is_set():
            self.poll()
            self._stop.wait(self.interval)

    def start(self) -> threading.Thread:
        t = threading.Thread(target=self.run, name="content-watcher", daemon=True)
        t.start()
        return t

    def stop(self) -> None:
        self._stop.set()
