import os

import pytest

from collector.store import CollectionStore
from collector.watch import Watcher, rebuild_into, snapshot

DOC = "---\ntitle: {title}\npublished_at: 2021-01-0{day}\n---\nBody\n"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _touch(path, text, bump):
    path.write_text(text, encoding="utf-8")
    st = path.stat()
    # mtime resolution varies across filesystems; move it explicitly
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + bump * 1_000_000_000))


@pytest.fixture
def clock():
    return FakeClock()


# ── snapshot ──────────────────────────────────────────────────

class TestSnapshot:
    def test_lists_all_files(self, content_dir, write_doc):
        a = write_doc("a.md", "x")
        img = write_doc("assets/pic.png", "x")
        assert set(snapshot(content_dir)) == {a, img}

    def test_missing_dir(self, tmp_path):
        assert snapshot(tmp_path / "nope") == {}


# ── Watcher ───────────────────────────────────────────────────

class TestWatcher:
    def test_no_change_no_rebuild(self, content_dir, write_doc):
        write_doc("a.md", "x")
        calls = []
        w = Watcher(content_dir, lambda: calls.append(1), debounce=0)
        assert w.check() is False
        assert calls == []

    def test_change_triggers_one_rebuild(self, content_dir, write_doc):
        calls = []
        w = Watcher(content_dir, lambda: calls.append(1), debounce=0)
        write_doc("a.md", "x")
        assert w.check() is True
        assert w.check() is False
        assert calls == [1]

    def test_burst_of_saves_coalesces(self, content_dir, clock):
        calls = []
        w = Watcher(content_dir, lambda: calls.append(1), debounce=1.0, clock=clock)
        doc = content_dir / "a.md"

        _touch(doc, "v1", 1)
        assert w.check() is False           # change seen, waiting
        clock.now = 0.5
        _touch(doc, "v2", 2)
        assert w.check() is False           # still changing, window extended
        clock.now = 1.2
        assert w.check() is False           # quiet for 0.7s only
        clock.now = 1.6
        assert w.check() is True            # quiet for 1.1s
        assert calls == [1]
        clock.now = 5.0
        assert w.check() is False

    def test_edit_during_rebuild_triggers_single_follow_up(self, content_dir, write_doc):
        doc = write_doc("a.md", "v0")
        calls = []

        def rebuild():
            calls.append(1)
            if len(calls) == 1:
                _touch(doc, "edited while rebuilding", 3)

        w = Watcher(content_dir, rebuild, debounce=0)
        _touch(doc, "v1", 1)
        assert w.check() is True
        assert w.check() is True
        assert w.check() is False
        assert len(calls) == 2

    def test_overlapping_rebuild_skipped(self, content_dir, write_doc):
        calls = []
        w = Watcher(content_dir, lambda: calls.append(w.check()), debounce=0)
        write_doc("a.md", "x")
        assert w.check() is True
        # the nested check ran while the first rebuild held the lock
        assert calls == [False]

    def test_poll_survives_rebuild_error(self, content_dir, capsys):
        doc = content_dir / "a.md"
        calls = []

        def rebuild():
            calls.append(1)
            if len(calls) == 1:
                raise ValueError("day is out of range for month")

        w = Watcher(content_dir, rebuild, debounce=0)
        _touch(doc, "v1", 1)
        assert w.poll() is False
        err = capsys.readouterr().err
        assert "rebuild failed" in err
        assert "day is out of range" in err

        # the lock was released after the failure
        _touch(doc, "v2", 2)
        assert w.poll() is True
        assert len(calls) == 2
        assert w.poll() is False


# ── rebuild_into ──────────────────────────────────────────────

class TestRebuildInto:
    def test_first_build_initializes_store(self, site_config, write_doc):
        write_doc("a.md", DOC.format(title="A", day=1))
        store = CollectionStore()
        collection = rebuild_into(store, site_config)
        assert store.current() is collection
        assert [a.slug for a in collection.all()] == ["a"]

    def test_rebuild_swaps(self, site_config, write_doc):
        write_doc("a.md", DOC.format(title="A", day=1))
        store = CollectionStore()
        first = rebuild_into(store, site_config)
        write_doc("b.md", DOC.format(title="B", day=2))
        second = rebuild_into(store, site_config)
        assert store.current() is second
        assert second is not first
        assert [a.slug for a in second.all()] == ["b", "a"]

    def test_failed_rebuild_keeps_previous(self, site_config, write_doc, capsys):
        write_doc("a.md", DOC.format(title="A", day=1))
        store = CollectionStore()
        first = rebuild_into(store, site_config)
        broken = write_doc("b.md", "---\ntitle: B\n")
        assert rebuild_into(store, site_config) is None
        assert store.current() is first
        err = capsys.readouterr().err
        assert broken.name in err
        assert "previous collection" in err
