"""Tests for SnapshotStore — best-effort tab snapshot persistence."""
import json
import os
import tempfile
from types import SimpleNamespace

from tabkeeper.persistence import SnapshotStore, TabSnapshot


def _tab(tab_id, url="", title=""):
    return SimpleNamespace(id=tab_id, last_known_url=url, last_known_title=title)


def test_save_and_load():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SnapshotStore(os.path.join(tmpdir, "last-tabs.json"))
        store.save([
            _tab(1, "https://a.example", "A"),
            _tab(2, "about:blank"),
            _tab(5, "https://c.example"),
        ])
        tabs = store.load()
        assert tabs == [
            TabSnapshot(1, "https://a.example", "A"),
            TabSnapshot(2, "", ""),
            TabSnapshot(5, "https://c.example", ""),
        ]


def test_saved_file_format():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "last-tabs.json")
        SnapshotStore(path).save([_tab(1, "https://a.example", "A")])
        with open(path) as f:
            data = json.load(f)
        assert set(data) == {"timestamp", "tabs"}
        assert data["timestamp"] > 1_600_000_000_000
        assert data["tabs"] == [{"id": 1, "url": "https://a.example", "title": "A"}]


def test_save_creates_data_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "a", "b", "last-tabs.json")
        SnapshotStore(path).save([_tab(1)])
        assert os.path.exists(path)


def test_save_failure_does_not_raise():
    with tempfile.TemporaryDirectory() as tmpdir:
        # the target is a directory, so the rename fails
        SnapshotStore(tmpdir).save([_tab(1)])
        assert os.path.isdir(tmpdir)


def test_missing_file_reads_as_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SnapshotStore(os.path.join(tmpdir, "last-tabs.json"))
        assert store.load() == []
        assert store.load_session() is None


def test_truncated_file_reads_as_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "last-tabs.json")
        with open(path, "w") as f:
            f.write('{"timestamp": 1, "tabs": [{"id": 1, "ur')
        assert SnapshotStore(path).load() == []


def test_wrong_shape_reads_as_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "last-tabs.json")
        for payload in ([1, 2], {"timestamp": 1}, {"tabs": "nope"}, "x"):
            with open(path, "w") as f:
                json.dump(payload, f)
            assert SnapshotStore(path).load() == [], payload


def test_bad_entries_are_skipped_or_defaulted():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "last-tabs.json")
        with open(path, "w") as f:
            json.dump({"timestamp": "soon", "tabs": [
                "garbage",
                {"id": "3", "url": "https://a.example"},
                {"url": None, "title": 7},
            ]}, f)
        session = SnapshotStore(path).load_session()
        assert session.timestamp == 0
        assert session.tabs == [
            TabSnapshot(3, "https://a.example", ""),
            TabSnapshot(0, "", ""),
        ]


def test_hostile_numbers_and_nesting_read_as_empty_or_default():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "last-tabs.json")
        unreadable = [
            '{"timestamp": ' + "9" * 5000 + ', "tabs": []}',
            "[" * 100000,
        ]
        for payload in unreadable:
            with open(path, "w") as f:
                f.write(payload)
            assert SnapshotStore(path).load() == []

        with open(path, "w") as f:
            f.write('{"timestamp": 1e400, "tabs": [{"id": Infinity}, {"id": 1e999, "url": "https://a.example"}]}')
        session = SnapshotStore(path).load_session()
        assert session.timestamp == 0
        assert session.tabs == [TabSnapshot(0, "", ""), TabSnapshot(0, "https://a.example", "")]
