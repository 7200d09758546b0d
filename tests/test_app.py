"""Tests for BrowserApp — startup replay, event loop, singleton guard."""
import json
import os
import tempfile
from unittest import mock

from tabkeeper.app import BrowserApp
from tabkeeper.config import ShellPaths
from tabkeeper.registry import pid_file
from tabkeeper.session import TimerQueue


def _write_snapshot(paths, urls):
    os.makedirs(paths.data_dir, exist_ok=True)
    with open(paths.tabs_file, "w") as f:
        json.dump({"timestamp": 1, "tabs": [
            {"id": i + 1, "url": url, "title": ""} for i, url in enumerate(urls)
        ]}, f)


def _app(paths, host, clock):
    return BrowserApp(paths, host, timers=TimerQueue(clock=clock),
                      restore_delay=1.0, recovery_delay=1.0)


def _saved_urls(paths):
    with open(paths.tabs_file) as f:
        return [t["url"] for t in json.load(f)["tabs"]]


def test_fresh_start_opens_one_blank_tab(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        app = _app(paths, host, clock)
        app.start_session()
        assert app.controller.tab_count == 1
        assert host.surfaces[1].navigations == ["about:blank"]
        assert len(app.timers) == 0
        assert _saved_urls(paths) == [""]


def test_previous_session_is_replayed(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        _write_snapshot(paths, ["https://a.example", "https://b.example", ""])
        app = _app(paths, host, clock)
        app.start_session()

        # the first tab reuses the first saved URL
        assert host.surfaces[1].navigations == ["https://a.example"]
        assert app.controller.tab_count == 1

        clock.advance(1.0)
        assert app.run_once()
        assert app.controller.tab_count == 3
        assert host.surfaces[2].navigations == ["https://b.example"]
        assert host.surfaces[3].navigations == ["about:blank"]
        assert _saved_urls(paths) == ["https://a.example", "https://b.example", ""]


def test_corrupt_snapshot_starts_fresh(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        with open(paths.tabs_file, "w") as f:
            f.write("{not json")
        app = _app(paths, host, clock)
        app.start_session()
        assert app.controller.tab_count == 1
        assert _saved_urls(paths) == [""]


def test_run_until_stop_requested(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        app = _app(paths, host, clock)
        original_pump = host.pump

        def pump(timeout_ms):
            original_pump(timeout_ms)
            if host.pumps == 3:
                app.request_stop()

        host.pump = pump
        assert app.run() == 0
        assert host.pumps == 3
        assert host.destroyed == [1]
        assert _saved_urls(paths) == [""]
        assert not os.path.exists(paths.browser_pid)


def test_run_exits_nonzero_when_engine_disconnects(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        host.connected = False
        app = _app(paths, host, clock)
        assert app.run() == 1
        assert host.pumps == 1
        assert not os.path.exists(paths.browser_pid)


def test_second_instance_refuses_to_start(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        pid_file.write_record(paths.browser_pid, 999)
        app = _app(paths, host, clock)
        with mock.patch("os.kill"):
            assert app.run() == 0
        assert host.surfaces == {}
        assert pid_file.read_record(paths.browser_pid) == 999


def test_acquire_writes_own_pid(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        app = _app(paths, host, clock)
        assert app.acquire()
        assert pid_file.read_record(paths.browser_pid) == os.getpid()
        app.shutdown()
        assert not os.path.exists(paths.browser_pid)


def test_unparsable_numbers_in_snapshot_do_not_block_startup(host, clock):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = ShellPaths(tmpdir)
        with open(paths.tabs_file, "w") as f:
            f.write('{"timestamp": 1, "tabs": [{"id": 1e999, "url": "https://a.example"}]}')
        app = _app(paths, host, clock)
        app.start_session()
        assert host.surfaces[1].navigations == ["https://a.example"]
        assert _saved_urls(paths) == ["https://a.example"]
