"""Tests for PID records and peer detection."""
import os
import tempfile

from tabkeeper.config import ShellPaths
from tabkeeper.registry import ProcessKind, pid_file


def test_write_then_read():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "nested", "browser.pid")
        pid_file.write_record(path, 1234)
        assert pid_file.read_record(path) == 1234
        with open(path) as f:
            assert f.read() == "1234"


def test_read_missing_and_malformed():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        assert pid_file.read_record(path) is None
        for raw in ("", "abc", "12x", "0", "-5"):
            with open(path, "w") as f:
                f.write(raw)
            assert pid_file.read_record(path) is None, raw


def test_read_tolerates_trailing_newline():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        with open(path, "w") as f:
            f.write("4321\n")
        assert pid_file.read_record(path) == 4321


def test_is_alive():
    assert pid_file.is_alive(os.getpid())
    assert not pid_file.is_alive(0)
    assert not pid_file.is_alive(-1)
    assert not pid_file.is_alive(None)
    assert not pid_file.is_alive(2 ** 62)


def test_live_peer_detected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        pid_file.write_record(path, 999)
        assert pid_file.is_peer_running(path, alive=lambda pid: pid == 999)
        assert os.path.exists(path)


def test_stale_record_is_cleaned_up():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        pid_file.write_record(path, 999)
        assert not pid_file.is_peer_running(path, alive=lambda pid: False)
        assert not os.path.exists(path)


def test_malformed_record_is_cleaned_up():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        with open(path, "w") as f:
            f.write("not-a-pid")
        assert not pid_file.is_peer_running(path)
        assert not os.path.exists(path)


def test_own_record_is_not_a_peer():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        pid_file.write_record(path, os.getpid())
        assert not pid_file.is_peer_running(path)
        assert os.path.exists(path)


def test_remove_record_if_owned():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "browser.pid")
        pid_file.write_record(path, 111)
        pid_file.remove_record_if_owned(path, 222)
        assert os.path.exists(path)
        pid_file.remove_record_if_owned(path, 111)
        assert not os.path.exists(path)
        # missing file is fine
        pid_file.remove_record(path)


def test_paths_per_process_kind():
    paths = ShellPaths("/data")
    assert paths.pid_file(ProcessKind.MAIN) == paths.browser_pid == "/data/browser.pid"
    assert paths.pid_file(ProcessKind.WATCHDOG) == paths.watchdog_pid == "/data/watchdog.pid"
