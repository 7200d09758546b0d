"""Structured JSONL event logging for supervisor and session lifecycles."""
import json
import logging
import os
import time

log = logging.getLogger(__name__)


class LifecycleEventLogger:
    """Writes one JSON line per lifecycle event to a per-run JSONL file.

    All logging is best-effort — methods never raise exceptions.
    Supports context-manager protocol for automatic close.

    ``role`` is ``"watchdog"`` or ``"browser"`` and is stamped on every event
    so both processes can share one log directory.
    """

    def __init__(self, run_id: str, role: str, log_dir: str = "data/logs"):
        self._run_id = run_id
        self._role = role
        self._f = None
        try:
            os.makedirs(log_dir, exist_ok=True)
            path = os.path.join(log_dir, f"lifecycle_{role}_{run_id}.jsonl")
            self._f = open(path, "a", encoding="utf-8")
        except Exception as e:
            log.warning(f"LifecycleEventLogger: failed to open log file: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _write(self, event: dict):
        if self._f is None:
            return
        try:
            event["ts"] = time.time()
            event["run_id"] = self._run_id
            event["role"] = self._role
            self._f.write(json.dumps(event, ensure_ascii=False) + "\n")
            self._f.flush()
        except Exception as e:
            log.warning(f"LifecycleEventLogger: write failed: {e}")

    # ── Supervisor ──────────────────────────────────────────────────────────

    def log_spawn(self, pid: int, attempt: int):
        self._write({"event": "spawn", "pid": pid, "attempt": attempt})

    def log_spawn_failed(self, error: str, attempt: int):
        self._write({"event": "spawn_failed", "error": error, "attempt": attempt})

    def log_exit(self, pid: int | None, returncode: int | None, state: str):
        """Log a child exit. ``state`` is ``exited`` or ``crashed``."""
        self._write({"event": "exit", "pid": pid, "returncode": returncode, "state": state})

    def log_peer_detected(self, pid: int | None):
        self._write({"event": "peer_detected", "pid": pid})

    def log_peer_lost(self, pid: int | None):
        self._write({"event": "peer_lost", "pid": pid})

    def log_restart_scheduled(self, attempt: int, max_attempts: int, delay: float):
        self._write({
            "event": "restart_scheduled",
            "attempt": attempt,
            "max_attempts": max_attempts,
            "delay": delay,
        })

    def log_stopped(self, reason: str, attempts: int):
        self._write({"event": "stopped", "reason": reason, "attempts": attempts})

    # ── Session ─────────────────────────────────────────────────────────────

    def log_surface_failure(self, tab_id: int, kind: str, url: str):
        self._write({"event": "surface_failure", "tab_id": tab_id, "kind": kind, "url": url})

    def log_surface_recovered(self, tab_id: int, fallback: bool):
        self._write({"event": "surface_recovered", "tab_id": tab_id, "fallback": fallback})

    def log_restore(self, restored: int, snapshot_size: int):
        self._write({"event": "restore", "restored": restored, "snapshot_size": snapshot_size})

    def close(self):
        if self._f is not None:
            try:
                self._f.flush()
                self._f.close()
            except Exception:
                pass
            self._f = None
