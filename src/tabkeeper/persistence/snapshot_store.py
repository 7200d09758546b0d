"""Tab snapshot persistence: save, load, load_session.

The snapshot file records the open tabs (id, url, title) in order, with an
epoch-millis timestamp. Persistence is best-effort: a failed save is logged
and the session carries on, a missing or malformed file reads as "no tabs".
Path management is runtime-injected — no hardcoded paths.
"""
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field, asdict
from typing import Iterable

from ..urls import display_url

log = logging.getLogger(__name__)


@dataclass
class TabSnapshot:
    id: int
    url: str = ""
    title: str = ""


@dataclass
class SessionSnapshot:
    timestamp: int
    tabs: list[TabSnapshot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _atomic_write_json(filepath: str, data) -> None:
    """Write JSON through a temp file + rename so readers never see half a file."""
    directory = os.path.dirname(filepath) or "."
    tmp_path = ""
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            dir=directory,
            encoding="utf-8",
        ) as tmp:
            json.dump(data, tmp, ensure_ascii=False, indent=2)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = tmp.name
        os.replace(tmp_path, filepath)
    finally:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def _safe_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _safe_str(value) -> str:
    return value if isinstance(value, str) else ""


def to_snapshot(tab) -> TabSnapshot:
    """Map a live TabState (duck-typed) to its persisted form."""
    return TabSnapshot(
        id=tab.id,
        url=display_url(tab.last_known_url),
        title=tab.last_known_title or "",
    )


class SnapshotStore:
    """Reads and writes ``last-tabs.json``."""

    def __init__(self, path: str):
        self.path = path

    def save(self, tabs: Iterable) -> None:
        """Persist *tabs* in iteration order. Never raises."""
        try:
            snapshot = SessionSnapshot(
                timestamp=int(time.time() * 1000),
                tabs=[to_snapshot(t) for t in tabs],
            )
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            _atomic_write_json(self.path, snapshot.to_dict())
            log.debug("Saved tabs: %d", len(snapshot.tabs))
        except Exception as e:
            log.error("Error saving tabs to %s: %s", self.path, e)

    def load(self) -> list[TabSnapshot]:
        """Return the saved tabs, or ``[]`` if there is nothing usable."""
        session = self.load_session()
        return session.tabs if session is not None else []

    def load_session(self) -> SessionSnapshot | None:
        """Return the saved session with its timestamp, or None."""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, ValueError, TypeError, RecursionError) as exc:
            # ValueError covers JSONDecodeError and over-long integer literals
            log.warning("Failed to load tabs %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict) or not isinstance(data.get("tabs"), list):
            log.warning("Invalid tabs format in %s (expected object with tabs list)", self.path)
            return None
        tabs = []
        for entry in data["tabs"]:
            if not isinstance(entry, dict):
                continue
            tabs.append(TabSnapshot(
                id=_safe_int(entry.get("id", 0)),
                url=display_url(_safe_str(entry.get("url"))),
                title=_safe_str(entry.get("title")),
            ))
        log.debug("Loaded tabs: %d", len(tabs))
        return SessionSnapshot(timestamp=_safe_int(data.get("timestamp", 0)), tabs=tabs)
