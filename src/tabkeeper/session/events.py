"""One tagged event type for everything a surface can report.

Hosts translate their native callbacks (load start/stop, title updates,
renderer crashes, ...) into SurfaceEvent and hand them to
``SessionController.dispatch(tab_id, event)``.
"""
from dataclasses import dataclass
from enum import Enum

from ..errors import FailureKind


class SurfaceEventKind(Enum):
    STARTED = "started"
    STOPPED = "stopped"
    TITLE_CHANGED = "title_changed"
    URL_CHANGED = "url_changed"
    CRASHED = "crashed"
    UNRESPONSIVE = "unresponsive"
    LOAD_FAILED = "load_failed"


# Event kinds that report a failure, and the failure they report.
FAILURE_KINDS = {
    SurfaceEventKind.CRASHED: FailureKind.CRASHED,
    SurfaceEventKind.UNRESPONSIVE: FailureKind.UNRESPONSIVE,
    SurfaceEventKind.LOAD_FAILED: FailureKind.LOAD_FAILED,
}


@dataclass(frozen=True)
class SurfaceEvent:
    kind: SurfaceEventKind
    url: str = ""
    title: str = ""
    detail: str = ""

    @classmethod
    def started(cls) -> "SurfaceEvent":
        return cls(SurfaceEventKind.STARTED)

    @classmethod
    def stopped(cls, url: str = "") -> "SurfaceEvent":
        return cls(SurfaceEventKind.STOPPED, url=url)

    @classmethod
    def title_changed(cls, title: str) -> "SurfaceEvent":
        return cls(SurfaceEventKind.TITLE_CHANGED, title=title)

    @classmethod
    def url_changed(cls, url: str) -> "SurfaceEvent":
        return cls(SurfaceEventKind.URL_CHANGED, url=url)

    @classmethod
    def crashed(cls, detail: str = "") -> "SurfaceEvent":
        return cls(SurfaceEventKind.CRASHED, detail=detail)

    @classmethod
    def unresponsive(cls) -> "SurfaceEvent":
        return cls(SurfaceEventKind.UNRESPONSIVE)

    @classmethod
    def load_failed(cls, url: str = "", detail: str = "") -> "SurfaceEvent":
        return cls(SurfaceEventKind.LOAD_FAILED, url=url, detail=detail)

    @property
    def failure_kind(self) -> FailureKind | None:
        return FAILURE_KINDS.get(self.kind)

    @property
    def is_failure(self) -> bool:
        """True if the surface should go through in-place recovery."""
        failure = self.failure_kind
        return failure is not None and failure.recoverable
