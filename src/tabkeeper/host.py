"""UI host protocols — the collaborators the supervisory core consumes.

Methods, not config dicts — each host owns its rendering engine fully.
The session controller calls these methods; it never touches engine
objects (pages, contexts, windows) directly.
"""
import logging
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .session.events import SurfaceEvent

# (tab_id, SurfaceEvent) -> None; handed to the host at surface creation.
SurfaceListener = Callable[[int, Any], None]


@runtime_checkable
class Surface(Protocol):
    """One isolated, navigable rendering context (one tab)."""

    tab_id: int

    def navigate(self, url: str) -> None:
        """Start loading *url*. Raises ShellError if the load cannot start."""
        ...

    def reload(self) -> None:
        """Reload the current page. Raises ShellError if the surface is gone."""
        ...

    def go_back(self) -> bool:
        """Go back in history. Returns False if there is nothing to go back to."""
        ...

    def go_forward(self) -> bool:
        """Go forward in history. Returns False if there is nothing ahead."""
        ...

    def url(self) -> str:
        """Current URL as the engine reports it (blank pages included)."""
        ...

    def title(self) -> str:
        ...

    def is_destroyed(self) -> bool:
        ...


@runtime_checkable
class SurfaceHost(Protocol):
    """Creates, shows and destroys surfaces and runs their event loop."""

    def create_surface(self, tab_id: int, partition: str,
                       listener: SurfaceListener) -> Surface:
        """Create a surface bound to its own storage *partition*.

        The host reports every event of the surface through *listener*.
        """
        ...

    def destroy_surface(self, surface: Surface) -> None:
        """Detach and destroy. Must not raise for an already-dead surface."""
        ...

    def show_surface(self, surface: Surface) -> None:
        """Make *surface* the foreground one."""
        ...

    def pump(self, timeout_ms: int) -> None:
        """Process pending engine events for up to *timeout_ms*."""
        ...


@runtime_checkable
class TabObserver(Protocol):
    """The UI layer: receives the per-tab relay."""

    def on_tab_event(self, tab_id: int, event: "SurfaceEvent") -> None:
        ...

    def on_tab_restored(self, tab_id: int, url: str, title: str) -> None:
        ...


class LoggingTabObserver:
    """Default observer: writes the relay to the log."""

    def __init__(self, logger: Any = None):
        self._log = logger or logging.getLogger("tabkeeper.ui")

    def on_tab_event(self, tab_id: int, event: "SurfaceEvent") -> None:
        self._log.debug("tab %d: %s url=%r title=%r", tab_id, event.kind.value,
                        event.url, event.title)

    def on_tab_restored(self, tab_id: int, url: str, title: str) -> None:
        self._log.info("tab %d restored: %s", tab_id, url or title or "New Tab")
