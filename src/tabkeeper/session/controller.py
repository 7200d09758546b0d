"""Session controller — owns the tab surfaces of one browser process.

Every tab is a TabState wrapping one host surface. The controller keeps the
foreground pointer and the MRU history, writes the snapshot on every
structural change (tab created or closed, never on navigation), replays the
previous session on startup and recovers a failed surface in place.

A surface failure is scoped to its own tab: the TabState survives, one
reload is scheduled, and the watchdog never hears about it.

All methods run on the UI event-loop thread; nothing here is locked.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..config import FAILURE_PAGE_URL, RECOVERY_DELAY, RESTORE_DELAY
from ..errors import ShellError
from ..host import LoggingTabObserver
from ..persistence.snapshot_store import TabSnapshot, to_snapshot
from ..urls import display_url, load_url, same_service
from .events import SurfaceEvent, SurfaceEventKind
from .mru import MRUHistory

log = logging.getLogger(__name__)


class TabStatus(Enum):
    CREATED = "created"
    LOADING = "loading"
    LOADED = "loaded"
    CRASHED = "crashed"     # transient, left through the recovery reload
    CLOSED = "closed"


@dataclass
class TabState:
    id: int
    surface: Any
    last_known_url: str = ""
    last_known_title: str = ""
    loading: bool = False
    status: TabStatus = TabStatus.CREATED


class SessionController:
    """Tab CRUD, event relay, snapshot replay and per-tab crash recovery.

    ``scheduler`` needs only ``call_later(delay, callback)``; the browser
    app passes a TimerQueue drained by its UI loop.
    """

    def __init__(self, host, store, scheduler, observer=None, *,
                 recovery_delay: float = RECOVERY_DELAY,
                 restore_delay: float = RESTORE_DELAY,
                 event_logger=None):
        self._host = host
        self._store = store
        self._scheduler = scheduler
        self._observer = observer or LoggingTabObserver()
        self._recovery_delay = recovery_delay
        self._restore_delay = restore_delay
        self._event_logger = event_logger
        self._tabs: dict[int, TabState] = {}
        self._mru = MRUHistory()
        self._next_id = 1
        self._created_any = False
        self._pending_recovery: set[int] = set()
        self._torn_down = False
        self.current_tab_id: int | None = None

    # ── Introspection ───────────────────────────────────────────────────────

    @property
    def tabs(self) -> list[TabState]:
        """Live tabs in creation order."""
        return list(self._tabs.values())

    @property
    def tab_count(self) -> int:
        return len(self._tabs)

    @property
    def mru_history(self) -> list[int]:
        return self._mru.ordered(self._tabs)

    def get_tab(self, tab_id: int) -> TabState | None:
        return self._tabs.get(tab_id)

    def snapshot(self) -> list[TabSnapshot]:
        return [to_snapshot(t) for t in self._tabs.values()]

    # ── Tab CRUD ────────────────────────────────────────────────────────────

    def create_tab(self, url: str = "") -> int:
        """Open a tab on *url* (``""`` = blank) and return its id.

        Only the first tab of the process lifetime is brought to the
        foreground; callers switch to later tabs themselves.
        Raises ShellError if the host cannot create a surface.
        """
        return self._open_tab(url)

    def _open_tab(self, url: str, title: str = "") -> int:
        tab_id = self._next_id
        self._next_id += 1
        surface = self._host.create_surface(tab_id, f"tab-{tab_id}", self.dispatch)
        tab = TabState(id=tab_id, surface=surface, last_known_url=load_url(url),
                       last_known_title=title)
        self._tabs[tab_id] = tab

        if not self._created_any:
            self._created_any = True
            self.current_tab_id = tab_id
            self._mru.touch(tab_id)
            self._show(tab)

        self._save()
        log.info("Created tab %d: %s", tab_id, url or "New Tab")
        self._load(tab, url)
        return tab_id

    def switch_to(self, tab_id: int) -> bool:
        tab = self._tabs.get(tab_id)
        if tab is None:
            return False
        self.current_tab_id = tab_id
        self._show(tab)
        self._mru.touch(tab_id)
        return True

    def close_tab(self, tab_id: int) -> int | bool:
        """Close a tab; the last remaining tab is never closed.

        Returns False if refused, the new foreground id if the closed tab was
        the foreground one, True otherwise.
        """
        tab = self._tabs.get(tab_id)
        if tab is None or len(self._tabs) <= 1:
            return False

        log.info("Closing tab %d", tab_id)
        self._destroy(tab)
        del self._tabs[tab_id]
        self._mru.remove(tab_id)
        self._pending_recovery.discard(tab_id)
        self._save()

        if tab_id != self.current_tab_id:
            return True

        next_id = self._mru.most_recent(self._tabs)
        self.current_tab_id = next_id
        self._mru.touch(next_id)
        self._show(self._tabs[next_id])
        return next_id

    # ── Navigation ──────────────────────────────────────────────────────────

    def navigate(self, tab_id: int, url: str) -> bool:
        tab = self._tabs.get(tab_id)
        if tab is None:
            return False
        self._load(tab, url)
        return True

    def go_back(self, tab_id: int) -> bool:
        tab = self._tabs.get(tab_id)
        if tab is None:
            return False
        try:
            return tab.surface.go_back()
        except ShellError as e:
            log.warning("Tab %d cannot go back: %s", tab_id, e)
            return False

    def go_forward(self, tab_id: int) -> bool:
        tab = self._tabs.get(tab_id)
        if tab is None:
            return False
        try:
            return tab.surface.go_forward()
        except ShellError as e:
            log.warning("Tab %d cannot go forward: %s", tab_id, e)
            return False

    def reload(self, tab_id: int) -> bool:
        tab = self._tabs.get(tab_id)
        if tab is None:
            return False
        try:
            tab.surface.reload()
        except ShellError as e:
            log.warning("Tab %d reload failed: %s", tab_id, e)
            return False
        return True

    def current_url(self, tab_id: int) -> str | None:
        """Display URL of a tab (blank page -> ``""``), None if unknown."""
        tab = self._tabs.get(tab_id)
        if tab is None:
            return None
        try:
            return display_url(tab.surface.url())
        except ShellError:
            return display_url(tab.last_known_url)

    def find_tab_with_url(self, target_url: str) -> int | None:
        """Id of a tab already showing *target_url* or the same service."""
        target = display_url(target_url)
        for tab_id in self._tabs:
            current = self.current_url(tab_id)
            if current is None:
                continue
            if current == target:
                return tab_id
            if current and target and same_service(current, target):
                log.debug("Tab %d already serves %s", tab_id, target)
                return tab_id
        return None

    # ── Restore ─────────────────────────────────────────────────────────────

    def restore_from_snapshot(self, snapshot: list[TabSnapshot]) -> list[int]:
        """Recreate every saved tab after the first.

        The first entry is represented by the tab opened at startup. Restored
        tabs get fresh ids. Returns the new ids in snapshot order.
        """
        if self._torn_down:
            return []
        restored = []
        for entry in snapshot[1:]:
            try:
                # title goes in before the save so the file keeps it
                tab_id = self._open_tab(entry.url, entry.title)
            except ShellError as e:
                log.error("Could not restore tab %s: %s", entry.url or "New Tab", e)
                continue
            self._notify_restored(tab_id, entry)
            restored.append(tab_id)
        if restored:
            log.info("Tab restoration complete: %d of %d", len(restored), len(snapshot) - 1)
        if self._event_logger:
            self._event_logger.log_restore(len(restored), len(snapshot))
        return restored

    def schedule_restore(self, snapshot: list[TabSnapshot]):
        """Replay *snapshot* once, after the first surface has settled."""
        self._scheduler.call_later(
            self._restore_delay, lambda: self.restore_from_snapshot(snapshot),
        )

    # ── Surface events ──────────────────────────────────────────────────────

    def dispatch(self, tab_id: int, event: SurfaceEvent):
        """Single entry point for every surface event; relays it to the UI."""
        tab = self._tabs.get(tab_id)
        if tab is None:
            log.debug("Dropping %s for unknown tab %d", event.kind.value, tab_id)
            return

        kind = event.kind
        if kind is SurfaceEventKind.STARTED:
            tab.loading = True
            tab.status = TabStatus.LOADING
        elif kind is SurfaceEventKind.STOPPED:
            tab.loading = False
            tab.status = TabStatus.LOADED
            if event.url:
                tab.last_known_url = event.url
        elif kind is SurfaceEventKind.URL_CHANGED:
            tab.last_known_url = event.url
        elif kind is SurfaceEventKind.TITLE_CHANGED:
            tab.last_known_title = event.title
        elif kind is SurfaceEventKind.LOAD_FAILED:
            tab.loading = False
            log.warning("Tab %d failed to load %s: %s", tab_id, event.url, event.detail)
        elif event.is_failure:
            tab.loading = False
            tab.status = TabStatus.CRASHED
            self._schedule_recovery(tab, event)

        self._relay(tab_id, event)

    def _schedule_recovery(self, tab: TabState, event: SurfaceEvent):
        if tab.id in self._pending_recovery:
            log.debug("Tab %d recovery already pending", tab.id)
            return
        self._pending_recovery.add(tab.id)
        log.warning("Tab %d %s - attempting recovery", tab.id, event.kind.value)
        if self._event_logger:
            self._event_logger.log_surface_failure(
                tab.id, event.failure_kind.value, display_url(tab.last_known_url),
            )
        surface = tab.surface
        self._scheduler.call_later(
            self._recovery_delay, lambda: self._recover(tab.id, surface),
        )

    def _recover(self, tab_id: int, surface):
        self._pending_recovery.discard(tab_id)
        tab = self._tabs.get(tab_id)
        if tab is None or tab.surface is not surface or surface.is_destroyed():
            log.debug("Tab %d gone before recovery", tab_id)
            return
        fallback = False
        try:
            surface.reload()
            tab.status = TabStatus.LOADING
        except ShellError as e:
            log.error("Tab %d reload failed: %s", tab_id, e)
            self._show_failure_page(tab)
            fallback = True
        if self._event_logger:
            self._event_logger.log_surface_recovered(tab_id, fallback)

    # ── Teardown ────────────────────────────────────────────────────────────

    def teardown(self):
        """Persist the final snapshot and destroy every surface."""
        if self._torn_down:
            return
        self._torn_down = True
        if self._tabs:
            self._save()
        log.info("Cleaning up %d surfaces", len(self._tabs))
        for tab in list(self._tabs.values()):
            self._destroy(tab)
        self._tabs.clear()
        self._mru.clear()
        self._pending_recovery.clear()
        self.current_tab_id = None

    # ── Internals ───────────────────────────────────────────────────────────

    def _save(self):
        self._store.save(self._tabs.values())

    def _load(self, tab: TabState, url: str):
        target = load_url(url)
        try:
            tab.surface.navigate(target)
        except ShellError as e:
            log.error("Failed to load %s in tab %d: %s", target, tab.id, e)
            self._show_failure_page(tab)

    def _show_failure_page(self, tab: TabState):
        try:
            tab.surface.navigate(FAILURE_PAGE_URL)
        except ShellError as e:
            log.error("Tab %d cannot show the failure page either: %s", tab.id, e)

    def _show(self, tab: TabState):
        try:
            self._host.show_surface(tab.surface)
        except ShellError as e:
            log.warning("Could not bring tab %d to front: %s", tab.id, e)

    def _destroy(self, tab: TabState):
        tab.status = TabStatus.CLOSED
        try:
            self._host.destroy_surface(tab.surface)
        except Exception as e:
            log.error("Error destroying surface for tab %d: %s", tab.id, e)

    def _relay(self, tab_id: int, event: SurfaceEvent):
        try:
            self._observer.on_tab_event(tab_id, event)
        except Exception as e:
            log.warning(f"Tab observer failed on {event.kind.value}: {e}")

    def _notify_restored(self, tab_id: int, entry: TabSnapshot):
        try:
            self._observer.on_tab_restored(tab_id, entry.url, entry.title or "New Tab")
        except Exception as e:
            log.warning(f"Tab observer failed on restore: {e}")
