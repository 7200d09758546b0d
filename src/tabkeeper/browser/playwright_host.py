"""Playwright implementation of the surface host.

One Chromium per browser process; every surface is a page in its own
browser context, so tabs never share cookies or storage.

Playwright's sync API is single-threaded: page events only fire while the
event loop is pumped. ``pump()`` yields to it with ``page.wait_for_timeout``;
time.sleep() does NOT deliver events.

Playwright exposes no "renderer hung" signal, so this host never reports
UNRESPONSIVE; a closed or crashed page is reported as CRASHED.
"""
import logging
import time

from playwright.sync_api import Error as PlaywrightError

from ..config import BLANK_URL
from ..errors import FailureKind, ShellError
from ..session.events import SurfaceEvent
from .chrome import launch_browser
from .cookies import migrate_cookies, partition_state_path, save_storage_state

log = logging.getLogger(__name__)


class PlaywrightSurface:
    """One tab: a page inside a dedicated browser context.

    After a renderer crash the page is unusable, so ``reload()`` replaces it
    with a fresh page in the same context and reloads the last URL.
    """

    def __init__(self, tab_id: int, partition: str, context, listener):
        self.tab_id = tab_id
        self.partition = partition
        self.context = context
        self._listener = listener
        self.page = None
        self._crashed = False
        self._destroyed = False
        self._title = ""
        self._title_dirty = False
        self._last_url = ""
        self._attach(context.new_page())

    def _attach(self, page):
        self.page = page
        self._crashed = False
        page.on("request", self._on_request)
        page.on("requestfailed", self._on_request_failed)
        page.on("framenavigated", self._on_frame_navigated)
        page.on("load", self._on_load)
        page.on("crash", self._on_crash)
        page.on("close", self._on_close)

    def _emit(self, event: SurfaceEvent):
        try:
            self._listener(self.tab_id, event)
        except Exception as e:
            log.warning(f"Surface {self.tab_id} listener error: {e}")

    def _is_main_navigation(self, request) -> bool:
        try:
            return request.is_navigation_request() and request.frame == self.page.main_frame
        except PlaywrightError:
            # service-worker requests have no frame
            return False

    # ── Page event handlers ─────────────────────────────────────────────────

    def _on_request(self, request):
        if self._is_main_navigation(request):
            self._emit(SurfaceEvent.started())

    def _on_request_failed(self, request):
        if self._is_main_navigation(request):
            self._emit(SurfaceEvent.load_failed(request.url, request.failure or ""))

    def _on_frame_navigated(self, frame):
        if frame.parent_frame is not None:
            return
        url = frame.url
        if url != self._last_url:
            self._last_url = url
            self._emit(SurfaceEvent.url_changed(url))

    def _on_load(self, page):
        self._emit(SurfaceEvent.stopped(page.url))
        # title() is a round trip; read it from pump(), not from a handler
        self._title_dirty = True

    def _on_crash(self, page):
        self._crashed = True
        self._emit(SurfaceEvent.crashed("renderer crashed"))

    def _on_close(self, page):
        if self._destroyed or page is not self.page:
            return
        self._crashed = True
        self._emit(SurfaceEvent.crashed("page closed"))

    def refresh_title(self):
        """Emit TITLE_CHANGED if the title moved since the last load."""
        if not self._title_dirty or self._destroyed or self._crashed:
            return
        self._title_dirty = False
        try:
            title = self.page.title()
        except PlaywrightError as e:
            log.debug(f"Surface {self.tab_id} title read failed: {e}")
            return
        if title != self._title:
            self._title = title
            self._emit(SurfaceEvent.title_changed(title))

    # ── Surface protocol ────────────────────────────────────────────────────

    def _require_page(self):
        if self._destroyed:
            raise ShellError(FailureKind.DESTROYED, f"surface {self.tab_id} destroyed")
        if self._crashed or self.page is None or self.page.is_closed():
            raise ShellError(FailureKind.CRASHED, f"surface {self.tab_id} crashed")
        return self.page

    def navigate(self, url: str) -> None:
        page = self._require_page()
        try:
            page.goto(url, wait_until="commit")
        except PlaywrightError as e:
            raise ShellError(FailureKind.LOAD_FAILED, str(e)) from e

    def reload(self) -> None:
        if self._destroyed:
            raise ShellError(FailureKind.DESTROYED, f"surface {self.tab_id} destroyed")
        if self._crashed or self.page is None or self.page.is_closed():
            self._replace_page()
            return
        try:
            self.page.reload(wait_until="commit")
        except PlaywrightError as e:
            raise ShellError(FailureKind.CRASHED, str(e)) from e

    def _replace_page(self):
        old, self.page = self.page, None
        if old is not None:
            try:
                old.close()
            except PlaywrightError:
                pass
        try:
            self._attach(self.context.new_page())
        except PlaywrightError as e:
            raise ShellError(FailureKind.CRASHED, f"cannot reopen surface {self.tab_id}: {e}") from e
        log.info("Surface %d reattached to a fresh page", self.tab_id)
        self.navigate(self._last_url or BLANK_URL)

    def go_back(self) -> bool:
        page = self._require_page()
        try:
            return page.go_back(wait_until="commit") is not None
        except PlaywrightError as e:
            raise ShellError(FailureKind.LOAD_FAILED, str(e)) from e

    def go_forward(self) -> bool:
        page = self._require_page()
        try:
            return page.go_forward(wait_until="commit") is not None
        except PlaywrightError as e:
            raise ShellError(FailureKind.LOAD_FAILED, str(e)) from e

    def url(self) -> str:
        if self._destroyed or self.page is None:
            raise ShellError(FailureKind.DESTROYED, f"surface {self.tab_id} destroyed")
        return self.page.url

    def title(self) -> str:
        return self._title

    def is_destroyed(self) -> bool:
        return self._destroyed

    def close(self):
        self._destroyed = True
        if self.page is None:
            return
        try:
            self.page.close()
        except PlaywrightError:
            pass


class PlaywrightHost:
    """SurfaceHost backed by a Playwright Chromium.

    ``partitions_dir`` enables per-partition storage-state persistence;
    leave it empty for throwaway contexts.
    """

    def __init__(self, playwright, *, headed: bool = True, partitions_dir: str = "",
                 extra_args: list[str] | None = None):
        self._playwright = playwright
        self._headed = headed
        self._partitions_dir = partitions_dir
        self._extra_args = extra_args
        self._browser = None
        self._surfaces: dict[int, PlaywrightSurface] = {}
        self._foreground: PlaywrightSurface | None = None

    def open(self):
        self._browser = launch_browser(
            self._playwright, headed=self._headed, extra_args=self._extra_args,
        )
        return self

    def close(self):
        for surface in list(self._surfaces.values()):
            self.destroy_surface(surface)
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as e:
                log.warning(f"Failed to close browser cleanly: {e}")
            self._browser = None

    def is_connected(self) -> bool:
        """False once Chromium itself is gone (every surface is dead)."""
        return self._browser is not None and self._browser.is_connected()

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()

    def create_surface(self, tab_id: int, partition: str, listener) -> PlaywrightSurface:
        if self._browser is None:
            raise ShellError(FailureKind.DESTROYED, "host is not open")
        try:
            context = self._browser.new_context(no_viewport=True)
        except PlaywrightError as e:
            raise ShellError(FailureKind.CRASHED, f"cannot create context: {e}") from e

        migrated = migrate_cookies(context, partition_state_path(self._partitions_dir, partition))
        if migrated:
            log.debug("Partition %s: %d cookies restored", partition, migrated)
        try:
            surface = PlaywrightSurface(tab_id, partition, context, listener)
        except PlaywrightError as e:
            try:
                context.close()
            except PlaywrightError:
                pass
            raise ShellError(FailureKind.CRASHED, f"cannot open page: {e}") from e

        self._surfaces[tab_id] = surface
        if self._foreground is None:
            self._foreground = surface
        return surface

    def destroy_surface(self, surface: PlaywrightSurface) -> None:
        self._surfaces.pop(surface.tab_id, None)
        if self._foreground is surface:
            self._foreground = None
        if surface.is_destroyed():
            return
        save_storage_state(
            surface.context, partition_state_path(self._partitions_dir, surface.partition),
        )
        surface.close()
        try:
            surface.context.close()
        except PlaywrightError as e:
            log.debug(f"Context close failed for surface {surface.tab_id}: {e}")

    def show_surface(self, surface: PlaywrightSurface) -> None:
        self._foreground = surface
        try:
            surface.page.bring_to_front()
        except (PlaywrightError, AttributeError) as e:
            raise ShellError(FailureKind.DESTROYED, f"cannot show surface {surface.tab_id}: {e}") from e

    def pump(self, timeout_ms: int) -> None:
        page = self._pump_page()
        if page is None:
            time.sleep(timeout_ms / 1000)
        else:
            try:
                page.wait_for_timeout(timeout_ms)
            except PlaywrightError:
                # page died under us; its crash/close handler reports it
                time.sleep(timeout_ms / 1000)
        for surface in list(self._surfaces.values()):
            surface.refresh_title()

    def _pump_page(self):
        candidates = [self._foreground] + list(self._surfaces.values())
        for surface in candidates:
            if surface is None or surface.is_destroyed() or surface.page is None:
                continue
            if not surface.page.is_closed():
                return surface.page
        return None
