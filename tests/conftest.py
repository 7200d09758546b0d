"""Shared fakes: an in-memory surface host and a hand-driven clock."""
import pytest

from tabkeeper.errors import FailureKind, ShellError


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    # lets the clock double as the watchdog's sleep()
    def sleep(self, seconds: float):
        self.now += seconds


class FakeSurface:
    def __init__(self, tab_id, partition, listener):
        self.tab_id = tab_id
        self.partition = partition
        self.listener = listener
        self.navigations = []
        self.reloads = 0
        self.destroyed = False
        self.fail_reload = False
        self.fail_urls = set()
        self._url = "about:blank"

    def navigate(self, url):
        if self.destroyed:
            raise ShellError(FailureKind.DESTROYED)
        if url in self.fail_urls:
            raise ShellError(FailureKind.LOAD_FAILED, url)
        self.navigations.append(url)
        self._url = url

    def reload(self):
        if self.fail_reload:
            raise ShellError(FailureKind.CRASHED, "renderer gone")
        self.reloads += 1

    def go_back(self):
        return False

    def go_forward(self):
        return False

    def url(self):
        if self.destroyed:
            raise ShellError(FailureKind.DESTROYED)
        return self._url

    def title(self):
        return ""

    def is_destroyed(self):
        return self.destroyed

    def emit(self, event):
        self.listener(self.tab_id, event)


class FakeHost:
    def __init__(self):
        self.surfaces = {}
        self.shown = []
        self.destroyed = []
        self.pumps = 0
        self.connected = True
        self.fail_create_ids = set()

    def create_surface(self, tab_id, partition, listener):
        if tab_id in self.fail_create_ids:
            raise ShellError(FailureKind.CRASHED, f"cannot create {tab_id}")
        surface = FakeSurface(tab_id, partition, listener)
        self.surfaces[tab_id] = surface
        return surface

    def destroy_surface(self, surface):
        surface.destroyed = True
        self.destroyed.append(surface.tab_id)

    def show_surface(self, surface):
        self.shown.append(surface.tab_id)

    def pump(self, timeout_ms):
        self.pumps += 1

    def is_connected(self):
        return self.connected


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def host():
    return FakeHost()
