"""session — tab surfaces, MRU order, snapshot replay and crash recovery."""
from .events import SurfaceEvent, SurfaceEventKind  # noqa: F401
from .mru import MRUHistory  # noqa: F401
from .timers import TimerQueue  # noqa: F401
from .controller import SessionController, TabState, TabStatus  # noqa: F401
