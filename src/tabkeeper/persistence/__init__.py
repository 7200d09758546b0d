"""persistence — tab snapshot storage."""
from .snapshot_store import SnapshotStore, TabSnapshot, SessionSnapshot  # noqa: F401
