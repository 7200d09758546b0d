"""telemetry — structured lifecycle event logging."""
from .logger import LifecycleEventLogger  # noqa: F401
