"""supervisor — the watchdog that keeps the browser UI process alive."""
from .budget import RestartBudget  # noqa: F401
from .watchdog import Watchdog, SupervisorState, default_command  # noqa: F401
