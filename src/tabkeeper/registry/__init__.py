"""registry — PID markers and liveness probes for peer detection."""
from .pid_file import (  # noqa: F401
    ProcessKind,
    write_record,
    read_record,
    is_alive,
    is_peer_running,
    remove_record,
    remove_record_if_owned,
)
