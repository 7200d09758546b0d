"""Per-partition storage state: cookies in, storage state out.

Each surface lives in its own browser context. The context's Playwright
storage-state JSON is written to its partition file when the surface is
destroyed, and its cookies are migrated back in when a surface with the
same partition is created.
"""
import json
import logging
import os

log = logging.getLogger(__name__)


def partition_state_path(partitions_dir: str, partition: str) -> str:
    """Storage-state file for *partition*, or ``""`` when partitions are off."""
    if not partitions_dir:
        return ""
    safe = partition.replace("/", "_").replace("\\", "_")
    return os.path.join(partitions_dir, f"{safe}.json")


def migrate_cookies(context, state_path: str) -> int:
    """Import cookies from a storage-state JSON file into a browser context.

    Returns the number of cookies migrated.  Never raises — returns 0 on
    missing file, corrupt JSON, or any other error.
    """
    if not state_path or not os.path.isfile(state_path):
        return 0
    try:
        with open(state_path, "r", encoding="utf-8") as f:
            state = json.load(f)
        cookies = state.get("cookies", [])
        if cookies:
            context.add_cookies(cookies)
            return len(cookies)
        return 0
    except Exception as e:
        log.debug(f"Cookie migration from {state_path} failed: {e}")
        return 0


def save_storage_state(context, state_path: str) -> bool:
    """Write the context's storage state to *state_path*. Never raises."""
    if not state_path:
        return False
    try:
        os.makedirs(os.path.dirname(state_path) or ".", exist_ok=True)
        context.storage_state(path=state_path)
        return True
    except Exception as e:
        log.warning(f"Failed to save storage state {state_path}: {e}")
        return False
