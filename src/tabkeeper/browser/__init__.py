"""browser — the Playwright/Chromium surface host.

macOS and Linux only.
"""
from .chrome import find_system_chrome, launch_browser  # noqa: F401
from .cookies import migrate_cookies, save_storage_state, partition_state_path  # noqa: F401
from .playwright_host import PlaywrightHost, PlaywrightSurface  # noqa: F401
