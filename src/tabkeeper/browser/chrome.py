"""Chrome discovery and browser launch for the UI host.

Prefers a system Chrome/Edge binary and falls back to Playwright's bundled
Chromium when none is installed or the system binary fails to launch.
"""
import logging
import os
import platform
import shutil

log = logging.getLogger(__name__)

DEFAULT_LAUNCH_ARGS = [
    "--disable-infobars",
    "--no-first-run",
    "--no-default-browser-check",
]


def find_system_chrome() -> str | None:
    """Find a Chrome or Edge binary on the system.

    ``TABKEEPER_CHROME`` overrides discovery. Returns the path to the
    browser executable, or None if not found.
    """
    override = os.environ.get("TABKEEPER_CHROME", "")
    if override:
        return override if os.path.isfile(override) else shutil.which(override)

    system = platform.system()
    if system == "Darwin":
        candidates = [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
        ]
    elif system == "Linux":
        candidates = [
            "google-chrome",
            "google-chrome-stable",
            "chromium-browser",
            "chromium",
            "microsoft-edge",
        ]
    else:
        return None

    for candidate in candidates:
        if system == "Darwin":
            if os.path.isfile(candidate):
                return candidate
        else:
            path = shutil.which(candidate)
            if path:
                return path
    return None


def launch_browser(playwright, *, headed: bool = True,
                   extra_args: list[str] | None = None):
    """Launch Chromium for the shell. Returns a Playwright Browser."""
    args = list(DEFAULT_LAUNCH_ARGS)
    if extra_args:
        args.extend(extra_args)

    chrome_path = find_system_chrome()
    if chrome_path:
        try:
            browser = playwright.chromium.launch(
                executable_path=chrome_path, headless=not headed, args=args,
            )
            log.info("Using system Chrome: %s", os.path.basename(chrome_path))
            return browser
        except Exception as e:
            log.warning(f"System Chrome launch failed ({e}), falling back to Playwright Chromium")

    browser = playwright.chromium.launch(headless=not headed, args=args)
    log.info("Using Playwright Chromium %s", browser.version)
    return browser
