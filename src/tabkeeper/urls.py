"""URL normalization shared by the controller and the snapshot store."""
from urllib.parse import urlparse

from .config import BLANK_URL

_PASSTHROUGH_SCHEMES = ("http://", "https://", "file://", "about:", "data:")

# Hosts that count as the same service when looking for an existing tab.
DOMAIN_GROUPS = {
    "chatgpt": ("chat.openai.com", "chatgpt.com"),
    "deepseek": ("chat.deepseek.com", "deepseek.com"),
}


def display_url(url: str | None) -> str:
    """Map the internal blank-page marker to ``""``."""
    if not url or url == BLANK_URL:
        return ""
    return url


def load_url(url: str | None) -> str:
    """Turn user/snapshot input into something a surface can load.

    ``""`` means a blank page; bare hosts get ``https://``.
    """
    url = (url or "").strip()
    if not url:
        return BLANK_URL
    if url.startswith(_PASSTHROUGH_SCHEMES):
        return url
    return "https://" + url


def _hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def same_service(current: str, target: str) -> bool:
    """True if both URLs point at hosts of one DOMAIN_GROUPS entry."""
    current_host = _hostname(current)
    target_host = _hostname(target)
    if not current_host or not target_host:
        return False
    for domains in DOMAIN_GROUPS.values():
        if current_host in domains and target_host in domains:
            return True
    return False
