"""Human-readable device labels for the session list.

The match tables are ordered most-specific first: Edge, Opera and Brave user
agents all carry ``Chrome/``, every Chromium UA carries ``Safari/``, iOS
carries ``Mac OS X`` and Android carries ``Linux``.
"""
from typing import Optional, Sequence, Tuple

_BROWSERS: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("Postman", ("PostmanRuntime",)),
    ("Insomnia", ("Insomnia",)),
    ("curl", ("curl",)),
    ("Thunder Client", ("Thunder Client",)),
    ("Edge", ("Edg/", "Edge/")),
    ("Opera", ("OPR/", "Opera")),
    ("Brave", ("Brave",)),
    ("Vivaldi", ("Vivaldi",)),
    ("Samsung Internet", ("SamsungBrowser",)),
    ("Chrome", ("Chrome/", "CriOS/")),
    ("Safari", ("Safari/",)),
    ("Firefox", ("Firefox/", "FxiOS/")),
)

_SYSTEMS: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("Windows", ("Windows",)),
    ("iOS", ("iPhone", "iPad", "iPod")),
    ("macOS", ("Macintosh", "Mac OS X")),
    ("Android", ("Android",)),
    ("ChromeOS", ("CrOS",)),
    ("Linux", ("Linux",)),
)


def _first_match(ua: str, table: Sequence[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    for label, needles in table:
        if any(n in ua for n in needles):
            return label
    return None


def detect_browser(ua: str) -> Optional[str]:
    return _first_match(ua, _BROWSERS)


def detect_os(ua: str) -> Optional[str]:
    return _first_match(ua, _SYSTEMS)


def parse_device_name(user_agent: str) -> str:
    browser = detect_browser(user_agent)
    os_name = detect_os(user_agent)
    if browser and os_name:
        return f"{browser} on {os_name}"
    if browser:
        return browser
    if os_name:
        return f"Unknown browser on {os_name}"
    return "Unknown device"
