from typing import Iterable, Optional

from colorama import Fore

from .models import Classification

# Whitelist used by the first releases, before any non-404 code was reported.
LEGACY_STATUS_CODES = frozenset({200, 204, 301, 302, 307, 401})


def classify(status: Optional[int], interesting: Optional[Iterable[int]] = None) -> Classification:
    if status is None or status == 404:
        return Classification.IGNORE
    if interesting is not None and status not in set(interesting):
        return Classification.IGNORE
    if 200 <= status < 300:
        return Classification.HIGHLIGHT
    return Classification.REPORT


def status_color(status: Optional[int]) -> str:
    if status is None:
        return ""
    if 200 <= status < 300:
        return Fore.GREEN
    if 300 <= status < 400:
        return Fore.BLUE
    return ""
