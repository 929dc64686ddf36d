import pytest
from colorama import Fore

from dirprobe.classifier import LEGACY_STATUS_CODES, classify, status_color
from dirprobe.models import Classification


@pytest.mark.parametrize("status,expected", [
    (200, Classification.HIGHLIGHT),
    (204, Classification.HIGHLIGHT),
    (299, Classification.HIGHLIGHT),
    (301, Classification.REPORT),
    (307, Classification.REPORT),
    (401, Classification.REPORT),
    (403, Classification.REPORT),
    (500, Classification.REPORT),
    (404, Classification.IGNORE),
    (None, Classification.IGNORE),
])
def test_permissive_policy(status, expected):
    assert classify(status) == expected


def test_whitelist_policy():
    assert classify(200, LEGACY_STATUS_CODES) == Classification.HIGHLIGHT
    assert classify(302, LEGACY_STATUS_CODES) == Classification.REPORT
    assert classify(403, LEGACY_STATUS_CODES) == Classification.IGNORE
    assert classify(500, LEGACY_STATUS_CODES) == Classification.IGNORE


def test_404_never_reportable():
    assert classify(404, [404, 200]) == Classification.IGNORE


def test_status_colors():
    assert status_color(200) == Fore.GREEN
    assert status_color(301) == Fore.BLUE
    assert status_color(401) == ""
    assert status_color(None) == ""
