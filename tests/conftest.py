"""
Shared fixtures: wordlist files and a DirEnumerator that answers from a
table instead of the network.
"""
import asyncio

import pytest

from dirprobe.models import ScanConfig
from dirprobe.scanner import DirEnumerator


class CannedEnumerator(DirEnumerator):
    """Maps the last path segment to a status code (404 when unknown)."""

    def __init__(self, config, responses=None, delay=0.0):
        super().__init__(config)
        self.responses = responses or {}
        self.delay = delay
        self.active = 0
        self.peak = 0

    async def _request(self, session, url):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            value = self.responses.get(url.rsplit("/", 1)[-1], 404)
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            self.active -= 1


@pytest.fixture
def make_wordlist(tmp_path):
    def _make(lines, name="words.txt"):
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p
    return _make


@pytest.fixture
def make_config(tmp_path):
    def _make(**kw):
        kw.setdefault("url", "http://target.test/")
        kw.setdefault("wordlist", str(tmp_path / "words.txt"))
        return ScanConfig(**kw)
    return _make
