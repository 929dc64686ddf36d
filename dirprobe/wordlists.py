from pathlib import Path
from typing import Iterable, List, Optional

from .models import normalize_extensions


class WordlistError(Exception):
    """The wordlist could not be turned into candidates."""


class MissingDictionaryError(WordlistError):
    def __init__(self, path):
        super().__init__(f"missing dictionary: {path}")
        self.path = str(path)


def read_keywords(path) -> List[str]:
    """
    Read a wordlist and return its keywords: trimmed, lowercased, unique,
    in first-seen order. Blank lines and '#' comments are skipped.
    """
    p = Path(path)
    if not p.exists():
        raise MissingDictionaryError(p)
    keywords: List[str] = []
    seen = set()
    try:
        with p.open("r", encoding="utf-8", errors="ignore") as f:
            for line in f:
                s = line.strip()
                if not s or s.startswith("#"):
                    continue
                s = s.lower()
                if s not in seen:
                    seen.add(s)
                    keywords.append(s)
    except OSError as e:
        raise WordlistError(f"cannot read wordlist {p}: {e}") from e
    return keywords


def expand_keywords(keywords: Iterable[str], extensions: Iterable[str]) -> List[str]:
    """Bare keyword first, then one variant per extension; case-insensitive dedupe."""
    out: List[str] = []
    seen = set()
    for kw in keywords:
        for variant in [kw] + [kw + ext for ext in extensions]:
            key = variant.casefold()
            if key not in seen:
                seen.add(key)
                out.append(variant)
    return out


def build_candidates(path, extensions: Optional[List[str]] = None) -> List[str]:
    keywords = read_keywords(path)
    exts = normalize_extensions(extensions)
    if not exts:
        return keywords
    return expand_keywords(keywords, exts)
