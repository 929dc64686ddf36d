from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_extensions(extensions: Optional[List[str]]) -> List[str]:
    """Strip blanks and make sure every extension starts with a dot."""
    out: List[str] = []
    for ext in extensions or []:
        ext = str(ext).strip()
        if not ext:
            continue
        out.append(ext if ext.startswith(".") else "." + ext)
    return out


class ScanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    wordlist: str
    threads: int = Field(10, ge=1)
    extensions: Optional[List[str]] = None
    timeout: float = Field(10, gt=0)
    verbose: bool = False
    output: Optional[str] = None
    user_agent: str = "Mozilla/5.0"
    follow_redirects: bool = True
    status_codes: Optional[List[int]] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("target URL is required")
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"not an http(s) URL: {v}")
        return v

    @field_validator("wordlist")
    @classmethod
    def _check_wordlist(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("wordlist path is required")
        return v

    @field_validator("extensions")
    @classmethod
    def _norm_extensions(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return normalize_extensions(v) or None


class ProbeState(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Classification(str, Enum):
    IGNORE = "ignore"
    REPORT = "report"
    HIGHLIGHT = "highlight"


class ProbeOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: str
    url: str
    state: ProbeState
    status: Optional[int] = None
    classification: Classification = Classification.IGNORE
    error: Optional[str] = None

    @property
    def reportable(self) -> bool:
        return self.classification is not Classification.IGNORE

    def line(self) -> str:
        return f"{self.candidate} - Status: {self.status}"


class RunResult(BaseModel):
    outcomes: List[ProbeOutcome] = []
    processed: int = 0
    total: int = 0
    elapsed: float = 0.0
    cancelled: bool = False

    def lines(self) -> List[str]:
        return [o.line() for o in self.outcomes]
