import threading
from pathlib import Path
from typing import List

from .models import ProbeOutcome, RunResult


class ResultAggregator:
    """Append-only, lock-protected store of reportable outcomes."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: List[ProbeOutcome] = []
        self._final = None

    def add(self, outcome: ProbeOutcome) -> None:
        if not outcome.reportable:
            raise ValueError(f"not a reportable outcome: {outcome.candidate}")
        with self._lock:
            if self._final is not None:
                raise RuntimeError("aggregator already finalized")
            self._items.append(outcome)

    def outcomes(self) -> List[ProbeOutcome]:
        with self._lock:
            return list(self._items)

    def lines(self) -> List[str]:
        return [o.line() for o in self.outcomes()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def finalize(self, processed: int, total: int, elapsed: float, cancelled: bool = False) -> RunResult:
        with self._lock:
            if self._final is not None:
                raise RuntimeError("aggregator already finalized")
            self._final = RunResult(
                outcomes=list(self._items),
                processed=processed,
                total=total,
                elapsed=elapsed,
                cancelled=cancelled,
            )
            return self._final


def write_report(path, result: RunResult) -> Path:
    """Overwrite `path` with one result line per reportable outcome."""
    p = Path(path)
    with p.open("w", encoding="utf-8") as f:
        for line in result.lines():
            f.write(line + "\n")
    return p
