import sys
import threading
from typing import Optional, TextIO

from colorama import Style

from .classifier import status_color
from .models import ProbeOutcome


def render_progress(current: int, total: int, width: int = 30) -> str:
    # An empty run is a finished run.
    percent = current / total if total > 0 else 1.0
    filled = max(0, min(width, int(percent * width)))
    bar = "[" + "#" * filled + "-" * (width - filled) + "]"
    return f"{bar} {percent * 100:.1f}% ({current}/{total})"


class ConsoleSink:
    """
    Single writer for the terminal. Result lines and the progress bar share
    one cursor, so every write goes through the same lock. A result line
    first wipes the bar, which is then redrawn underneath it.
    """

    def __init__(self, stream: Optional[TextIO] = None, color: bool = True, bar_width: int = 30):
        self.stream = stream if stream is not None else sys.stdout
        self.color = color
        self.bar_width = bar_width
        self._lock = threading.Lock()
        self._bar = ""
        self._drawn = 0

    def _clear(self):
        if self._drawn:
            self.stream.write("\r" + " " * self._drawn + "\r")
            self._drawn = 0

    def _draw(self):
        if self._bar:
            self.stream.write("\r" + self._bar)
            self._drawn = len(self._bar)

    def progress(self, current: int, total: int) -> None:
        line = render_progress(current, total, self.bar_width)
        with self._lock:
            # pad over leftovers of a longer previous bar
            self.stream.write("\r" + line.ljust(self._drawn))
            self._bar = line
            self._drawn = max(len(line), self._drawn)
            self.stream.flush()

    def result(self, outcome: ProbeOutcome) -> None:
        status = f"Status: {outcome.status}"
        color = status_color(outcome.status) if self.color else ""
        if color:
            status = color + status + Style.RESET_ALL
        self._write_line(f"{outcome.candidate:<20} {status}")

    def message(self, text: str) -> None:
        self._write_line(text)

    def _write_line(self, text: str):
        with self._lock:
            self._clear()
            self.stream.write(text + "\n")
            self._draw()
            self.stream.flush()

    def close(self) -> None:
        with self._lock:
            if self._drawn:
                self.stream.write("\n")
                self._drawn = 0
            self._bar = ""
            self.stream.flush()
