from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class Spinner:
    """Thread-based spinner drawn on the current line while a model call is pending."""

    def __init__(self, prefix: str = "", label: str = " Analyzing..."):
        self._prefix = prefix
        self._label = label
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        if self._thread:
            self._thread.join()
        sys.stdout.write("\r" + " " * (len(self._prefix) + 1 + len(self._label)) + "\r")
        sys.stdout.flush()

    def _run(self) -> None:
        i = 0
        try:
            while not self._stop.is_set():
                frame = _SPINNER_FRAMES[i % len(_SPINNER_FRAMES)]
                sys.stdout.write(f"\r{self._prefix}{frame}{self._label}")
                sys.stdout.flush()
                self._stop.wait(0.08)
                i += 1
        except (UnicodeEncodeError, OSError):
            pass  # terminal can't draw the frames; the call still completes


@contextmanager
def spinner(*, prefix: str = "", label: str = " Analyzing...") -> Iterator[Spinner]:
    s = Spinner(prefix=prefix, label=label)
    s.start()
    try:
        yield s
    finally:
        s.stop()
