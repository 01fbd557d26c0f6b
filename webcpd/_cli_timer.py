"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import sys
import time

try:
    import resource
except ImportError:  # Windows
    resource = None  # type: ignore[assignment]


def format_duration(seconds: float) -> str:
    millis = int(round(seconds * 1000))
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f"{minutes:02d}:{secs:02d}.{millis:03d}"


def format_memory(num_bytes: int | None) -> str:
    if num_bytes is None:
        return "n/a"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def peak_memory_bytes() -> int | None:
    if resource is None:
        return None
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    return peak if sys.platform == "darwin" else peak * 1024


class ResourceTimer:
    """Wall-clock timer started and stopped explicitly around one run."""

    __slots__ = ("_started_at", "_stopped_at")

    def __init__(self) -> None:
        self._started_at: float | None = None
        self._stopped_at: float | None = None

    def start(self) -> None:
        self._started_at = time.monotonic()
        self._stopped_at = None

    def stop(self) -> float:
        if self._started_at is None:
            raise RuntimeError("ResourceTimer.stop() called before start()")
        self._stopped_at = time.monotonic()
        return self.elapsed

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._stopped_at if self._stopped_at is not None else time.monotonic()
        return end - self._started_at

    def resource_usage(self) -> tuple[str, str]:
        return format_duration(self.elapsed), format_memory(peak_memory_bytes())
