"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from .errors import DetectionTimeoutError


@dataclass(frozen=True, slots=True)
class Deadline:
    """Wall-clock budget checked between units of detection work."""

    expires_at: float | None = None

    @classmethod
    def after(cls, seconds: float | None) -> Deadline:
        if seconds is None or seconds <= 0:
            return cls()
        return cls(expires_at=time.monotonic() + seconds)

    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def check(self) -> None:
        if self.expired():
            raise DetectionTimeoutError("Detection deadline expired")


NO_DEADLINE = Deadline()
