"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import sys
from typing import TypedDict

from .contracts import FINGERPRINT_VERSION
from .models import DetectionConfig


def _current_python_version() -> str:
    return f"{sys.version_info.major}.{sys.version_info.minor}"


class ReportMeta(TypedDict):
    """
    Generator metadata written as attributes of the PMD-CPD root element.

    Key semantics:
    - fingerprint_version: version of the token-window hashing scheme
    - min_lines/min_tokens/fuzzy: the thresholds the report was produced with
    """

    generator: str
    generator_version: str
    python_version: str
    fingerprint_version: str
    min_lines: int
    min_tokens: int
    fuzzy: bool


def _build_report_meta(
    *,
    webcpd_version: str,
    config: DetectionConfig,
) -> ReportMeta:
    return {
        "generator": "webcpd",
        "generator_version": webcpd_version,
        "python_version": _current_python_version(),
        "fingerprint_version": FINGERPRINT_VERSION,
        "min_lines": config.min_lines,
        "min_tokens": config.min_tokens,
        "fuzzy": config.fuzzy,
    }
