"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final

PMD_REPORT_SCHEMA_VERSION: Final = "1.0"
FINGERPRINT_VERSION: Final = "1"

DEFAULT_NAMES: Final = ("*.php", "*.twig", "*.js", "*.css", "*.scss")
DEFAULT_MIN_LINES: Final = 5
DEFAULT_MIN_TOKENS: Final = 70


class ExitCode(IntEnum):
    SUCCESS = 0
    CLONES_FOUND = 1
    CONTRACT_ERROR = 2
    OUTPUT_ERROR = 3
    TIMEOUT = 4
    INTERNAL_ERROR = 5


EXIT_CODE_DESCRIPTIONS: Final[tuple[tuple[ExitCode, str], ...]] = (
    (ExitCode.SUCCESS, "success, no clones found"),
    (ExitCode.CLONES_FOUND, "clones found in at least one language group"),
    (
        ExitCode.CONTRACT_ERROR,
        (
            "contract error (invalid arguments, no tokenizer strategy for a "
            "name pattern, invalid paths)"
        ),
    ),
    (ExitCode.OUTPUT_ERROR, "output error (report file could not be written)"),
    (ExitCode.TIMEOUT, "timeout (--timeout budget exhausted)"),
    (
        ExitCode.INTERNAL_ERROR,
        "internal error (unexpected exception; please report)",
    ),
)


def cli_help_epilog() -> str:
    lines = ["Exit codes"]
    for code, description in EXIT_CODE_DESCRIPTIONS:
        lines.append(f"  - {int(code)} - {description}")
    return "\n".join(lines)
