"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

from rich.console import Console

from .contracts import ExitCode
from .ui_messages import fmt_contract_error


def _validate_output_path(
    path: str,
    *,
    label: str,
    console: Console,
    invalid_path_message: Callable[..., str],
) -> Path:
    out = Path(path).expanduser()
    try:
        resolved = out.resolve()
    except (OSError, RuntimeError) as e:
        console.print(
            fmt_contract_error(invalid_path_message(label=label, path=out, error=e))
        )
        sys.exit(ExitCode.CONTRACT_ERROR)
    if resolved.is_dir():
        console.print(
            fmt_contract_error(
                invalid_path_message(label=label, path=out, error="is a directory")
            )
        )
        sys.exit(ExitCode.CONTRACT_ERROR)
    return resolved
