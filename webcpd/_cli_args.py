"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import argparse
from typing import cast

from . import ui_messages as ui
from .contracts import (
    DEFAULT_MIN_LINES,
    DEFAULT_MIN_TOKENS,
    DEFAULT_NAMES,
    cli_help_epilog,
)


class _HelpFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter
):
    def _get_help_string(self, action: argparse.Action) -> str:
        if action.dest in {"exclude", "log_pmd", "timeout"}:
            return action.help or ""
        return cast(str, super()._get_help_string(action))


def build_parser(version: str) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="webcpd",
        description="Token-based copy/paste detector for PHP, Twig, JS and CSS.",
        formatter_class=_HelpFormatter,
        epilog=cli_help_epilog(),
    )
    ap.add_argument(
        "--version",
        action="version",
        version=ui.version_output(version),
        help=ui.HELP_VERSION,
    )

    core_group = ap.add_argument_group("Target")
    core_group.add_argument(
        "values",
        nargs="*",
        default=["."],
        help=ui.HELP_VALUES,
    )
    core_group.add_argument(
        "--names",
        default=",".join(DEFAULT_NAMES),
        help=ui.HELP_NAMES,
    )
    core_group.add_argument(
        "--names-exclude",
        default="",
        help=ui.HELP_NAMES_EXCLUDE,
    )
    core_group.add_argument(
        "--regexps-exclude",
        default="",
        help=ui.HELP_REGEXPS_EXCLUDE,
    )
    core_group.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="DIR",
        help=ui.HELP_EXCLUDE,
    )

    tune_group = ap.add_argument_group("Analysis Tuning")
    tune_group.add_argument(
        "--min-lines",
        type=int,
        default=DEFAULT_MIN_LINES,
        help=ui.HELP_MIN_LINES,
    )
    tune_group.add_argument(
        "--min-tokens",
        type=int,
        default=DEFAULT_MIN_TOKENS,
        help=ui.HELP_MIN_TOKENS,
    )
    tune_group.add_argument(
        "--fuzzy",
        action="store_true",
        help=ui.HELP_FUZZY,
    )
    tune_group.add_argument(
        "--processes",
        type=int,
        default=4,
        help=ui.HELP_PROCESSES,
    )
    tune_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help=ui.HELP_TIMEOUT,
    )

    out_group = ap.add_argument_group("Reporting")
    out_group.add_argument(
        "--log-pmd",
        dest="log_pmd",
        metavar="FILE",
        help=ui.HELP_LOG_PMD,
    )
    out_group.add_argument(
        "--progress",
        action="store_true",
        help=ui.HELP_PROGRESS,
    )
    out_group.add_argument(
        "--no-color",
        action="store_true",
        help=ui.HELP_NO_COLOR,
    )
    out_group.add_argument(
        "--quiet",
        action="store_true",
        help=ui.HELP_QUIET,
    )
    out_group.add_argument(
        "--debug",
        action="store_true",
        help=ui.HELP_DEBUG,
    )
    return ap
