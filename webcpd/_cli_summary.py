"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import ui_messages as ui
from .models import CloneReport


def _summary_value_style(*, label: str, value: int) -> str:
    if value == 0:
        return "dim"
    if label == ui.SUMMARY_LABEL_FILES_SKIPPED:
        return "yellow"
    if label.startswith(ui.SUMMARY_LABEL_CLONES):
        return "bold yellow"
    return "bold"


def _build_summary_rows(
    *,
    files_found: int,
    files_analyzed: int,
    files_skipped: int,
    reports: Sequence[CloneReport],
) -> list[tuple[str, int]]:
    rows = [
        (ui.SUMMARY_LABEL_FILES_FOUND, files_found),
        (ui.SUMMARY_LABEL_FILES_ANALYZED, files_analyzed),
        (ui.SUMMARY_LABEL_FILES_SKIPPED, files_skipped),
    ]
    for report in reports:
        rows.append((f"{ui.SUMMARY_LABEL_CLONES} ({report.group})", len(report.clones)))
    rows.append(
        (
            ui.SUMMARY_LABEL_DUPLICATED_LINES,
            sum(r.duplicated_lines for r in reports),
        )
    )
    return rows


def _build_summary_table(rows: list[tuple[str, int]]) -> Table:
    summary_table = Table(
        title=ui.SUMMARY_TITLE,
        show_header=True,
        width=ui.CLI_LAYOUT_WIDTH,
    )
    summary_table.add_column("Metric")
    summary_table.add_column("Value", justify="right")
    for label, value in rows:
        summary_table.add_row(
            label,
            Text(str(value), style=_summary_value_style(label=label, value=value)),
        )
    return summary_table


def _print_summary(
    *,
    console: Console,
    quiet: bool,
    files_found: int,
    files_analyzed: int,
    files_skipped: int,
    reports: Sequence[CloneReport],
) -> None:
    invariant_ok = files_found == files_analyzed + files_skipped
    rows = _build_summary_rows(
        files_found=files_found,
        files_analyzed=files_analyzed,
        files_skipped=files_skipped,
        reports=reports,
    )

    if quiet:
        console.print(ui.SUMMARY_TITLE)
        console.print(
            ui.fmt_summary_compact_input(
                found=files_found,
                analyzed=files_analyzed,
                skipped=files_skipped,
            )
        )
        console.print(
            ui.fmt_summary_compact_clones({r.group: len(r.clones) for r in reports})
        )
    else:
        console.print(_build_summary_table(rows))

    if not invariant_ok:
        console.print(f"[warning]{ui.WARN_SUMMARY_ACCOUNTING_MISMATCH}[/warning]")
