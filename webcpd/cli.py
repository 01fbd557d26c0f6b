from __future__ import annotations

import os
import sys
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.rule import Rule
from rich.theme import Theme

from . import __version__
from . import ui_messages as ui
from ._cli_args import build_parser
from ._cli_meta import _build_report_meta
from ._cli_paths import _validate_output_path
from ._cli_summary import _print_summary
from ._cli_timer import ResourceTimer
from .contracts import ExitCode
from .deadline import Deadline
from .detector import CloneDetector, ProgressCounter
from .errors import DetectionTimeoutError, StrategyNotFoundError, ValidationError
from .models import DetectionConfig, GroupResult
from .report import to_pmd_xml, to_text_report
from .scanner import compile_regexps, find_files, split_csv
from .tokenizer import Language, language_for_pattern

# Custom theme for Rich
custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "dim": "dim",
    }
)


def _make_console(*, no_color: bool) -> Console:
    return Console(theme=custom_theme, width=100, no_color=no_color)


console = _make_console(no_color=False)


def print_banner() -> None:
    console.print(
        Panel(
            ui.banner_title(__version__),
            border_style="blue",
            padding=(0, 2),
            width=ui.CLI_LAYOUT_WIDTH,
            expand=False,
        )
    )


def _is_debug_enabled(
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> bool:
    args = list(sys.argv[1:] if argv is None else argv)
    debug_from_flag = any(arg == "--debug" for arg in args)
    env = os.environ if environ is None else environ
    debug_from_env = env.get("WEBCPD_DEBUG") == "1"
    return debug_from_flag or debug_from_env


def _contract_exit(message: str) -> NoReturn:
    console.print(ui.fmt_contract_error(message))
    sys.exit(ExitCode.CONTRACT_ERROR)


def _make_executor(processes: int) -> ProcessPoolExecutor | None:
    if processes <= 1:
        return None
    try:
        return ProcessPoolExecutor(max_workers=processes)
    except (OSError, RuntimeError, PermissionError, NotImplementedError) as e:
        console.print(ui.fmt_parallel_fallback(e))
        return None


@contextmanager
def _progress_counter(*, total: int, enabled: bool) -> Iterator[ProgressCounter | None]:
    if not enabled:
        yield None
        return
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Tokenizing {total} files...", total=total)
        yield ProgressCounter(
            lambda completed: progress.update(task, completed=completed)
        )


def _resolve_groups(names: Sequence[str]) -> list[tuple[str, Language]]:
    try:
        return [(pattern, language_for_pattern(pattern)) for pattern in names]
    except StrategyNotFoundError as e:
        _contract_exit(f"[error]{e}[/error]")


def _main_impl() -> None:
    ap = build_parser(__version__)
    args = ap.parse_args()

    global console
    console = _make_console(no_color=args.no_color)

    timer = ResourceTimer()
    timer.start()

    for option, value in (
        ("--min-lines", args.min_lines),
        ("--min-tokens", args.min_tokens),
        ("--processes", args.processes),
    ):
        if value < 1:
            _contract_exit(ui.fmt_invalid_threshold(option=option, value=value))
    if args.timeout is not None and args.timeout <= 0:
        _contract_exit(ui.fmt_invalid_threshold(option="--timeout", value=args.timeout))

    names = split_csv(args.names)
    if not names:
        _contract_exit("[error]--names must list at least one pattern.[/error]")
    groups = _resolve_groups(names)

    try:
        regexps_exclude = compile_regexps(split_csv(args.regexps_exclude))
    except ValidationError as e:
        _contract_exit(f"[error]{e}[/error]")

    pmd_out_path: Path | None = None
    if args.log_pmd:
        pmd_out_path = _validate_output_path(
            args.log_pmd,
            label="PMD-CPD",
            console=console,
            invalid_path_message=ui.fmt_invalid_output_path,
        )

    if not args.quiet:
        print_banner()

    def _discover() -> list[tuple[str, Language, list[str]]]:
        return [
            (
                pattern,
                language,
                find_files(
                    args.values,
                    (pattern,),
                    names_exclude=split_csv(args.names_exclude),
                    regexps_exclude=regexps_exclude,
                    exclude=args.exclude,
                ),
            )
            for pattern, language in groups
        ]

    # Discovery phase
    try:
        if args.quiet:
            group_files = _discover()
        else:
            with console.status(ui.STATUS_DISCOVERING, spinner="dots"):
                group_files = _discover()
    except ValidationError as e:
        _contract_exit(ui.fmt_scan_failed(e))

    files_found = sum(len(files) for _, _, files in group_files)
    if files_found == 0:
        console.print(ui.INFO_NO_FILES)
        return

    config = DetectionConfig(
        min_lines=args.min_lines,
        min_tokens=args.min_tokens,
        fuzzy=args.fuzzy,
    )
    deadline = Deadline.after(args.timeout)

    # Processing phase
    results: list[GroupResult] = []
    executor = _make_executor(args.processes)
    try:
        with _progress_counter(
            total=files_found, enabled=args.progress and not args.quiet
        ) as counter:
            detector = CloneDetector(
                executor=executor, progress=counter, deadline=deadline
            )
            for pattern, language, files in group_files:
                if not args.quiet and counter is None and files:
                    console.print(
                        ui.fmt_scanning_group(group=pattern, count=len(files))
                    )
                result = detector.copy_paste_detection(
                    files, language, config, group=pattern
                )
                if result.parallel_error is not None:
                    console.print(ui.fmt_parallel_fallback(result.parallel_error))
                results.append(result)
    except DetectionTimeoutError:
        console.print(ui.fmt_timeout(args.timeout))
        sys.exit(ExitCode.TIMEOUT)
    finally:
        if executor is not None:
            executor.shutdown(cancel_futures=True)

    failed_files = [f for r in results for f in r.failed_files]
    if failed_files:
        console.print(ui.fmt_failed_files_header(len(failed_files)))
        for failure in failed_files[:10]:
            console.print(f"  • {failure}", markup=False, soft_wrap=True)
        if len(failed_files) > 10:
            console.print(f"  ... and {len(failed_files) - 10} more")

    reports = [r.report for r in results]

    if not args.quiet:
        for report in reports:
            text = to_text_report(report)
            if text:
                console.print("")
                console.print(
                    text.rstrip("\n"), markup=False, highlight=False, soft_wrap=True
                )

    # Outputs
    output_failed = False
    if pmd_out_path:
        out = pmd_out_path
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(
                to_pmd_xml(
                    reports,
                    _build_report_meta(webcpd_version=__version__, config=config),
                ),
                "utf-8",
            )
        except OSError as e:
            console.print(
                ui.fmt_output_error(
                    ui.fmt_report_write_failed(label="PMD-CPD", path=out, error=e)
                )
            )
            output_failed = True
        else:
            if not args.quiet:
                console.print(ui.fmt_path(ui.INFO_PMD_REPORT_SAVED, out))

    if not args.quiet:
        console.print(Rule(style="dim"))

    _print_summary(
        console=console,
        quiet=args.quiet,
        files_found=files_found,
        files_analyzed=sum(r.files_analyzed for r in results),
        files_skipped=len(failed_files),
        reports=reports,
    )

    timer.stop()
    if not args.quiet:
        elapsed, memory = timer.resource_usage()
        console.print(
            "\n" + ui.fmt_resource_usage(time=elapsed, memory=memory), highlight=False
        )

    # Exit Codes
    if output_failed:
        sys.exit(ExitCode.OUTPUT_ERROR)
    if any(report.clones for report in reports):
        sys.exit(ExitCode.CLONES_FOUND)


def main() -> None:
    try:
        _main_impl()
    except SystemExit:
        raise
    except Exception as e:
        console.print(ui.fmt_internal_error(e, debug=_is_debug_enabled()))
        sys.exit(ExitCode.INTERNAL_ERROR)


if __name__ == "__main__":
    main()
