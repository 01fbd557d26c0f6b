from __future__ import annotations

import platform
import shlex
import sys
import traceback
from pathlib import Path

from . import __version__

BANNER_SUBTITLE = "[italic]Copy/paste detector for web source trees[/italic]"

MARKER_CONTRACT_ERROR = "[error]CONTRACT ERROR:[/error]"
MARKER_OUTPUT_ERROR = "[error]OUTPUT ERROR:[/error]"
MARKER_TIMEOUT = "[error]TIMEOUT:[/error]"
MARKER_INTERNAL_ERROR = "[error]INTERNAL ERROR:[/error]"

HELP_VERSION = "Print the WebCPD version and exit."
HELP_VALUES = "Files and directories to scan."
HELP_NAMES = "Comma-separated file name patterns; each pattern is one language group."
HELP_NAMES_EXCLUDE = "Comma-separated file name patterns to skip."
HELP_REGEXPS_EXCLUDE = (
    "Comma-separated regexps matched against paths relative to the scanned "
    "directory (#...# or /.../ delimiters allowed)."
)
HELP_EXCLUDE = "Directory to skip, relative to each scanned directory (repeatable)."
HELP_MIN_LINES = "Minimum number of identical lines."
HELP_MIN_TOKENS = "Minimum number of identical tokens."
HELP_FUZZY = "Fuzz identifiers (variables and names) before comparing."
HELP_PROCESSES = "Number of parallel worker processes used for tokenizing."
HELP_TIMEOUT = "Abort detection after SECONDS of wall-clock time."
HELP_LOG_PMD = "Write the report in PMD-CPD XML format to FILE."
HELP_PROGRESS = "Show a progress bar while files are tokenized."
HELP_NO_COLOR = "Disable ANSI colors in output."
HELP_QUIET = "Minimize output (still shows warnings and errors)."
HELP_DEBUG = "Print debug details (traceback and environment) on internal errors."

SUMMARY_TITLE = "Analysis Summary"
CLI_LAYOUT_WIDTH = 40
SUMMARY_LABEL_FILES_FOUND = "Files found"
SUMMARY_LABEL_FILES_ANALYZED = "Files analyzed"
SUMMARY_LABEL_FILES_SKIPPED = "Files skipped"
SUMMARY_LABEL_CLONES = "Clones"
SUMMARY_LABEL_DUPLICATED_LINES = "Duplicated lines"
SUMMARY_COMPACT_INPUT = "Input: found={found} analyzed={analyzed} skipped={skipped}"
SUMMARY_COMPACT_CLONES = "Clones: {groups}"
WARN_SUMMARY_ACCOUNTING_MISMATCH = (
    "Summary accounting mismatch: files_found != files_analyzed + files_skipped"
)

STATUS_DISCOVERING = "[bold green]Discovering source files..."

INFO_NO_FILES = "No files found to scan"
INFO_SCANNING_GROUP = "[info]Scanning {count} files for {group}[/info]"
INFO_PMD_REPORT_SAVED = "[info]PMD-CPD report saved:[/info] {path}"
INFO_RESOURCE_USAGE = "Time: {time}, Memory: {memory}"

WARN_PARALLEL_FALLBACK = (
    "[warning]Parallel processing unavailable, "
    "falling back to sequential: {error}[/warning]"
)
WARN_FAILED_FILES_HEADER = "\n[warning]{count} files failed to process:[/warning]"

ERR_INVALID_OUTPUT_PATH = (
    "[error]Invalid {label} output path: {path} ({error}).[/error]"
)
ERR_INVALID_THRESHOLD = "[error]{option} must be positive, got {value}.[/error]"
ERR_SCAN_FAILED = "[error]Scan failed: {error}[/error]"
ERR_REPORT_WRITE_FAILED = (
    "[error]Failed to write {label} report: {path} ({error}).[/error]"
)
ERR_TIMEOUT = "Detection did not finish within {seconds}s."


def version_output(version: str) -> str:
    return f"WebCPD {version}"


def banner_title(version: str) -> str:
    return f"[bold white]WebCPD[/bold white] [dim]v{version}[/dim]\n{BANNER_SUBTITLE}"


def fmt_invalid_output_path(*, label: str, path: Path, error: object) -> str:
    return ERR_INVALID_OUTPUT_PATH.format(label=label, path=path, error=error)


def fmt_invalid_threshold(*, option: str, value: object) -> str:
    return ERR_INVALID_THRESHOLD.format(option=option, value=value)


def fmt_report_write_failed(*, label: str, path: Path, error: object) -> str:
    return ERR_REPORT_WRITE_FAILED.format(label=label, path=path, error=error)


def fmt_scan_failed(error: object) -> str:
    return ERR_SCAN_FAILED.format(error=error)


def fmt_scanning_group(*, group: str, count: int) -> str:
    return INFO_SCANNING_GROUP.format(group=group, count=count)


def fmt_parallel_fallback(error: object) -> str:
    return WARN_PARALLEL_FALLBACK.format(error=error)


def fmt_failed_files_header(count: int) -> str:
    return WARN_FAILED_FILES_HEADER.format(count=count)


def fmt_path(template: str, path: Path) -> str:
    return template.format(path=path)


def fmt_resource_usage(*, time: str, memory: str) -> str:
    return INFO_RESOURCE_USAGE.format(time=time, memory=memory)


def fmt_summary_compact_input(*, found: int, analyzed: int, skipped: int) -> str:
    return SUMMARY_COMPACT_INPUT.format(
        found=found, analyzed=analyzed, skipped=skipped
    )


def fmt_summary_compact_clones(counts: dict[str, int]) -> str:
    groups = " ".join(f"{group}={count}" for group, count in counts.items())
    return SUMMARY_COMPACT_CLONES.format(groups=groups or "(none)")


def fmt_timeout(seconds: float) -> str:
    return f"{MARKER_TIMEOUT}\n{ERR_TIMEOUT.format(seconds=seconds)}"


def fmt_contract_error(message: str) -> str:
    return f"{MARKER_CONTRACT_ERROR}\n{message}"


def fmt_output_error(message: str) -> str:
    return f"{MARKER_OUTPUT_ERROR}\n{message}"


def fmt_internal_error(error: BaseException, *, debug: bool = False) -> str:
    error_name = type(error).__name__
    error_text = str(error).strip() or "<no message>"
    lines = [
        MARKER_INTERNAL_ERROR,
        "Unexpected exception.",
        f"Reason: {error_name}: {error_text}",
        "",
        "Next steps:",
        "- Re-run with --debug to include a traceback.",
        (
            "- If this is reproducible, report it with the command line, "
            "WebCPD version and Python version."
        ),
    ]
    if not debug:
        return "\n".join(lines)

    traceback_lines = traceback.format_exception(
        type(error), error, error.__traceback__
    )
    command_line = shlex.join(sys.argv)
    lines.extend(
        [
            "",
            "DEBUG DETAILS",
            f"Platform: {platform.platform()}",
            f"Python: {sys.version.split()[0]}",
            f"WebCPD: {__version__}",
            f"Command: {command_line}",
            f"CWD: {Path.cwd()}",
            "Traceback:",
            "".join(traceback_lines).rstrip(),
        ]
    )
    return "\n".join(lines)
