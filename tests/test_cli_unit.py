import io
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from rich.console import Console

import webcpd._cli_timer as cli_timer
import webcpd.cli as cli
from webcpd import __version__
from webcpd import ui_messages as ui
from webcpd._cli_args import build_parser
from webcpd._cli_meta import _build_report_meta
from webcpd._cli_paths import _validate_output_path
from webcpd._cli_summary import _print_summary
from webcpd._cli_timer import ResourceTimer, format_duration, format_memory
from webcpd.contracts import DEFAULT_NAMES, FINGERPRINT_VERSION, ExitCode
from webcpd.models import CloneReport, DetectionConfig


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, theme=cli.custom_theme, width=100), buffer


def test_is_debug_enabled() -> None:
    assert cli._is_debug_enabled(argv=["--debug"], environ={})
    assert cli._is_debug_enabled(argv=[], environ={"WEBCPD_DEBUG": "1"})
    assert not cli._is_debug_enabled(argv=["--quiet"], environ={"WEBCPD_DEBUG": "0"})


def test_parser_defaults() -> None:
    args = build_parser(__version__).parse_args([])
    assert args.values == ["."]
    assert args.names == ",".join(DEFAULT_NAMES)
    assert args.min_lines == 5
    assert args.min_tokens == 70
    assert args.processes == 4
    assert args.timeout is None
    assert args.exclude == []
    assert not args.fuzzy
    assert args.log_pmd is None


def test_parser_repeatable_exclude() -> None:
    args = build_parser(__version__).parse_args(
        ["src", "lib", "--exclude", "vendor", "--exclude", "cache", "--timeout", "1.5"]
    )
    assert args.values == ["src", "lib"]
    assert args.exclude == ["vendor", "cache"]
    assert args.timeout == 1.5


def test_help_lists_exit_codes() -> None:
    text = build_parser(__version__).format_help()
    assert "Exit codes" in text
    for code in ExitCode:
        assert f"  - {int(code)} - " in text


def test_format_duration() -> None:
    assert format_duration(0) == "00:00.000"
    assert format_duration(1.2345) == "00:01.234"
    assert format_duration(125.5) == "02:05.500"


def test_format_memory() -> None:
    assert format_memory(None) == "n/a"
    assert format_memory(3 * 1024 * 1024) == "3.00 MB"


def test_peak_memory_without_resource(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_timer, "resource", None)
    assert cli_timer.peak_memory_bytes() is None
    timer = ResourceTimer()
    timer.start()
    timer.stop()
    assert timer.resource_usage()[1] == "n/a"


def test_resource_timer_requires_start() -> None:
    timer = ResourceTimer()
    assert timer.elapsed == 0.0
    with pytest.raises(RuntimeError):
        timer.stop()


def test_resource_timer_elapsed(monkeypatch: pytest.MonkeyPatch) -> None:
    ticks = iter([10.0, 12.5])
    monkeypatch.setattr(
        cli_timer, "time", SimpleNamespace(monotonic=lambda: next(ticks))
    )
    timer = ResourceTimer()
    timer.start()
    assert timer.stop() == 2.5
    assert timer.elapsed == 2.5


def test_print_summary_table() -> None:
    console, buffer = _console()
    reports = [
        CloneReport(group="*.php", language="php"),
        CloneReport(group="*.css", language="css"),
    ]
    _print_summary(
        console=console,
        quiet=False,
        files_found=3,
        files_analyzed=2,
        files_skipped=1,
        reports=reports,
    )
    out = buffer.getvalue()
    assert ui.SUMMARY_TITLE in out
    assert "Files skipped" in out
    assert ui.WARN_SUMMARY_ACCOUNTING_MISMATCH not in out


def test_print_summary_quiet_with_mismatch() -> None:
    console, buffer = _console()
    _print_summary(
        console=console,
        quiet=True,
        files_found=5,
        files_analyzed=2,
        files_skipped=1,
        reports=[],
    )
    out = buffer.getvalue()
    assert "Input: found=5 analyzed=2 skipped=1" in out
    assert "Clones: (none)" in out
    assert ui.WARN_SUMMARY_ACCOUNTING_MISMATCH in out


def test_validate_output_path_accepts_new_file(tmp_path: Path) -> None:
    console, _ = _console()
    target = tmp_path / "out" / "cpd.xml"
    resolved = _validate_output_path(
        str(target),
        label="PMD-CPD",
        console=console,
        invalid_path_message=ui.fmt_invalid_output_path,
    )
    assert resolved == target.resolve()


def test_validate_output_path_rejects_directory(tmp_path: Path) -> None:
    console, buffer = _console()
    with pytest.raises(SystemExit) as exc:
        _validate_output_path(
            str(tmp_path),
            label="PMD-CPD",
            console=console,
            invalid_path_message=ui.fmt_invalid_output_path,
        )
    assert exc.value.code == ExitCode.CONTRACT_ERROR
    assert "CONTRACT ERROR:" in buffer.getvalue()


def test_build_report_meta() -> None:
    meta = _build_report_meta(
        webcpd_version="9.9.9",
        config=DetectionConfig(min_lines=3, min_tokens=40, fuzzy=True),
    )
    assert meta == {
        "generator": "webcpd",
        "generator_version": "9.9.9",
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        "fingerprint_version": FINGERPRINT_VERSION,
        "min_lines": 3,
        "min_tokens": 40,
        "fuzzy": True,
    }


def test_make_executor_single_process() -> None:
    assert cli._make_executor(1) is None


def test_make_executor_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    def _unavailable(max_workers: int) -> object:
        raise NotImplementedError("no sem_open")

    console, buffer = _console()
    monkeypatch.setattr(cli, "console", console)
    monkeypatch.setattr(cli, "ProcessPoolExecutor", _unavailable)
    assert cli._make_executor(4) is None
    assert "falling back to sequential: no sem_open" in buffer.getvalue()


def test_fmt_internal_error_plain() -> None:
    text = ui.fmt_internal_error(ValueError(""))
    assert "Reason: ValueError: <no message>" in text
    assert "DEBUG DETAILS" not in text


def test_fmt_internal_error_debug() -> None:
    try:
        raise KeyError("missing")
    except KeyError as e:
        text = ui.fmt_internal_error(e, debug=True)
    assert "DEBUG DETAILS" in text
    assert f"WebCPD: {__version__}" in text
    assert "KeyError: 'missing'" in text


def test_fmt_summary_compact_clones() -> None:
    assert ui.fmt_summary_compact_clones({}) == "Clones: (none)"
    assert ui.fmt_summary_compact_clones({"*.js": 2, "*.css": 0}) == (
        "Clones: *.js=2 *.css=0"
    )


def test_version_output() -> None:
    assert ui.version_output("1.0.0") == "WebCPD 1.0.0"
