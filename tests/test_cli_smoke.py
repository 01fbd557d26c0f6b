import os
import subprocess
import sys
from collections.abc import Iterable
from pathlib import Path

from tests._source_fixtures import write_php_pair


def run_cli(
    args: Iterable[str], cwd: Path | None = None
) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    root_dir = Path(__file__).parents[1]
    env["PYTHONPATH"] = str(root_dir) + os.pathsep + env.get("PYTHONPATH", "")

    # Try to find venv python
    venv_python = root_dir / ".venv" / "bin" / "python"
    executable = str(venv_python) if venv_python.exists() else sys.executable

    return subprocess.run(
        [executable, "-m", "webcpd.cli", *args],
        capture_output=True,
        text=True,
        cwd=cwd,
        env=env,
    )


def test_cli_runs_without_clones(tmp_path: Path) -> None:
    (tmp_path / "a.php").write_text("<?php\necho 'hello';\n", "utf-8")
    (tmp_path / "b.js").write_text("console.log(1);\n", "utf-8")

    result = run_cli([str(tmp_path)], cwd=tmp_path)

    assert result.returncode == 0
    assert "Analysis Summary" in result.stdout
    assert "Found" not in result.stdout


def test_cli_finds_clones_with_process_pool(tmp_path: Path) -> None:
    write_php_pair(tmp_path)

    result = run_cli([".", "--names", "*.php", "--processes", "2"], cwd=tmp_path)

    assert result.returncode == 1
    assert "Found 1 clones with 10 duplicated lines in 2 files (*.php):" in result.stdout


def test_cli_pmd_report(tmp_path: Path) -> None:
    write_php_pair(tmp_path / "src")
    report = tmp_path / "cpd.xml"

    result = run_cli(
        [
            str(tmp_path / "src"),
            "--names",
            "*.php",
            "--processes",
            "1",
            "--log-pmd",
            str(report),
            "--quiet",
        ]
    )

    assert result.returncode == 1
    content = report.read_text("utf-8")
    assert content.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert '<duplication lines="10" tokens="80">' in content


def test_cli_contract_error_exit_code(tmp_path: Path) -> None:
    result = run_cli([str(tmp_path), "--names", "*.py"])
    assert result.returncode == 2
    assert "CONTRACT ERROR" in result.stdout
