import os
import subprocess
import sys
from pathlib import Path


def test_cli_main_guard_runs() -> None:
    root_dir = Path(__file__).parents[1]
    env = os.environ.copy()
    env["PYTHONPATH"] = str(root_dir) + os.pathsep + env.get("PYTHONPATH", "")
    result = subprocess.run(
        [sys.executable, "-m", "webcpd.cli", "--help"],
        capture_output=True,
        text=True,
        env=env,
    )
    assert result.returncode == 0
    assert "--min-tokens" in result.stdout
