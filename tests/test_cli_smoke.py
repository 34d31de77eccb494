import subprocess
import sys


def test_cli_help() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "strandbreak", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "StrandBreak" in cp.stdout or "strandbreak" in cp.stdout.lower()
