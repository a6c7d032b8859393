import subprocess
import sys


def test_cli_help() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "varbench", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "varbench" in cp.stdout.lower()
    assert "evaluate" in cp.stdout
