"""Tests for overviewgen.process."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from overviewgen.process import SubprocessFailure, run_command


def test_run_command_returns_stdout(tmp_path: Path) -> None:
    output = run_command([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

    assert output.strip() == "hello"


def test_missing_binary_raises_subprocess_failure(tmp_path: Path) -> None:
    with pytest.raises(SubprocessFailure) as excinfo:
        run_command(["overviewgen-no-such-binary"], cwd=tmp_path)

    assert excinfo.value.command == ("overviewgen-no-such-binary",)


def test_non_zero_exit_reports_last_stderr_line(tmp_path: Path) -> None:
    script = "import sys; sys.stderr.write('first\\nboom\\n'); sys.exit(3)"

    with pytest.raises(SubprocessFailure) as excinfo:
        run_command([sys.executable, "-c", script], cwd=tmp_path)

    assert excinfo.value.reason == "exit status 3: boom"


def test_timeout_raises_subprocess_failure(tmp_path: Path) -> None:
    with pytest.raises(SubprocessFailure) as excinfo:
        run_command([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

    assert "timed out" in excinfo.value.reason


def test_undecodable_output_is_replaced(tmp_path: Path) -> None:
    script = "import sys; sys.stdout.buffer.write(b'user.name=Jos\\xe9\\n')"

    output = run_command([sys.executable, "-c", script], cwd=tmp_path)

    assert output == "user.name=Jos\ufffd\n"
