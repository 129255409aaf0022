"""Blocking invocation of a project's own tooling (artisan, rails, git)."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Sequence

DEFAULT_TIMEOUT = 60.0

Runner = Callable[..., str]


class SubprocessFailure(RuntimeError):
    """Raised when an external command is missing, fails, or times out."""

    def __init__(self, args: Sequence[str], reason: str) -> None:
        self.command = tuple(args)
        self.reason = reason
        super().__init__(f"{' '.join(self.command)}: {reason}")


def run_command(
    args: Sequence[str],
    *,
    cwd: Path,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> str:
    """Run ``args`` in ``cwd`` and return stdout.

    Every failure mode surfaces as :class:`SubprocessFailure` so callers only
    need a single ``except`` to select their fallback path.
    """
    try:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise SubprocessFailure(args, f"timed out after {exc.timeout}s") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip().splitlines()
        reason = f"exit status {exc.returncode}"
        if detail:
            reason = f"{reason}: {detail[-1]}"
        raise SubprocessFailure(args, reason) from exc
    except OSError as exc:
        raise SubprocessFailure(args, str(exc)) from exc
    return completed.stdout


__all__ = ["DEFAULT_TIMEOUT", "Runner", "SubprocessFailure", "run_command"]
