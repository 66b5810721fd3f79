"""Subprocess helpers that attach operation context to failures."""

import subprocess
from pathlib import Path

# Keep error messages readable when a tool dumps a lot of stderr.
_MAX_STDERR_CHARS = 500


def run_subprocess_with_context(
    *,
    cmd: list[str],
    operation_context: str,
    cwd: Path | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command and raise RuntimeError with context if it fails.

    No timeout is applied: a hung process hangs the caller, which is expected
    to impose its own process-level limit.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description used in error messages
            (e.g., "clone https://github.com/acme/tasks.git")
        cwd: Working directory for the command

    Returns:
        The completed process with captured text stdout/stderr

    Raises:
        RuntimeError: If the executable cannot be started or exits non-zero
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        msg = f"Failed to {operation_context}: could not run '{cmd[0]}': {e}"
        raise RuntimeError(msg) from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip() or (result.stdout or "").strip()
        msg = f"Failed to {operation_context}: '{' '.join(cmd)}' exited with {result.returncode}"
        if stderr:
            msg = f"{msg}\n{stderr[-_MAX_STDERR_CHARS:]}"
        raise RuntimeError(msg)

    return result
