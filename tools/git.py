"""Git subprocess invoker.

Runs ``git blame`` and ``git show`` and hands back the first line of stdout.
Every failure mode (non-zero exit, empty output, missing binary, timeout)
collapses into an empty string; nothing is raised to the caller.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Protocol

import structlog

from tools.attribution import SHOW_FORMAT

logger = structlog.get_logger(__name__)


class GitInvoker(Protocol):
    """Protocol for blame/show invokers.

    Implementations must return ``""`` for "no data" and never raise.
    """

    def blame_line(self, file_path: str, line: int) -> str:
        """Return the first line of ``git blame -c -L line,line file``."""

    def show_commit(self, commit_hash: str, *, cwd: str | None = None) -> str:
        """Return the first line of ``git show hash --format=...``."""


def working_dir_for(file_path: str) -> str | None:
    """Return the parent directory of ``file_path`` if it exists."""
    parent = Path(os.path.abspath(file_path)).parent
    try:
        if parent.is_dir():
            return str(parent)
    except OSError:
        pass
    return None


def _first_line(text: str) -> str:
    for line in text.splitlines():
        return line
    return ""


class GitRunner:
    """Subprocess-backed ``GitInvoker``.

    Args:
        git_binary: Executable name or path of git.
        timeout_s: Optional bound per call; ``None`` blocks until git exits.
    """

    def __init__(self, git_binary: str = "git", timeout_s: float | None = None) -> None:
        self.git_binary = git_binary
        self.timeout_s = timeout_s

    def run(self, *args: str, cwd: str | None = None) -> str:
        """Run ``git *args`` and return the first stdout line, or ``""``."""
        cmd = [self.git_binary, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                encoding="utf-8",
                # Source lines and diffs may carry arbitrary bytes
                errors="replace",
                cwd=cwd,
                timeout=self.timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("git_command_timeout", args=list(args), timeout_s=self.timeout_s)
            return ""
        except OSError as e:
            logger.warning("git_command_unavailable", binary=self.git_binary, error=str(e))
            return ""
        if result.returncode != 0:
            logger.debug(
                "git_command_failed",
                args=list(args),
                returncode=result.returncode,
                stderr=result.stderr.strip(),
            )
            return ""
        return _first_line(result.stdout)

    def blame_line(self, file_path: str, line: int) -> str:
        # Absolute so the path still resolves from the parent-dir cwd
        target = os.path.abspath(file_path)
        return self.run(
            "blame", "-c", "-L", f"{line},{line}", target, cwd=working_dir_for(file_path)
        )

    def show_commit(self, commit_hash: str, *, cwd: str | None = None) -> str:
        return self.run("show", commit_hash, f"--format={SHOW_FORMAT}", cwd=cwd)
