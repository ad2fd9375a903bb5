"""Pytest configuration and shared fixtures.

Ensures the repository root is importable (so tests can import packages like
`cli`, `core`, `tools` without an editable install), and provides a
throwaway git repository for tests that shell out to the real ``git``.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

# Make repo root importable for tests (avoid requiring `pip install -e .`).
_REPO_ROOT = Path(__file__).resolve().parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

AUTHOR = "Jane Doe"
SUBJECT = "Add app module | first cut"


@dataclass
class GitRepo:
    root: Path
    # Three committed lines followed by one uncommitted line
    tracked: Path

    def commit(self, name: str, data: bytes, message: str) -> Path:
        path = self.root / name
        path.write_bytes(data)
        _run_git(self.root, "add", name)
        _run_git(self.root, "commit", "-q", "-m", message)
        return path


def _run_git(repo: Path, *args: str) -> None:
    env = dict(os.environ)
    env.update(
        {
            "GIT_AUTHOR_NAME": AUTHOR,
            "GIT_AUTHOR_EMAIL": "jane@example.com",
            "GIT_COMMITTER_NAME": AUTHOR,
            "GIT_COMMITTER_EMAIL": "jane@example.com",
            "GIT_CONFIG_NOSYSTEM": "1",
        }
    )
    subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        env=env,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """Create a repository with one commit and one uncommitted line."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    root = tmp_path / "repo"
    root.mkdir()
    _run_git(root, "init", "-q")
    tracked = root / "app.py"
    tracked.write_text("import os\n\nprint(os.getcwd())\n", encoding="utf-8")
    _run_git(root, "add", "app.py")
    _run_git(root, "commit", "-q", "-m", SUBJECT)
    with tracked.open("a", encoding="utf-8") as f:
        f.write("print('pending')\n")
    return GitRepo(root=root, tracked=tracked)
