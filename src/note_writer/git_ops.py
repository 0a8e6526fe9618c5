"""Local git commands used by the workflows."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class GitRepository:
    """Runs `git` in a working tree; any non-zero exit raises CalledProcessError."""

    def __init__(self, cwd: Optional[Path] = None, runner: Callable = subprocess.run):
        self.cwd = cwd
        self.runner = runner

    def _run(self, *args: str) -> None:
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        self.runner(cmd, cwd=self.cwd, check=True)

    def create_branch(self, branch: str) -> None:
        self._run("checkout", "-b", branch)

    def fetch(self, branch: str, remote: str = "origin") -> None:
        self._run("fetch", remote, branch)

    def checkout(self, branch: str) -> None:
        self._run("checkout", branch)

    def add(self, *paths: Path | str) -> None:
        self._run("add", *(str(p) for p in paths))

    def commit(self, message: str) -> None:
        self._run("commit", "-m", message)

    def push(self, branch: Optional[str] = None, remote: str = "origin") -> None:
        if branch:
            self._run("push", "-u", remote, branch)
        else:
            self._run("push")
