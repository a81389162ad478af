"""Thin blocking wrapper over the ``git`` executable for the store checkout."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from rulebridge.constants import DEFAULT_REMOTE_BRANCH, GIT_DIRNAME
from rulebridge.errors import VersionControlError
from rulebridge.utils import ensure_dir

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"


class GitRepository:
    def __init__(
        self,
        path: Path,
        branch: str = DEFAULT_REMOTE_BRANCH,
        work_dir: Optional[Path] = None,
    ) -> None:
        self.path = path
        self.branch = branch
        self._work_dir = work_dir

    @property
    def is_repository(self) -> bool:
        return (self.path / GIT_DIRNAME).exists()

    def init(self) -> None:
        ensure_dir(self.path)
        self._run_git(["init"])

    def clone(self, url: str) -> None:
        """Clone ``url`` into the repository path.

        An existing checkout is re-pointed at ``url`` instead of re-cloned.
        """
        if self.is_repository:
            try:
                self._run_git(["remote", "set-url", REMOTE_NAME, url])
            except VersionControlError:
                self._run_git(["remote", "add", REMOTE_NAME, url])
            return

        ensure_dir(self.path.parent)
        self._run_git(
            ["clone", "--", url, str(self.path)],
            cwd=self._work_dir or self.path.parent,
        )

    def commit(self, message: str) -> bool:
        """Stage everything and commit; returns False when nothing changed."""
        self._run_git(["add", "-A"])
        if not self._run_git(["status", "--porcelain"]):
            logger.debug("nothing to commit in %s", self.path)
            return False
        self._run_git(["commit", "-m", message])
        return True

    def push(self) -> None:
        self._run_git(["push", "--set-upstream", REMOTE_NAME, "HEAD"])

    def pull(self) -> bool:
        """Pull the remote branch; returns False when the remote has none yet."""
        try:
            self._run_git(["fetch", REMOTE_NAME])
        except VersionControlError as exc:
            logger.warning("git fetch failed, continuing without it: %s", exc)

        remote_ref = f"{REMOTE_NAME}/{self.branch}"
        try:
            self._run_git(["rev-parse", "--verify", remote_ref])
        except VersionControlError:
            logger.debug("%s does not exist yet, nothing to pull", remote_ref)
            return False

        self._run_git(["pull", REMOTE_NAME, self.branch])
        return True

    def _run_git(self, args: list[str], cwd: Optional[Path] = None) -> str:
        command = ["git", *args]
        logger.debug("running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                cwd=cwd or self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as exc:
            raise VersionControlError(f"failed to run git: {exc}") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or str(exc)).strip()
            raise VersionControlError(detail) from exc
        return result.stdout.strip()
