"""Local pre-commit hook that rejects oversized commits"""

import os
import stat
from pathlib import Path

from git_branch_flow.constants import (
    LARGE_FILE_HOOK_CONTENT,
    LARGE_FILE_HOOK_INVOCATION,
    LARGE_FILE_HOOK_NAME,
    PRE_COMMIT_HOOK_NAME,
)
from git_branch_flow.logging_config import get_logger
from git_branch_flow.services.git.operations import GitOperations

logger = get_logger(__name__)

_EXECUTABLE = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class HookService:
    """Installs and refreshes the large-file pre-commit hook of a repository."""

    def __init__(self, ops: GitOperations):
        self.ops = ops

    @property
    def hooks_dir(self) -> Path:
        return self.ops.absolute_git_dir() / "hooks"

    @property
    def pre_commit_path(self) -> Path:
        return self.hooks_dir / PRE_COMMIT_HOOK_NAME

    @property
    def large_file_hook_path(self) -> Path:
        return self.hooks_dir / LARGE_FILE_HOOK_NAME

    def pre_commit_installed(self) -> bool:
        """Whether the pre-commit hook already calls the large-file hook."""
        path = self.pre_commit_path
        return path.is_file() and LARGE_FILE_HOOK_NAME in path.read_text()

    def is_up_to_date(self) -> bool:
        path = self.large_file_hook_path
        return path.is_file() and path.read_bytes() == LARGE_FILE_HOOK_CONTENT.encode("utf-8")

    def install(self) -> None:
        """Create or extend the pre-commit hook and write the large-file hook.

        An existing pre-commit script is kept and the call is appended to it.
        """
        hooks_dir = self.hooks_dir
        hooks_dir.mkdir(parents=True, exist_ok=True)

        self._write_large_file_hook()

        pre_commit = self.pre_commit_path
        if not pre_commit.exists():
            pre_commit.write_text("#!/bin/bash\n")
        if LARGE_FILE_HOOK_NAME not in pre_commit.read_text():
            with pre_commit.open("a") as f:
                f.write(f"\n# Rejects commits with too much data or too many files\n{LARGE_FILE_HOOK_INVOCATION}\n")
        _make_executable(pre_commit)
        logger.info(f"Installed pre-commit hook at {pre_commit}")

    def ensure_up_to_date(self) -> bool:
        """Rewrite the large-file hook if its content is stale.

        Returns:
            True if the hook was rewritten
        """
        if self.is_up_to_date():
            return False
        self._write_large_file_hook()
        logger.info(f"Updated {self.large_file_hook_path}")
        return True

    def _write_large_file_hook(self) -> None:
        path = self.large_file_hook_path
        path.write_bytes(LARGE_FILE_HOOK_CONTENT.encode("utf-8"))
        _make_executable(path)


def _make_executable(path: Path) -> None:
    os.chmod(path, path.stat().st_mode | _EXECUTABLE)
