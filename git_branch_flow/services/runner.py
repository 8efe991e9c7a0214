"""Subprocess execution for git and gh commands"""

from dataclasses import dataclass
import os
from typing import List, Union

import git
from git.exc import GitCommandNotFound

from git_branch_flow.exceptions import CommandError
from git_branch_flow.logging_config import get_logger

logger = get_logger(__name__)

COMMAND_NOT_FOUND_STATUS = 127


@dataclass
class CommandResult:
    """Outcome of one external command."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr together, for matching diagnostic phrases."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def check(self) -> "CommandResult":
        """Raise CommandError unless the command succeeded."""
        if not self.ok:
            raise CommandError(self.args, self.returncode, self.stdout, self.stderr)
        return self


class CommandRunner:
    """Runs external commands in a repository working directory.

    All git and gh invocations go through `run`, which makes this the one
    seam tests replace.
    """

    def __init__(self, working_dir: Union[str, os.PathLike, None] = None):
        """Initialize the runner.

        Args:
            working_dir: Directory commands run in (defaults to the process cwd)
        """
        self.working_dir = str(working_dir) if working_dir is not None else None
        self._git = git.cmd.Git(self.working_dir)

    def run(self, *args: str) -> CommandResult:
        """Run a command and capture its output without raising on failure.

        Args:
            *args: Program and arguments, e.g. ("git", "status", "--porcelain")

        Returns:
            CommandResult with stripped stdout and stderr
        """
        command = [str(a) for a in args]
        logger.info(f"$ {' '.join(command)}")
        try:
            status, stdout, stderr = self._git.execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
            )
        except GitCommandNotFound as e:
            logger.debug(f"Command not found: {command[0]}: {e}")
            return CommandResult(command, COMMAND_NOT_FOUND_STATUS, "", str(e))

        result = CommandResult(command, status, _text(stdout), _text(stderr))
        if result.stdout:
            logger.debug(f"stdout: {result.stdout}")
        if result.stderr:
            logger.debug(f"stderr: {result.stderr}")
        if not result.ok:
            logger.debug(f"exit status {status}")
        return result

    def check(self, *args: str) -> CommandResult:
        """Run a command and raise CommandError if it fails."""
        return self.run(*args).check()


def _text(value) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return (value or "").strip()

