"""Git notes attached to the commits of a branch"""

from typing import Iterable, List, Optional, Tuple

from git_branch_flow.constants import ISSUE_PR_TITLE_PREFIX, NO_NOTE_PHRASE
from git_branch_flow.exceptions import NotesNotFoundError
from git_branch_flow.logging_config import get_logger
from git_branch_flow.services.git.operations import GitOperations, command_failure

logger = get_logger(__name__)


class NotesService:
    """Reads and appends the git notes that carry branch descriptions and metadata."""

    def __init__(self, ops: GitOperations):
        self.ops = ops

    def append(self, lines: Iterable[str]) -> None:
        """Append each non-blank line as a note on HEAD."""
        for line in lines:
            text = line.strip()
            if text:
                self.ops.check("notes append", "notes", "append", "-m", text)

    def show(self, revision: str) -> Optional[List[str]]:
        """Note lines of one commit, or None if it has no note."""
        result = self.ops.run("notes", "show", revision)
        if not result.ok:
            if NO_NOTE_PHRASE in result.output:
                return None
            raise command_failure("notes show", revision, result)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def branch_notes(self, branch: str, main_branch: str) -> Tuple[List[str], int]:
        """Collect the notes of every commit on a branch that main lacks.

        Args:
            branch: Branch to read
            main_branch: Local main branch name bounding the range

        Returns:
            (note lines newest commit first, number of commits in the range)

        Raises:
            NotesNotFoundError: If the branch has no own commits or no notes
        """
        revisions = self.ops.rev_list(f"{main_branch}..{branch}")
        if not revisions:
            raise NotesNotFoundError(f"no commits found in branch '{branch}'")

        notes: List[str] = []
        for revision in revisions:
            lines = self.show(revision)
            if lines:
                notes.extend(lines)

        if not notes:
            raise NotesNotFoundError(f"no notes found in branch '{branch}'")
        logger.debug(f"{len(notes)} note lines over {len(revisions)} commits on {branch}")
        return notes, len(revisions)


def get_note_and_url(note_lines: Iterable[str]) -> Tuple[str, str]:
    """Split notes into a title and the task URL.

    Text lines are joined with spaces until one carries the issue prefix;
    the last https line becomes the URL.
    """
    note = ""
    url = ""
    for line in note_lines:
        text = line.strip()
        if not text:
            continue
        if "https" in text:
            url = text
            if note:
                break
            continue
        note = f"{note} {text}" if note else text
        if ISSUE_PR_TITLE_PREFIX.lower() in text.lower():
            break
    return note, url


def get_body_from_notes(note_lines: List[str]) -> str:
    """PR body for issue branches: every line after the first except issue links."""
    if len(note_lines) < 2 or ISSUE_PR_TITLE_PREFIX.lower() not in note_lines[0].lower():
        return ""
    body = ""
    for line in note_lines[1:]:
        text = line.strip()
        if "https://" in text and "/issues/" in text:
            continue
        body += text
    return body
