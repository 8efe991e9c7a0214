"""Tests for branch notes"""
import pytest

from git_branch_flow.exceptions import NotesNotFoundError
from git_branch_flow.services.git import GitOperations, NotesService
from git_branch_flow.services.git.notes import get_body_from_notes, get_note_and_url
from git_branch_flow.services.runner import CommandRunner

from conftest import commit_file


@pytest.fixture
def ops(cloned_repo, no_wait_retry):
    return GitOperations(CommandRunner(cloned_repo.working_dir), no_wait_retry)


@pytest.fixture
def notes(ops):
    return NotesService(ops)


class TestNotesService:
    """Test reading and writing notes in a real repository."""

    def test_append_and_read_back(self, ops, notes):
        ops.create_branch("notes-dev", "main")
        ops.commit_allow_empty("Commit for keeping notes in branch")
        notes.append(["add login page", "  ", " second line "])

        lines, count = notes.branch_notes("notes-dev", "main")
        assert lines == ["add login page", "second line"]
        assert count == 1

    def test_notes_of_newest_commit_first(self, ops, notes, cloned_repo):
        ops.create_branch("two-notes-dev", "main")
        ops.commit_allow_empty("anchor")
        notes.append(["older"])
        commit_file(cloned_repo, "x.txt", "x", "work")
        notes.append(["newer"])

        lines, count = notes.branch_notes("two-notes-dev", "main")
        assert lines == ["newer", "older"]
        assert count == 2

    def test_show_without_note(self, notes):
        assert notes.show("HEAD") is None

    def test_branch_without_commits(self, ops, notes):
        ops.create_branch("empty-dev", "main")
        with pytest.raises(NotesNotFoundError, match="no commits"):
            notes.branch_notes("empty-dev", "main")

    def test_branch_without_notes(self, ops, notes, cloned_repo):
        ops.create_branch("plain-dev", "main")
        commit_file(cloned_repo, "x.txt", "x", "work")
        with pytest.raises(NotesNotFoundError, match="no notes"):
            notes.branch_notes("plain-dev", "main")

    def test_notes_travel_through_origin(self, ops, notes, second_clone, no_wait_retry):
        ops.create_branch("shared-dev", "main")
        ops.commit_allow_empty("anchor")
        notes.append(["shared note"])
        ops.push_notes()
        ops.push_branch("shared-dev")

        other = GitOperations(CommandRunner(second_clone.working_dir), no_wait_retry)
        other.fetch()
        other.fetch_notes()
        other.checkout("shared-dev")
        lines, _ = NotesService(other).branch_notes("shared-dev", "main")
        assert lines == ["shared note"]


class TestNoteText:
    """Test deriving pull request text from notes."""

    def test_get_note_and_url(self):
        note, url = get_note_and_url(["fix", "login", "https://tracker.example.com/T-1"])
        assert note == "fix login"
        assert url == "https://tracker.example.com/T-1"

    @pytest.mark.parametrize("lines", [
        ["Permanent support for X", "https://tracker/#!123"],
        ["https://tracker/#!123", "Permanent support for X"],
    ])
    def test_get_note_and_url_in_any_order(self, lines):
        assert get_note_and_url(lines) == ("Permanent support for X", "https://tracker/#!123")

    def test_get_note_stops_at_issue_prefix(self):
        note, url = get_note_and_url(["Resolves issue 'Crash' ", "Resolves #12 Crash"])
        assert note == "Resolves issue 'Crash'"
        assert url == ""

    def test_body_for_issue_branch(self):
        lines = [
            "Resolves issue 'Crash' ",
            "Resolves #12 Crash",
            "https://github.com/acme/widgets/issues/12",
        ]
        assert get_body_from_notes(lines) == "Resolves #12 Crash"

    def test_no_body_for_custom_branch(self):
        assert get_body_from_notes(["add login page", "more"]) == ""
        assert get_body_from_notes(["Resolves issue 'Crash'"]) == ""
