"""Tests for the command-line interface"""
from unittest.mock import patch

import pytest

from git_branch_flow.cli import main, parse_args
from git_branch_flow.exceptions import DivergenceError, UserInputError
from git_branch_flow.models.branch import SyncState


class TestParseArgs:
    """Test argument parsing."""

    def test_dev_words(self):
        args = parse_args(["dev", "add", "login", "page", "--no-fork"])
        assert args.command == "dev"
        assert args.words == ["add", "login", "page"]
        assert args.no_fork is True

    @pytest.mark.parametrize("argv,command", [(["d"], "download"), (["u"], "upload")])
    def test_aliases(self, argv, command):
        assert parse_args(argv).command == command

    def test_upload_message(self):
        args = parse_args(["-v", "upload", "-m", "fix", "typo"])
        assert args.message == ["fix", "typo"]
        assert args.verbose is True

    def test_pr_draft(self):
        assert parse_args(["--force", "pr", "--draft"]).draft is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


@pytest.fixture
def flow_class():
    with patch("git_branch_flow.cli.main.BranchFlow") as flow_class, \
            patch("git_branch_flow.cli.main.setup_logging"):
        yield flow_class


class TestMain:
    """Test dispatch and error reporting of main()."""

    def test_dispatches_dev(self, flow_class):
        assert main(["--force", "dev", "add", "login"]) == 0

        config = flow_class.call_args.args[1]
        assert config.force is True
        flow = flow_class.return_value
        flow.dev.assert_called_once_with(["add", "login"])
        flow.close.assert_called_once()

    def test_dispatches_upload(self, flow_class):
        assert main(["u", "-m", "wip", "again"]) == 0
        flow_class.return_value.upload.assert_called_once_with(["wip", "again"])

    def test_no_fork_reaches_config(self, flow_class):
        main(["dev", "--no-fork", "x"])
        assert flow_class.call_args.args[1].no_fork is True

    def test_error_returns_one(self, flow_class, capsys):
        flow_class.return_value.pr.side_effect = UserInputError("you must be on a dev or pr branch")

        assert main(["pr"]) == 1
        assert "you must be on a dev or pr branch" in capsys.readouterr().out
        flow_class.return_value.close.assert_called_once()

    def test_divergence_prints_remediation(self, flow_class, capsys):
        flow_class.return_value.download.side_effect = DivergenceError(
            "merging origin/x into x produced conflicts",
            state=SyncState.BOTH_CHANGED_CONFLICT,
            remediation="git merge --abort",
        )

        assert main(["download"]) == 1
        out = capsys.readouterr().out
        assert "produced conflicts" in out
        assert "git merge --abort" in out

    def test_keyboard_interrupt(self, flow_class, capsys):
        flow_class.return_value.cleanup.side_effect = KeyboardInterrupt

        assert main(["cleanup"]) == 1
        assert "cancelled" in capsys.readouterr().out
