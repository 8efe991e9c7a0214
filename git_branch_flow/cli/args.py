"""Command-line argument parsing for git-branch-flow."""

import argparse
from typing import Optional, Sequence

from git_branch_flow.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per workflow step."""
    parser = argparse.ArgumentParser(
        prog="git-branch-flow",
        description="Fork-based dev/pr branch workflow for GitHub repositories",
        epilog="Setup: requires git and an authenticated GitHub CLI ('gh auth login'). "
        "Retry behaviour: BRANCH_FLOW_MAX_RETRIES, BRANCH_FLOW_RETRY_DELAY_MS, "
        "BRANCH_FLOW_MAX_RETRY_DELAY_MS, GH_TIMEOUT_MS",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show each git/gh command")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--force", action="store_true", help="Skip confirmations")
    parser.add_argument("--version", action="version", version=f"git-branch-flow {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    dev = subparsers.add_parser(
        "dev",
        help="Create a dev branch",
        description="Create a dev branch from words, a task URL, a Jira URL or a GitHub issue URL",
    )
    dev.add_argument("words", nargs="*", help="Branch description or tracker link")
    dev.add_argument(
        "--no-fork",
        action="store_true",
        help="Allow a dev branch in a repository that is not a fork",
    )

    pr = subparsers.add_parser("pr", help="Squash the dev branch into a pr branch and open a pull request")
    pr.add_argument("--draft", action="store_true", help="Open the pull request as a draft")

    subparsers.add_parser(
        "download", aliases=["d"], help="Fetch and fast-forward main and the current branch"
    )

    upload = subparsers.add_parser(
        "upload", aliases=["u"], help="Commit local changes and push the branch with its notes"
    )
    upload.add_argument("-m", "--message", nargs="+", default=[], help="Commit message")

    subparsers.add_parser("fork", help="Fork origin and make the original repository upstream")
    subparsers.add_parser(
        "cleanup", help="Delete branches with merged pull requests or deleted on origin"
    )
    subparsers.add_parser("hook", help="Install or refresh the large-commit pre-commit hook")

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    args = build_parser().parse_args(argv)
    # Normalize aliases to their full command names
    args.command = {"d": "download", "u": "upload"}.get(args.command, args.command)
    return args
