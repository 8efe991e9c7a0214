"""Command-line interface for git-branch-flow"""

import os
import sys
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from git_branch_flow.cli.args import parse_args
from git_branch_flow.config import Config
from git_branch_flow.core import BranchFlow
from git_branch_flow.exceptions import DivergenceError, GitBranchFlowError
from git_branch_flow.logging_config import setup_logging

console = Console()


def run_command(flow: BranchFlow, args) -> int:
    """Dispatch a parsed command to the workflow."""
    if args.command == "dev":
        flow.dev(args.words)
    elif args.command == "pr":
        flow.pr(draft=args.draft)
    elif args.command == "download":
        flow.download()
    elif args.command == "upload":
        flow.upload(args.message)
    elif args.command == "fork":
        flow.fork()
    elif args.command == "cleanup":
        flow.cleanup()
    elif args.command == "hook":
        flow.install_hook()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

    try:
        config = Config.from_env(
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
            force=parsed_args.force,
            no_fork=getattr(parsed_args, "no_fork", False),
        )

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                if key == "jira_api_token" and value:
                    value = "***"
                console.print(f"  {key}: {escape(str(value))}")

        flow = BranchFlow(os.getcwd(), config)
        try:
            return run_command(flow, parsed_args)
        finally:
            flow.close()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except DivergenceError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if e.remediation and e.remediation not in str(e):
            console.print("[yellow]To recover, run:[/yellow]")
            console.print(escape(e.remediation))
        return 1
    except (GitBranchFlowError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
