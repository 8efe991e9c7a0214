"""Version information for git-branch-flow."""

__version__ = "0.1.0"
