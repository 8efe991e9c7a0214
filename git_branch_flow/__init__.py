"""
git-branch-flow - Fork-based dev/PR branch workflow on top of git and gh
"""

from .__version__ import __version__
from .core import BranchFlow
from .cli.main import main

__all__ = ["BranchFlow", "main", "__version__"]
