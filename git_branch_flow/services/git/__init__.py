"""Git-related services for git-branch-flow."""

from .operations import GitOperations
from .notes import NotesService
from .topology import TopologyResolver
from .sync import SyncEngine
from .hooks import HookService

__all__ = [
    "GitOperations",
    "NotesService",
    "TopologyResolver",
    "SyncEngine",
    "HookService",
]
