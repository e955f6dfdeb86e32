"""Command implementations exposed by the scopecraft-env CLI."""

from .close import close_environment
from .create import create_environment
from .list import list_environments
from .path import show_path
from .root import show_root

__all__ = [
    "close_environment",
    "create_environment",
    "list_environments",
    "show_path",
    "show_root",
]
