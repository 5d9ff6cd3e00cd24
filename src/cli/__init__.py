"""Command-line interface for the inventory client.

This package provides the `inventory-sync` CLI tool. Each command restores
the sync engine from the local snapshot and state file, runs one
operation with progress indication and error handling, and persists the
engine state again.
"""

from .config import ConfigLoader, StateManager
from .errors import (
    CLIError,
    ConfigError,
    StateError,
    StateFilesystemError,
)
from .models import ExitCode
from .output import OutputHandler
from .prompts import ConsolePrompter
from .session import Session

__all__ = [
    'ConfigLoader',
    'StateManager',
    'CLIError',
    'ConfigError',
    'StateError',
    'StateFilesystemError',
    'ExitCode',
    'OutputHandler',
    'ConsolePrompter',
    'Session',
]
