"""Data models for CLI operations."""

from enum import IntEnum

from src.sync.models import SyncResult, SyncStatus


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (config issues, failed writes)
    - CONFLICTS (2): Conflicts left unresolved or operation cancelled
    - NETWORK_ERROR (4): Inventory API unreachable
    - VALIDATION_ERROR (5): Invalid article data or field value

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICTS = 2
    NETWORK_ERROR = 4
    VALIDATION_ERROR = 5

    @classmethod
    def from_result(cls, result: SyncResult) -> "ExitCode":
        """Map an engine result to the exit code a command returns."""
        if result.ok:
            return cls.SUCCESS
        if result.status == SyncStatus.CANCELLED:
            return cls.CONFLICTS
        if result.status == SyncStatus.UNREACHABLE:
            return cls.NETWORK_ERROR
        return cls.GENERAL_ERROR
