"""Sync engine: change tracking, conflict detection and offline work.

This package keeps a working collection of articles consistent with the
inventory API while allowing edits to continue offline.
"""

from .change_tracker import ChangeTracker
from .conflict_detector import ConflictDetector
from .diff_reporter import DiffReporter
from .errors import (
    ArticleValidationError,
    EngineError,
    InvalidFieldError,
    UnknownArticleError,
)
from .models import (
    ConflictChoice,
    ConflictScan,
    FieldDifference,
    ReconnectChoice,
    SessionState,
    SyncMode,
    SyncPrompter,
    SyncResult,
    SyncStatus,
)
from .snapshot_store import LocalSnapshotStore

__all__ = [
    'ChangeTracker',
    'ConflictDetector',
    'DiffReporter',
    'LocalSnapshotStore',
    'ArticleValidationError',
    'EngineError',
    'InvalidFieldError',
    'UnknownArticleError',
    'ConflictChoice',
    'ConflictScan',
    'FieldDifference',
    'ReconnectChoice',
    'SessionState',
    'SyncMode',
    'SyncPrompter',
    'SyncResult',
    'SyncStatus',
]
