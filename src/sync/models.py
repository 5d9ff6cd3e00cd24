"""Data models for the sync engine.

All models use dataclasses and enums, following the conventions of the
CLI models. The SyncPrompter protocol describes the decisions the engine
delegates to whoever drives it (the CLI, or a test double).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from src.models.article import Article


class SyncMode(Enum):
    """Operating mode of the engine."""

    ONLINE = "online"
    OFFLINE = "offline"


class ReconnectChoice(Enum):
    """What to do with local changes when going from Offline to Online."""

    PUSH = "push"  # Upload local changes to the server
    DISCARD = "discard"  # Drop local changes and load server state
    SHOW_DIFF = "show_diff"  # Review differences, then push or cancel
    CANCEL = "cancel"  # Stay offline


class ConflictChoice(Enum):
    """How to resolve conflicts found while saving."""

    OVERWRITE = "overwrite"  # Force-save local versions
    ACCEPT_SERVER = "accept_server"  # Replace local versions with server versions
    CANCEL = "cancel"  # Leave everything as it is


class SyncStatus(Enum):
    """Outcome category of an engine operation."""

    SUCCESS = "success"
    NO_CHANGES = "no_changes"
    CANCELLED = "cancelled"
    FAILED = "failed"
    UNREACHABLE = "unreachable"


@dataclass
class SyncResult:
    """Result of an engine operation, for display to the user.

    Attributes:
        status: Outcome category
        message: One-line human-readable summary
        errors: Error details, server error bodies verbatim
        pushed_count: Records written to the server
        created_count: Records created on the server
        pulled_count: Records loaded from the server
        conflict_count: Conflicts found
        details: Extra lines (diff descriptions, skipped items)

    Example:
        >>> result = SyncResult(SyncStatus.NO_CHANGES, "No changes to save")
        >>> result.ok
        True
    """
    status: SyncStatus
    message: str = ""
    errors: List[str] = field(default_factory=list)
    pushed_count: int = 0
    created_count: int = 0
    pulled_count: int = 0
    conflict_count: int = 0
    details: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in (SyncStatus.SUCCESS, SyncStatus.NO_CHANGES)


@dataclass
class ConflictScan:
    """Result of a conflict scan.

    Attributes:
        conflicts: Server versions of records whose timestamp changed
        errors: (article_id, message) for records that could not be checked;
            these are treated as "no conflict detected"
    """
    conflicts: List[Article] = field(default_factory=list)
    errors: List[Tuple[int, str]] = field(default_factory=list)


@dataclass
class FieldDifference:
    """One differing field between a server and a local article version."""
    field_name: str
    server_value: object
    local_value: object


@dataclass
class SessionState:
    """Engine state persisted between CLI invocations.

    Attributes:
        mode: "online" or "offline"
        dirty_ids: Ids of records changed since last save/sync
        original_timestamps: Id to last confirmed server timestamp
        last_synced: ISO 8601 timestamp of last successful server sync
    """
    mode: str = SyncMode.ONLINE.value
    dirty_ids: List[int] = field(default_factory=list)
    original_timestamps: Dict[int, str] = field(default_factory=dict)
    last_synced: Optional[str] = None


class SyncPrompter(Protocol):
    """Decisions the engine asks the user to make."""

    def choose_reconnect_action(self, changed_count: int, pending_count: int) -> ReconnectChoice:
        ...

    def review_differences(self, descriptions: List[str]) -> bool:
        """Show differences; return True to push, False to cancel."""
        ...

    def choose_conflict_resolution(self, descriptions: List[str]) -> ConflictChoice:
        ...

    def confirm_delete(self, article: Article) -> bool:
        ...
