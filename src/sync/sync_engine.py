"""Sync engine for the inventory client.

The SyncEngine owns the working collection of articles and coordinates
every operation that touches it: loading, Online/Offline transitions,
saving with conflict detection, batch synchronization of offline work,
and local edits. Remote writes report their outcome through SyncResult;
only requests rejected before any work is done raise (see src.sync.errors).

Typical flow:
1. load_articles() fetches from the server or falls back to the snapshot
2. edit_field() / apply_style() / add_article() mutate the collection
3. save_changes() checks for conflicts and pushes dirty records
4. go_offline() / go_online() switch modes; go_online() pushes offline work
"""

import functools
import json
import logging
import re
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from src.inventory_client.api_wrapper import ArticleRepository, is_success
from src.inventory_client.errors import APIUnreachableError, SyncError
from src.models.app_config import AppConfig
from src.models.article import (
    Article,
    CellStyle,
    EDITABLE_FIELDS,
    STYLEABLE_COLUMNS,
    is_pending_creation,
    next_placeholder_id,
)
from src.sync.change_tracker import ChangeTracker
from src.sync.conflict_detector import ConflictDetector
from src.sync.diff_reporter import DiffReporter
from src.sync.errors import (
    ArticleValidationError,
    InvalidFieldError,
    UnknownArticleError,
)
from src.sync.models import (
    ConflictChoice,
    ConflictScan,
    ReconnectChoice,
    SessionState,
    SyncMode,
    SyncPrompter,
    SyncResult,
    SyncStatus,
)

logger = logging.getLogger(__name__)

STYLE_TOGGLES = ("bold", "italic", "underline")

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_update_timestamp(moment: datetime) -> str:
    """Timestamp sent with updates: UTC, truncated to seconds, ``Z`` suffix.

    Example:
        >>> format_update_timestamp(datetime(2025, 3, 7, 16, 22, 25, 123456, tzinfo=timezone.utc))
        '2025-03-07T16:22:25Z'
    """
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_create_timestamp(moment: datetime) -> str:
    """Timestamp sent with creates: UTC, full precision, ``Z`` suffix."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _serialized(method):
    """Run an engine method while holding the engine lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class SyncEngine:
    """Coordinates the working collection with the server and the snapshot.

    Mutating operations hold a single re-entrant lock, so two sync-like
    calls never interleave.

    Example:
        >>> engine = SyncEngine(repository, prompter, AppConfig())
        >>> engine.load_articles()
        >>> engine.edit_field(3, "stock", "5")
        True
        >>> result = engine.save_changes()
        >>> result.status
        <SyncStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        repository: ArticleRepository,
        prompter: SyncPrompter,
        config: AppConfig,
        change_tracker: Optional[ChangeTracker] = None,
        conflict_detector: Optional[ConflictDetector] = None,
        diff_reporter: Optional[DiffReporter] = None,
        clock: Callable[[], datetime] = _utc_now,
        mode: SyncMode = SyncMode.ONLINE,
    ):
        """Initialize the engine.

        Args:
            repository: Remote API plus local snapshot access
            prompter: Asks the user to resolve decisions
            config: Application configuration
            change_tracker: Dirty-set tracker (created if omitted)
            conflict_detector: Conflict detector (created if omitted)
            diff_reporter: Difference formatter (created if omitted)
            clock: Returns the current time (timezone-aware)
            mode: Initial mode
        """
        self.repository = repository
        self.prompter = prompter
        self.config = config
        self.change_tracker = change_tracker or ChangeTracker()
        self.conflict_detector = conflict_detector or ConflictDetector()
        self.diff_reporter = diff_reporter or DiffReporter()
        self.clock = clock
        self.mode = mode
        self.articles: List[Article] = []
        self.original_timestamps: Dict[int, str] = {}
        self.last_synced: Optional[str] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_offline(self) -> bool:
        return self.mode == SyncMode.OFFLINE

    def pending_creations(self) -> List[Article]:
        """Articles created offline and not yet pushed."""
        return [a for a in self.articles if is_pending_creation(a)]

    def has_local_changes(self) -> bool:
        """Whether there is unsynchronized local work."""
        return bool(self.change_tracker) or bool(self.pending_creations())

    def find_article(self, article_id: int) -> Article:
        """Look up an article in the working collection.

        Raises:
            UnknownArticleError: If no article has this id
        """
        for article in self.articles:
            if article.id == article_id:
                return article
        raise UnknownArticleError(article_id)

    # ------------------------------------------------------------------
    # Loading and mode transitions
    # ------------------------------------------------------------------

    @_serialized
    def load_articles(self) -> SyncResult:
        """Load the working collection.

        Online and reachable: fetch from the server. Otherwise fall back to
        the local snapshot and switch to Offline.
        """
        was_offline = self.is_offline
        reachable = False
        if not was_offline:
            reachable = self.repository.check_connection()
            if reachable:
                server_articles = self.repository.fetch_all()
                if server_articles:
                    self._replace_collection(server_articles)
                    self._auto_save()
                    logger.info(f"✓ Loaded {len(server_articles)} article(s) from server")
                    return SyncResult(
                        SyncStatus.SUCCESS,
                        f"Loaded {len(server_articles)} article(s) from server",
                        pulled_count=len(server_articles),
                    )
                logger.warning("⚠ Server returned no articles, trying local snapshot")
            else:
                logger.warning("⚠ Server unreachable, falling back to local snapshot")

        local_articles = self.repository.load_local_snapshot()
        if not local_articles and reachable:
            # Server genuinely empty and nothing local either
            self._replace_collection([])
            return SyncResult(SyncStatus.NO_CHANGES, "No articles on server")

        dirty_ids = self.change_tracker.changed_ids()
        kept_timestamps = {
            article_id: self.original_timestamps[article_id]
            for article_id in dirty_ids
            if article_id in self.original_timestamps
        }
        self.articles = local_articles
        self.original_timestamps = {a.id: a.timestamp for a in local_articles}
        self.original_timestamps.update(kept_timestamps)
        self.change_tracker.rebind(local_articles, dirty_ids)
        self.mode = SyncMode.OFFLINE
        logger.info(f"Loaded {len(local_articles)} article(s) from local snapshot (offline)")
        return SyncResult(
            SyncStatus.SUCCESS if was_offline else SyncStatus.UNREACHABLE,
            f"Working offline with {len(local_articles)} article(s) from local snapshot",
        )

    @_serialized
    def go_offline(self) -> SyncResult:
        """Switch to Offline mode and persist the snapshot."""
        if self.is_offline:
            return SyncResult(SyncStatus.NO_CHANGES, "Already offline")

        self.mode = SyncMode.OFFLINE
        saved = self.repository.save_local_snapshot(self.articles)
        logger.info("Switched to offline mode")
        if not saved:
            return SyncResult(
                SyncStatus.FAILED,
                "Offline mode enabled, but the local snapshot could not be written",
            )
        return SyncResult(SyncStatus.SUCCESS, "Offline mode enabled; changes are kept locally")

    @_serialized
    def go_online(self) -> SyncResult:
        """Switch from Offline to Online, dealing with offline work first."""
        if not self.is_offline:
            return SyncResult(SyncStatus.NO_CHANGES, "Already online")

        if not self.has_local_changes():
            return self._pull_server_state()

        choice = self.prompter.choose_reconnect_action(
            len(self.change_tracker), len(self.pending_creations())
        )
        logger.info(f"Reconnect choice: {choice.value}")

        if choice == ReconnectChoice.PUSH:
            return self.sync_local_changes_to_server()

        if choice == ReconnectChoice.DISCARD:
            return self._pull_server_state()

        if choice == ReconnectChoice.SHOW_DIFF:
            try:
                descriptions = self.compare_with_server()
            except APIUnreachableError as e:
                return SyncResult(SyncStatus.UNREACHABLE, f"{e}; remaining offline")
            if self.prompter.review_differences(descriptions):
                return self.sync_local_changes_to_server()
            return SyncResult(
                SyncStatus.CANCELLED, "Remaining offline", details=descriptions
            )

        return SyncResult(SyncStatus.CANCELLED, "Remaining offline")

    def _pull_server_state(self) -> SyncResult:
        """Replace the collection with server state and go Online."""
        if not self.repository.check_connection():
            logger.warning("⚠ Server unreachable, remaining offline")
            return SyncResult(
                SyncStatus.UNREACHABLE, "Server unreachable; remaining offline"
            )

        server_articles = self.repository.fetch_all()
        if not server_articles:
            # fetch_all() answers [] on any failure; local data stays authoritative
            self.mode = SyncMode.OFFLINE
            logger.warning("⚠ Server returned no articles, remaining offline")
            return SyncResult(
                SyncStatus.UNREACHABLE,
                "Could not load articles from server; remaining offline with local data",
            )

        self._replace_collection(server_articles)
        self.mode = SyncMode.ONLINE
        self._auto_save()
        logger.info(f"✓ Online with {len(server_articles)} article(s) from server")
        return SyncResult(
            SyncStatus.SUCCESS,
            f"Online; loaded {len(server_articles)} article(s) from server",
            pulled_count=len(server_articles),
        )

    # ------------------------------------------------------------------
    # Synchronization
    # ------------------------------------------------------------------

    @_serialized
    def sync_local_changes_to_server(self) -> SyncResult:
        """Push offline work to the server.

        Updates stop at the first failure; creates continue past failures.
        On full success the collection is reloaded from the server and the
        engine goes Online. Otherwise it stays Offline with the failed and
        unattempted records still dirty or pending.
        """
        if not self.repository.check_connection():
            self.mode = SyncMode.OFFLINE
            logger.warning("⚠ Server unreachable, synchronization aborted")
            return SyncResult(
                SyncStatus.UNREACHABLE, "Server unreachable; remaining offline"
            )

        existing = [
            a for a in self.change_tracker.changed_articles()
            if not is_pending_creation(a)
        ]
        new = self.pending_creations()
        logger.info(
            f"Synchronizing {len(existing)} changed and {len(new)} new article(s)"
        )

        result = SyncResult(SyncStatus.SUCCESS)
        updates_ok = self._push_updates(existing, result)
        creates_ok = self._push_creates(new, result)

        if updates_ok and creates_ok:
            server_articles = self.repository.fetch_all()
            if not server_articles:
                self.mode = SyncMode.OFFLINE
                self._auto_save()
                result.status = SyncStatus.UNREACHABLE
                result.message = (
                    f"Synchronized {result.pushed_count} update(s) and "
                    f"{result.created_count} new article(s), but the server "
                    f"returned no articles; remaining offline"
                )
                logger.warning(f"⚠ {result.message}")
                return result

            self._replace_collection(server_articles)
            self.mode = SyncMode.ONLINE
            self._auto_save()
            result.pulled_count = len(server_articles)
            result.message = (
                f"Synchronized {result.pushed_count} update(s) and "
                f"{result.created_count} new article(s)"
            )
            logger.info(f"✓ {result.message}")
            return result

        self.mode = SyncMode.OFFLINE
        self._auto_save()
        result.status = SyncStatus.FAILED
        result.message = "Synchronization incomplete; remaining offline"
        logger.error(f"✗ {result.message} ({len(result.errors)} error(s))")
        return result

    def _push_updates(self, articles: Iterable[Article], result: SyncResult) -> bool:
        """Write existing records, stopping at the first failure.

        Returns:
            True if every record was written
        """
        for article in sorted(articles, key=lambda a: a.id):
            outgoing = article.copy()
            outgoing.timestamp = format_update_timestamp(self.clock())
            try:
                response = self.repository.update(article.id, outgoing)
            except SyncError as e:
                result.errors.append(f"Error saving article #{article.id}: {e}")
                logger.error(f"  ✗ Update of article {article.id} failed: {e}")
                return False

            if not is_success(response.status_code):
                result.errors.append(
                    f"Error saving article #{article.id}: {response.body}"
                )
                logger.error(
                    f"  ✗ Update of article {article.id} rejected "
                    f"(HTTP {response.status_code})"
                )
                return False

            article.timestamp = outgoing.timestamp
            self.original_timestamps[article.id] = article.timestamp
            self.change_tracker.discard(article.id)
            result.pushed_count += 1
            logger.debug(f"  ✓ Updated article {article.id}")
        return True

    def _push_creates(self, articles: Iterable[Article], result: SyncResult) -> bool:
        """Create new records, continuing past failures.

        Returns:
            True if every record was created
        """
        all_ok = True
        for article in list(articles):
            outgoing = article.copy()
            outgoing.timestamp = format_create_timestamp(self.clock())
            try:
                response = self.repository.create(outgoing)
            except SyncError as e:
                result.errors.append(f"Error creating article '{article.name}': {e}")
                logger.error(f"  ✗ Create of '{article.name}' failed: {e}")
                all_ok = False
                continue

            if not is_success(response.status_code):
                result.errors.append(
                    f"Error creating article '{article.name}': {response.body}"
                )
                logger.error(
                    f"  ✗ Create of '{article.name}' rejected (HTTP {response.status_code})"
                )
                all_ok = False
                continue

            result.created_count += 1
            if is_pending_creation(article):
                self._promote_placeholder(article, response.body)
        return all_ok

    def _promote_placeholder(self, placeholder: Article, body: str) -> None:
        """Replace a created placeholder by the server's record, or drop it."""
        created = _parse_created_article(body)
        self.change_tracker.discard(placeholder.id)
        self.original_timestamps.pop(placeholder.id, None)
        index = self._index_of(placeholder.id)

        if created is not None and created.id > 0:
            if index is not None:
                self.articles[index] = created
            else:
                self.articles.append(created)
            self.original_timestamps[created.id] = created.timestamp
            logger.debug(f"  ✓ Placeholder {placeholder.id} is now article {created.id}")
            return

        if index is not None:
            del self.articles[index]
        logger.debug(
            f"  ✓ Created '{placeholder.name}'; placeholder {placeholder.id} removed "
            f"until the next load"
        )

    # ------------------------------------------------------------------
    # Saving and conflict resolution
    # ------------------------------------------------------------------

    @_serialized
    def save_changes(self) -> SyncResult:
        """Save dirty records.

        Offline this only writes the snapshot and keeps the dirty set for
        the next synchronization. Online it checks for conflicts first.
        """
        if not self.change_tracker:
            return SyncResult(SyncStatus.NO_CHANGES, "No changes to save")

        if self.is_offline:
            if self.repository.save_local_snapshot(self.articles):
                return SyncResult(
                    SyncStatus.SUCCESS,
                    f"Saved locally; {len(self.change_tracker)} change(s) "
                    f"will be synchronized when online",
                )
            return SyncResult(SyncStatus.FAILED, "Could not write the local snapshot")

        scan = self.conflict_detector.detect(
            self.change_tracker.changed_articles(),
            self.original_timestamps,
            self.repository.fetch_one,
        )
        if scan.conflicts:
            return self._resolve_conflicts(scan)

        result = self.force_save()
        result.details.extend(
            f"Could not check article #{article_id} for conflicts: {message}"
            for article_id, message in scan.errors
        )
        return result

    def _resolve_conflicts(self, scan: ConflictScan) -> SyncResult:
        descriptions = []
        for server_version in scan.conflicts:
            local = self.find_article(server_version.id)
            descriptions.append(self.diff_reporter.describe(local, server_version))

        choice = self.prompter.choose_conflict_resolution(descriptions)
        logger.info(f"Conflict resolution: {choice.value}")

        if choice == ConflictChoice.OVERWRITE:
            result = self.force_save()
        elif choice == ConflictChoice.ACCEPT_SERVER:
            self._accept_server_versions(scan.conflicts)
            self._auto_save()
            result = SyncResult(
                SyncStatus.SUCCESS,
                f"Accepted {len(scan.conflicts)} server version(s)",
            )
        else:
            result = SyncResult(SyncStatus.CANCELLED, "Save cancelled; changes kept")

        result.conflict_count = len(scan.conflicts)
        result.details = descriptions + result.details
        return result

    def _accept_server_versions(self, server_versions: Iterable[Article]) -> None:
        for server_version in server_versions:
            index = self._index_of(server_version.id)
            if index is None:
                logger.warning(
                    f"⚠ Article {server_version.id} no longer in the working collection"
                )
                continue
            self.articles[index] = server_version
            self.original_timestamps[server_version.id] = server_version.timestamp
            self.change_tracker.discard(server_version.id)
            logger.debug(f"  ✓ Accepted server version of article {server_version.id}")

    @_serialized
    def force_save(self) -> SyncResult:
        """Write every dirty record without conflict checking."""
        changed = self.change_tracker.changed_articles()
        if not changed:
            return SyncResult(SyncStatus.NO_CHANGES, "No changes to save")

        existing = [a for a in changed if not is_pending_creation(a)]
        new = [a for a in changed if is_pending_creation(a)]

        result = SyncResult(SyncStatus.SUCCESS)
        updates_ok = self._push_updates(existing, result)
        creates_ok = self._push_creates(new, result)
        self._auto_save()

        if updates_ok and creates_ok:
            result.message = f"Saved {result.pushed_count + result.created_count} change(s)"
            logger.info(f"✓ {result.message}")
        else:
            result.status = SyncStatus.FAILED
            result.message = "Some changes could not be saved"
            logger.error(f"✗ {result.message}")
        return result

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    @_serialized
    def add_article(self, draft: Article) -> SyncResult:
        """Add a new article.

        Raises:
            ArticleValidationError: If the draft is missing required fields
        """
        if not draft.is_valid():
            raise ArticleValidationError(draft.name)

        article = draft.copy()

        if self.is_offline:
            article.id = next_placeholder_id(self.articles)
            if not article.timestamp:
                article.timestamp = format_create_timestamp(self.clock())
            self.articles.append(article)
            self.original_timestamps[article.id] = article.timestamp
            self._auto_save()
            logger.info(f"Added '{article.name}' offline as {article.id}")
            return SyncResult(
                SyncStatus.SUCCESS,
                f"Added '{article.name}' locally; it will be created on the server "
                f"when you go online",
            )

        article.timestamp = format_create_timestamp(self.clock())
        try:
            response = self.repository.create(article)
        except SyncError as e:
            return SyncResult(
                SyncStatus.FAILED, "Error creating article", errors=[str(e)]
            )

        if not is_success(response.status_code):
            return SyncResult(
                SyncStatus.FAILED,
                f"Error creating article (HTTP {response.status_code})",
                errors=[response.body],
            )

        if not self._refresh_keeping_dirty():
            created = _parse_created_article(response.body)
            if created is not None and created.id > 0:
                self.articles.append(created)
                self.original_timestamps[created.id] = created.timestamp
            self.mode = SyncMode.OFFLINE
            self._auto_save()
            logger.warning(
                f"⚠ Created '{article.name}' but could not reload articles; now offline"
            )
            return SyncResult(
                SyncStatus.UNREACHABLE,
                f"Created article '{article.name}', but the server returned no "
                f"articles; working offline with local data",
                created_count=1,
            )

        logger.info(f"✓ Created article '{article.name}'")
        return SyncResult(
            SyncStatus.SUCCESS, f"Created article '{article.name}'", created_count=1
        )

    @_serialized
    def delete_article(self, article_id: int) -> SyncResult:
        """Delete an article after the user confirms."""
        article = self.find_article(article_id)
        if not self.prompter.confirm_delete(article):
            return SyncResult(SyncStatus.CANCELLED, "Delete cancelled")

        if self.is_offline or is_pending_creation(article):
            self._forget(article_id)
            self._auto_save()
            return SyncResult(SyncStatus.SUCCESS, f"Deleted '{article.name}' locally")

        try:
            status_code = self.repository.delete(article_id)
        except SyncError as e:
            return SyncResult(
                SyncStatus.FAILED, f"Error deleting '{article.name}'", errors=[str(e)]
            )

        if not is_success(status_code):
            logger.error(f"✗ Delete of article {article_id} rejected (HTTP {status_code})")
            return SyncResult(
                SyncStatus.FAILED,
                f"Error deleting '{article.name}'",
                errors=[f"HTTP {status_code}"],
            )

        self._forget(article_id)
        self._auto_save()
        logger.info(f"✓ Deleted article {article_id}")
        return SyncResult(SyncStatus.SUCCESS, f"Deleted '{article.name}'")

    @_serialized
    def edit_field(self, article_id: int, field_name: str, raw_value: str) -> bool:
        """Parse and apply an edit to one field.

        Args:
            article_id: Article to edit
            field_name: One of EDITABLE_FIELDS
            raw_value: User input

        Returns:
            True if the value changed (the article is then dirty)

        Raises:
            UnknownArticleError: If the article is not in the collection
            InvalidFieldError: If the field is unknown or the value does not parse
        """
        if field_name not in EDITABLE_FIELDS:
            raise InvalidFieldError(field_name, "not an editable column")

        article = self.find_article(article_id)
        value = _parse_field_value(field_name, raw_value)

        if getattr(article, field_name) == value:
            logger.debug(f"Article {article_id}.{field_name} unchanged")
            return False

        setattr(article, field_name, value)
        self.change_tracker.mark_changed(article)
        if self.is_offline:
            self._auto_save()
        return True

    @_serialized
    def apply_style(
        self,
        article_ids: Iterable[int],
        column: str,
        toggle: Optional[str] = None,
        color: Optional[str] = None,
    ) -> int:
        """Toggle a style flag and/or set the text color of one column.

        Args:
            article_ids: Articles to format
            column: One of STYLEABLE_COLUMNS
            toggle: "bold", "italic" or "underline"
            color: Hex color such as "#FF0000"

        Returns:
            Number of articles formatted

        Raises:
            InvalidFieldError: If the column, toggle or color is invalid
            UnknownArticleError: If an id is not in the collection
        """
        if column not in STYLEABLE_COLUMNS:
            raise InvalidFieldError(column, "not a formattable column")
        if toggle is not None and toggle not in STYLE_TOGGLES:
            raise InvalidFieldError(column, f"unknown style '{toggle}'")
        if color is not None and not _HEX_COLOR.match(color):
            raise InvalidFieldError(column, f"'{color}' is not a #RRGGBB color")
        if toggle is None and color is None:
            return 0

        targets = [self.find_article(article_id) for article_id in article_ids]
        for article in targets:
            style = article.styles.get(column)
            style = style.copy() if style is not None else CellStyle()
            if toggle is not None:
                setattr(style, toggle, not getattr(style, toggle))
            if color is not None:
                style.color = color
            article.styles = dict(article.styles)
            article.styles[column] = style
            self.change_tracker.mark_changed(article)
            logger.debug(f"Formatted article {article.id} column '{column}'")

        if targets and self.is_offline:
            self._auto_save()
        return len(targets)

    # ------------------------------------------------------------------
    # Reporting and state
    # ------------------------------------------------------------------

    def compare_with_server(self) -> List[str]:
        """Describe local work relative to the current server state.

        Raises:
            APIUnreachableError: If the server cannot be reached
        """
        if not self.repository.check_connection():
            raise APIUnreachableError(endpoint=self.config.api_url)

        server_articles = self.repository.fetch_all()
        if not server_articles:
            raise APIUnreachableError(endpoint=self.config.api_url)

        server_by_id = {a.id: a for a in server_articles}
        descriptions = []
        for article in sorted(self.change_tracker.changed_articles(), key=lambda a: a.id):
            if is_pending_creation(article):
                continue
            descriptions.append(
                self.diff_reporter.describe(article, server_by_id.get(article.id))
            )
        for article in self.pending_creations():
            descriptions.append(self.diff_reporter.describe(article, None, is_new_local=True))
        return descriptions

    @_serialized
    def restore(self, articles: List[Article], state: SessionState) -> None:
        """Rebuild engine state from a snapshot and persisted session state."""
        self.articles = list(articles)
        self.mode = SyncMode(state.mode)
        self.original_timestamps = {a.id: a.timestamp for a in self.articles}
        self.original_timestamps.update(
            {
                article_id: timestamp
                for article_id, timestamp in state.original_timestamps.items()
                if self._index_of(article_id) is not None
            }
        )
        self.change_tracker.rebind(self.articles, state.dirty_ids)
        self.last_synced = state.last_synced
        logger.debug(
            f"Restored {len(self.articles)} article(s), "
            f"{len(self.change_tracker)} dirty, mode {self.mode.value}"
        )

    def session_state(self) -> SessionState:
        """Export the state needed to restore this engine later."""
        return SessionState(
            mode=self.mode.value,
            dirty_ids=sorted(self.change_tracker.changed_ids()),
            original_timestamps=dict(self.original_timestamps),
            last_synced=self.last_synced,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _replace_collection(self, server_articles: List[Article]) -> None:
        self.articles = list(server_articles)
        self.original_timestamps = {a.id: a.timestamp for a in self.articles}
        self.change_tracker.clear()
        self.last_synced = format_update_timestamp(self.clock())

    def _refresh_keeping_dirty(self) -> bool:
        """Reload from the server while keeping unsaved local edits.

        Returns:
            False if the server returned nothing; the collection is then untouched
        """
        server_articles = self.repository.fetch_all()
        if not server_articles:
            return False

        dirty = {a.id: a for a in self.change_tracker.changed_articles()}
        kept_timestamps = {
            article_id: self.original_timestamps[article_id]
            for article_id in dirty
            if article_id in self.original_timestamps
        }

        self._replace_collection(server_articles)

        for index, article in enumerate(self.articles):
            local = dirty.pop(article.id, None)
            if local is not None:
                self.articles[index] = local
                self.change_tracker.mark_changed(local)
        # Unsaved edits of records missing on the server are kept for the next save
        for local in dirty.values():
            self.articles.append(local)
            self.change_tracker.mark_changed(local)
        self.original_timestamps.update(kept_timestamps)
        self._auto_save()
        return True

    def _forget(self, article_id: int) -> None:
        index = self._index_of(article_id)
        if index is not None:
            del self.articles[index]
        self.original_timestamps.pop(article_id, None)
        self.change_tracker.discard(article_id)

    def _index_of(self, article_id: int) -> Optional[int]:
        for index, article in enumerate(self.articles):
            if article.id == article_id:
                return index
        return None

    def _auto_save(self) -> None:
        if self.config.auto_save:
            if not self.repository.save_local_snapshot(self.articles):
                logger.warning("⚠ Automatic save of the local snapshot failed")


def _parse_field_value(field_name: str, raw_value: str):
    text = "" if raw_value is None else str(raw_value).strip()

    if field_name == "stock":
        try:
            value = int(text)
        except ValueError:
            raise InvalidFieldError(field_name, f"'{text}' is not a whole number")
        if value < 0:
            raise InvalidFieldError(field_name, "must not be negative")
        return value

    if field_name == "price":
        try:
            value = float(text.replace(",", "."))
        except ValueError:
            raise InvalidFieldError(field_name, f"'{text}' is not a number")
        if value < 0:
            raise InvalidFieldError(field_name, "must not be negative")
        return value

    return "" if raw_value is None else str(raw_value)


def _parse_created_article(body: str) -> Optional[Article]:
    """Decode the article echoed back by a create request, if any."""
    if not body:
        return None
    try:
        payload = json.loads(body)
        if isinstance(payload, dict) and payload.get("id"):
            return Article.from_dict(payload)
    except (TypeError, ValueError) as e:
        logger.debug(f"Create response is not an article: {e}")
    return None
