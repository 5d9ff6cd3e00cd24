"""Per-command wiring of configuration, repository and sync engine.

Every CLI command runs in a fresh process, so the engine's working state
lives on disk between commands: the local snapshot holds the working
collection and the state file holds mode, dirty ids and the original
server timestamps.
"""

import logging
from typing import Optional

from src.inventory_client.api_wrapper import ArticleRepository
from src.models.app_config import AppConfig
from src.sync.models import SyncPrompter
from src.sync.sync_engine import SyncEngine

from .config import StateManager

logger = logging.getLogger(__name__)


class Session:
    """A restored SyncEngine plus the means to persist it again.

    Example:
        >>> session = Session.open(config, prompter)
        >>> session.engine.edit_field(3, "stock", "5")
        >>> session.persist()
    """

    def __init__(
        self,
        config: AppConfig,
        engine: SyncEngine,
        repository: ArticleRepository,
    ):
        self.config = config
        self.engine = engine
        self.repository = repository

    @classmethod
    def open(
        cls,
        config: AppConfig,
        prompter: SyncPrompter,
        repository: Optional[ArticleRepository] = None,
    ) -> "Session":
        """Build the engine and restore it from the snapshot and state file.

        Raises:
            StateError: If the state file is malformed
            StateFilesystemError: If the state file cannot be read
        """
        repository = repository or ArticleRepository(config)
        engine = SyncEngine(repository, prompter, config)

        state = StateManager.load(config.state_path)
        articles = repository.load_local_snapshot()
        engine.restore(articles, state)
        logger.debug(
            f"Session restored: {len(articles)} article(s), mode {state.mode}, "
            f"{len(state.dirty_ids)} dirty"
        )
        return cls(config, engine, repository)

    def persist(self) -> None:
        """Write the working collection and session state back to disk.

        Raises:
            StateFilesystemError: If the state file cannot be written
        """
        if not self.repository.save_local_snapshot(self.engine.articles):
            logger.warning("⚠ Could not write the local snapshot")
        StateManager.save(self.config.state_path, self.engine.session_state())
        logger.debug("Session persisted")
