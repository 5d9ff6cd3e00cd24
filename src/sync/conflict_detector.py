"""Conflict detection for article synchronization.

This module provides the ConflictDetector class, which finds write-write
conflicts by comparing the server timestamp recorded when each changed
article was last in sync against the server's current timestamp. Server
versions are fetched in parallel.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Optional

from src.models.article import Article, is_pending_creation
from src.sync.models import ConflictScan

logger = logging.getLogger(__name__)

# Maximum parallel threads for batch conflict detection
MAX_WORKERS = 10


class ConflictDetector:
    """Detects conflicts between locally changed and current server articles.

    Partial-failure policy: when the server version of an article cannot be
    fetched, the failure is logged and recorded in ``ConflictScan.errors``
    and the article is treated as not conflicted. The scan itself never
    aborts; a subsequent save of that article fails on its own and is
    reported then.

    Example:
        >>> detector = ConflictDetector()
        >>> scan = detector.detect(tracker.changed_articles(), originals, repo.fetch_one)
        >>> for server_version in scan.conflicts:
        ...     print(f"Conflict: {server_version.id}")
    """

    def __init__(self, max_workers: int = MAX_WORKERS):
        """Initialize conflict detector.

        Args:
            max_workers: Maximum number of concurrent fetches
        """
        self.max_workers = max_workers

    def detect(
        self,
        changed: Iterable[Article],
        original_timestamps: Dict[int, str],
        fetch_current: Callable[[int], Article],
    ) -> ConflictScan:
        """Scan changed articles for conflicts.

        Args:
            changed: Locally changed articles
            original_timestamps: Article id to last confirmed server timestamp
            fetch_current: Returns the current server version for an id;
                may raise on failure

        Returns:
            ConflictScan with the server versions of conflicted articles
            (sorted by id) and the ids that could not be checked
        """
        # Pending creations have no server record and cannot conflict
        candidates = [a for a in changed if not is_pending_creation(a)]
        logger.info(f"Starting conflict detection for {len(candidates)} article(s)")

        scan = ConflictScan()
        if not candidates:
            return scan

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(
                    self._check_single_article,
                    article,
                    original_timestamps.get(article.id),
                    fetch_current,
                ): article
                for article in candidates
            }

            for future in as_completed(futures):
                article = futures[future]
                try:
                    server_version = future.result()
                except Exception as e:
                    scan.errors.append((article.id, str(e)))
                    logger.error(f"  ✗ Error checking article {article.id}: {e}")
                    continue

                if server_version is None:
                    logger.debug(f"  ✓ No conflict: article {article.id}")
                else:
                    scan.conflicts.append(server_version)

        scan.conflicts.sort(key=lambda a: a.id)
        scan.errors.sort(key=lambda item: item[0])

        logger.info(
            f"Conflict detection complete: {len(scan.conflicts)} conflict(s), "
            f"{len(scan.errors)} error(s)"
        )
        return scan

    def _check_single_article(
        self,
        article: Article,
        original_timestamp: Optional[str],
        fetch_current: Callable[[int], Article],
    ) -> Optional[Article]:
        """Check one article.

        Returns:
            The server version if its timestamp differs from the original,
            None if they match
        """
        server_version = fetch_current(article.id)

        if server_version.timestamp == original_timestamp:
            return None

        logger.warning(
            f"  ⚠ Conflict: article {article.id} "
            f"(original {original_timestamp} → server {server_version.timestamp})"
        )
        return server_version
