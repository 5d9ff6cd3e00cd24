"""Tracking of locally changed articles.

Records are keyed by article id, so a record appears at most once no
matter how many of its fields were edited.
"""

import logging
from typing import Dict, Iterable, Iterator, List

from src.models.article import Article

logger = logging.getLogger(__name__)


class ChangeTracker:
    """Set of articles mutated since the last save or sync.

    Example:
        >>> tracker = ChangeTracker()
        >>> tracker.mark_changed(article)
        >>> tracker.mark_changed(article)  # no-op
        >>> len(tracker)
        1
    """

    def __init__(self):
        self._changed: Dict[int, Article] = {}

    def mark_changed(self, article: Article) -> None:
        """Add an article to the dirty set; re-adding is a no-op."""
        if article.id not in self._changed:
            logger.debug(f"Article {article.id} marked as changed")
        self._changed[article.id] = article

    def changed_articles(self) -> List[Article]:
        """Current dirty records (no ordering guarantee)."""
        return list(self._changed.values())

    def changed_ids(self) -> List[int]:
        return list(self._changed.keys())

    def is_changed(self, article_id: int) -> bool:
        return article_id in self._changed

    def discard(self, article_id: int) -> None:
        """Drop one record from the dirty set if present."""
        self._changed.pop(article_id, None)

    def clear(self) -> None:
        """Empty the dirty set after confirmed persistence."""
        if self._changed:
            logger.debug(f"Clearing {len(self._changed)} changed article(s)")
        self._changed.clear()

    def rebind(self, articles: Iterable[Article], dirty_ids: Iterable[int]) -> None:
        """Re-point the dirty set at records of a restored collection.

        Ids that no longer exist in the collection are dropped.

        Args:
            articles: The working collection
            dirty_ids: Ids that were dirty when the state was saved
        """
        by_id = {article.id: article for article in articles}
        self._changed = {
            article_id: by_id[article_id]
            for article_id in dirty_ids
            if article_id in by_id
        }

    def __len__(self) -> int:
        return len(self._changed)

    def __bool__(self) -> bool:
        return bool(self._changed)

    def __contains__(self, article: object) -> bool:
        if isinstance(article, Article):
            return self._changed.get(article.id) is not None
        return False

    def __iter__(self) -> Iterator[Article]:
        return iter(list(self._changed.values()))
