"""Typed exception hierarchy for sync engine errors.

Failures of remote writes are not exceptions: they are reported through
SyncResult so the engine can keep going or stop per batch policy. These
exceptions cover requests the engine rejects before doing any work.
"""

from typing import Optional

from src.inventory_client.errors import SyncError


class EngineError(SyncError):
    """Base exception for all sync engine errors."""
    pass


class ArticleValidationError(EngineError):
    """Raised when a draft article is missing required fields."""

    def __init__(self, article_name: Optional[str] = None):
        label = f" '{article_name}'" if article_name else ""
        super().__init__(
            f"Article{label} is invalid: name, type and unit are required "
            f"and stock must not be negative"
        )
        self.article_name = article_name


class UnknownArticleError(EngineError):
    """Raised when an operation refers to an article not in the working collection."""

    def __init__(self, article_id: int):
        super().__init__(f"Article {article_id} is not in the working collection")
        self.article_id = article_id


class InvalidFieldError(EngineError):
    """Raised when an edit targets an unknown column or carries an unparsable value."""

    def __init__(self, field_name: str, reason: str):
        super().__init__(f"Invalid value for '{field_name}': {reason}")
        self.field_name = field_name
        self.reason = reason
