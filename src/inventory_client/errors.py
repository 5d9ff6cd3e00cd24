"""Typed exception hierarchy for inventory API errors.

This module defines all custom exceptions raised by the inventory API client.
All exceptions inherit from InventoryError base class for easy catching and
include descriptive messages with context to help with debugging.
"""


class SyncError(Exception):
    """Base exception for all inventory-sync errors.

    Use this to catch any application-level error from the client.
    """
    pass


class InventoryError(SyncError):
    """Base exception for all inventory API errors."""
    pass


class ArticleNotFoundError(InventoryError):
    """Raised when a requested article does not exist on the server."""

    def __init__(self, article_id: int):
        super().__init__(f"Article {article_id} not found")
        self.article_id = article_id


class APIUnreachableError(InventoryError):
    """Raised when the inventory API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(InventoryError):
    """Raised when API access fails after retries or returns an unusable response."""

    def __init__(self, message: str = "Inventory API failure (after 3 retries)"):
        super().__init__(message)
