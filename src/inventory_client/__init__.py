"""Inventory API client library.

This package provides Python abstractions over the inventory article
REST API and the typed errors raised when talking to it.
"""

from .errors import (
    SyncError,
    InventoryError,
    ArticleNotFoundError,
    APIUnreachableError,
    APIAccessError,
)

__all__ = [
    "SyncError",
    "InventoryError",
    "ArticleNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
]
