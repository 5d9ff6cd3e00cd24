"""Data models for inventory articles, cell formatting and app settings."""

from src.models.app_config import AppConfig
from src.models.article import (
    Article,
    CellStyle,
    EDITABLE_FIELDS,
    STYLEABLE_COLUMNS,
    is_pending_creation,
    next_placeholder_id,
)

__all__ = [
    'AppConfig',
    'Article',
    'CellStyle',
    'EDITABLE_FIELDS',
    'STYLEABLE_COLUMNS',
    'is_pending_creation',
    'next_placeholder_id',
]
