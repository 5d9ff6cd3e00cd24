"""Test fixtures for the inventory client.

This module provides test fixtures for:
- Sample articles and article collections
- An in-memory repository standing in for the inventory API
- A scripted prompter standing in for the interactive user
"""

from .sample_articles import (
    FIXED_NOW,
    NEWER_SERVER_TIMESTAMP,
    SERVER_TIMESTAMP,
    InMemoryRepository,
    ScriptedPrompter,
    fixed_clock,
    make_article,
    make_styled_article,
    sample_collection,
)

__all__ = [
    "FIXED_NOW",
    "NEWER_SERVER_TIMESTAMP",
    "SERVER_TIMESTAMP",
    "InMemoryRepository",
    "ScriptedPrompter",
    "fixed_clock",
    "make_article",
    "make_styled_article",
    "sample_collection",
]
