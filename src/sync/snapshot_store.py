"""Integrity-checked local snapshot of the article collection.

The snapshot is a JSON document with two keys:

    {"hash": "<base64 SHA-256 of data>", "data": [<article>, ...]}

The hash is computed over a canonical serialization of ``data`` at save
time and recomputed at load time. A mismatch means the file was edited or
corrupted outside the client, and the snapshot is rejected as a whole.
"""

import base64
import hashlib
import json
import logging
import os
import tempfile
from typing import Any, Iterable, List

from src.models.article import Article

logger = logging.getLogger(__name__)


def canonical_json(payload: Any) -> str:
    """Serialize a payload deterministically for hashing."""
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def compute_digest(payload: Any) -> str:
    """Base64-encoded SHA-256 over the canonical form of payload."""
    digest = hashlib.sha256(canonical_json(payload).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


class LocalSnapshotStore:
    """Persists the article collection to a local file with a content hash.

    Both operations report failure through their return value and never
    raise: a failed save returns False, a failed or untrusted load returns
    an empty list.

    Example:
        >>> store = LocalSnapshotStore(".inventory-sync/articles.json")
        >>> store.save(articles)
        True
        >>> store.load() == articles
        True
    """

    def __init__(self, snapshot_path: str):
        """Initialize the store.

        Args:
            snapshot_path: Path of the snapshot file
        """
        self.snapshot_path = snapshot_path

    def save(self, articles: Iterable[Article]) -> bool:
        """Write the collection and its digest to the snapshot file.

        The parent directory is created when missing. The file is replaced
        atomically so a crash mid-write never leaves a half-written snapshot.

        Args:
            articles: Articles to persist

        Returns:
            True on success, False on any serialization or I/O error
        """
        try:
            data = [article.to_dict() for article in articles]
            document = {"hash": compute_digest(data), "data": data}
            content = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize local snapshot: {e}")
            return False

        snapshot_dir = os.path.dirname(os.path.abspath(self.snapshot_path))
        try:
            os.makedirs(snapshot_dir, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=".snapshot-", suffix=".tmp", dir=snapshot_dir
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(temp_path, self.snapshot_path)
            except OSError:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise
        except OSError as e:
            logger.error(f"Failed to write local snapshot {self.snapshot_path}: {e}")
            return False

        logger.info(f"Saved {len(data)} article(s) to local snapshot {self.snapshot_path}")
        return True

    def load(self) -> List[Article]:
        """Read the snapshot and verify its digest.

        Returns:
            The stored articles, or an empty list when the file is missing,
            unreadable, malformed or fails the integrity check
        """
        if not os.path.exists(self.snapshot_path):
            logger.debug(f"No local snapshot at {self.snapshot_path}")
            return []

        try:
            with open(self.snapshot_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read local snapshot {self.snapshot_path}: {e}")
            return []

        if not isinstance(document, dict):
            logger.error(
                f"Local snapshot must be a JSON object, got {type(document).__name__}"
            )
            return []

        stored_hash = document.get("hash")
        data = document.get("data")
        if not isinstance(stored_hash, str) or not isinstance(data, list):
            logger.error("Local snapshot is missing 'hash' or 'data'")
            return []

        if compute_digest(data) != stored_hash:
            logger.warning(
                f"Local snapshot {self.snapshot_path} failed integrity check "
                f"(hash mismatch); ignoring its contents"
            )
            return []

        try:
            articles = [Article.from_dict(item) for item in data]
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Local snapshot contains malformed articles: {e}")
            return []

        logger.info(f"Loaded {len(articles)} article(s) from local snapshot")
        return articles
