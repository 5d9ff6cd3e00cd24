"""Test fixtures for inventory articles and the sync engine.

Provides:
- Article factories with sensible defaults
- InMemoryRepository: a server plus snapshot stand-in that records calls
- ScriptedPrompter: a SyncPrompter returning preset answers

These fixtures are used by unit and integration tests.
"""

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional

from src.inventory_client.api_wrapper import WriteResponse
from src.inventory_client.errors import ArticleNotFoundError
from src.models.article import Article, CellStyle
from src.sync.models import ConflictChoice, ReconnectChoice

SERVER_TIMESTAMP = "2025-03-07T16:22:25Z"
NEWER_SERVER_TIMESTAMP = "2025-03-08T09:00:00Z"
FIXED_NOW = datetime(2025, 3, 9, 12, 30, 45, 123456, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_article(article_id: int = 1, **overrides) -> Article:
    """Create a valid article.

    Example:
        >>> article = make_article(3, stock=5)
        >>> article.is_valid()
        True
    """
    values = dict(
        id=article_id,
        name=f"Article {article_id}",
        type="Electronics",
        stock=10,
        unit="pcs",
        price=2.5,
        location="Shelf A",
        status="available",
        link="",
        timestamp=SERVER_TIMESTAMP,
        styles={},
    )
    values.update(overrides)
    return Article(**values)


def make_styled_article(article_id: int = 1) -> Article:
    return make_article(
        article_id,
        styles={
            "name": CellStyle(bold=True, color="#FF0000"),
            "stock": CellStyle(italic=True, underline=True),
        },
    )


def sample_collection() -> List[Article]:
    return [
        make_article(1, name="Cable", stock=3),
        make_article(2, name="Screw", type="Hardware", stock=500, unit="pcs"),
        make_article(5, name="Oil", type="Consumables", stock=4, unit="l", price=7.9),
    ]


class InMemoryRepository:
    """ArticleRepository stand-in backed by a dict.

    Attributes:
        server: Server-side articles by id
        snapshot: Last saved local snapshot (None if never saved)
        reachable: Result of check_connection()
        fetch_fails: fetch_all() returns [] although check_connection() succeeds
        update_statuses: Per-id status codes returned by update()
        create_statuses: Per-name status codes returned by create()
        calls: Names of the write methods called, in order
    """

    def __init__(self, articles: Optional[List[Article]] = None):
        self.server: Dict[int, Article] = {a.id: a.copy() for a in (articles or [])}
        self.snapshot: Optional[List[Article]] = None
        self.reachable = True
        self.fetch_fails = False
        self.update_statuses: Dict[int, int] = {}
        self.create_statuses: Dict[str, int] = {}
        self.echo_created = True
        self.calls: List[tuple] = []
        self._next_id = max(self.server, default=0) + 1

    def fetch_all(self) -> List[Article]:
        self.calls.append(("fetch_all",))
        if not self.reachable or self.fetch_fails:
            return []
        return [self.server[i].copy() for i in sorted(self.server)]

    def fetch_one(self, article_id: int) -> Article:
        self.calls.append(("fetch_one", article_id))
        if article_id not in self.server:
            raise ArticleNotFoundError(article_id)
        return self.server[article_id].copy()

    def check_connection(self) -> bool:
        return self.reachable

    def update(self, article_id: int, article: Article) -> WriteResponse:
        self.calls.append(("update", article_id))
        status = self.update_statuses.get(article_id, 200)
        if 200 <= status < 300:
            self.server[article_id] = article.copy()
            return WriteResponse(status, "")
        return WriteResponse(status, f"Article {article_id} rejected")

    def create(self, article: Article) -> WriteResponse:
        self.calls.append(("create", article.name))
        status = self.create_statuses.get(article.name, 201)
        if not 200 <= status < 300:
            return WriteResponse(status, f"Invalid article '{article.name}'")
        created = article.copy()
        created.id = self._next_id
        self._next_id += 1
        self.server[created.id] = created
        body = json.dumps(created.to_dict()) if self.echo_created else ""
        return WriteResponse(status, body)

    def delete(self, article_id: int) -> int:
        self.calls.append(("delete", article_id))
        if article_id not in self.server:
            return 404
        del self.server[article_id]
        return 204

    def save_local_snapshot(self, articles: List[Article]) -> bool:
        self.snapshot = [a.copy() for a in articles]
        return True

    def load_local_snapshot(self) -> List[Article]:
        return [a.copy() for a in (self.snapshot or [])]

    def write_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("update", "create", "delete")]


class ScriptedPrompter:
    """SyncPrompter returning preset answers and recording what it was shown."""

    def __init__(
        self,
        reconnect: ReconnectChoice = ReconnectChoice.CANCEL,
        conflict: ConflictChoice = ConflictChoice.CANCEL,
        push_after_review: bool = False,
        confirm: bool = True,
    ):
        self.reconnect = reconnect
        self.conflict = conflict
        self.push_after_review = push_after_review
        self.confirm = confirm
        self.reconnect_questions: List[tuple] = []
        self.reviewed: List[List[str]] = []
        self.conflict_descriptions: List[List[str]] = []
        self.delete_requests: List[Article] = []

    def choose_reconnect_action(self, changed_count: int, pending_count: int) -> ReconnectChoice:
        self.reconnect_questions.append((changed_count, pending_count))
        return self.reconnect

    def review_differences(self, descriptions: List[str]) -> bool:
        self.reviewed.append(list(descriptions))
        return self.push_after_review

    def choose_conflict_resolution(self, descriptions: List[str]) -> ConflictChoice:
        self.conflict_descriptions.append(list(descriptions))
        return self.conflict

    def confirm_delete(self, article: Article) -> bool:
        self.delete_requests.append(article)
        return self.confirm
