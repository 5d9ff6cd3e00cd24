"""Pytest configuration and fixtures for integration tests.

Provides a fake inventory server that speaks to the real ArticleRepository
through a requests.Session stand-in, plus a config whose snapshot and
state files live in a temporary directory.
"""

import json
from typing import Dict, List

import pytest
import requests

from src.inventory_client.api_wrapper import ArticleRepository
from src.models.app_config import AppConfig
from src.models.article import Article
from tests.fixtures.sample_articles import sample_collection

BASE_URL = "https://inv.test/api/article"


class FakeInventoryServer:
    """requests.Session stand-in serving an in-memory article table.

    Records are stored as the JSON dictionaries the client sent, so the
    repository's serialization is exercised in both directions.

    Attributes:
        records: Stored article dictionaries by id
        online: When False every request raises ConnectionError
        list_status: Status code answered to the article list GET
        requests: (method, url) of every request received
    """

    def __init__(self, articles: List[Article]):
        self.records: Dict[int, dict] = {a.id: a.to_dict() for a in articles}
        self.online = True
        self.list_status = 200
        self.verify = True
        self.requests: List[tuple] = []
        self._next_id = max(self.records, default=0) + 1

    def head(self, url, **kwargs):
        self._receive("HEAD", url)
        return self._response(url, 200)

    def get(self, url, **kwargs):
        self._receive("GET", url)
        if url == BASE_URL:
            if self.list_status != 200:
                return self._response(url, self.list_status)
            return self._response(url, 200, [self.records[i] for i in sorted(self.records)])
        article_id = self._article_id(url)
        if article_id not in self.records:
            return self._response(url, 404)
        return self._response(url, 200, self.records[article_id])

    def request(self, method, url, **kwargs):
        self._receive(method, url)
        payload = dict(kwargs["json"])
        if method == "POST":
            payload["id"] = self._next_id
            self._next_id += 1
            self.records[payload["id"]] = payload
            return self._response(url, 201, payload)

        article_id = self._article_id(url)
        if article_id not in self.records:
            return self._response(url, 404, {"error": f"Article {article_id} not found"})
        self.records[article_id] = payload
        return self._response(url, 204)

    def delete(self, url, **kwargs):
        self._receive("DELETE", url)
        article_id = self._article_id(url)
        if self.records.pop(article_id, None) is None:
            return self._response(url, 404)
        return self._response(url, 204)

    def article(self, article_id: int) -> Article:
        return Article.from_dict(self.records[article_id])

    def edit(self, article_id: int, **changes) -> None:
        """Change a record the way another client would."""
        self.records[article_id].update(changes)

    def _receive(self, method: str, url: str) -> None:
        if not self.online:
            raise requests.ConnectionError(f"Connection refused: {url}")
        self.requests.append((method, url))

    @staticmethod
    def _article_id(url: str) -> int:
        return int(url.rsplit("/", 1)[1])

    @staticmethod
    def _response(url: str, status_code: int, payload=None) -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response.url = url
        response.encoding = "utf-8"
        response._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        return response


@pytest.fixture
def server() -> FakeInventoryServer:
    return FakeInventoryServer(sample_collection())


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        api_url=BASE_URL,
        snapshot_path=str(tmp_path / "articles.json"),
        state_path=str(tmp_path / "state.yaml"),
    )


@pytest.fixture
def repository_factory(config, server):
    """Build a fresh ArticleRepository, as each CLI process would."""
    def factory() -> ArticleRepository:
        return ArticleRepository(config, session=server)
    return factory
