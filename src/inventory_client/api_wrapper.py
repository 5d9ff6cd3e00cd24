"""HTTP repository for the inventory article API.

This module wraps a requests Session and exposes the operations the sync
engine needs: reads that return typed Articles, raw writes that return
status codes for the engine to interpret, a lightweight connectivity probe,
and access to the integrity-checked local snapshot.
"""

import logging
import re
from typing import Any, List, NamedTuple, Optional

import requests
from requests.exceptions import (
    ConnectionError,
    ConnectTimeout,
    HTTPError,
    ReadTimeout,
    RequestException,
    Timeout,
)

from src.models.app_config import AppConfig
from src.models.article import Article
from src.sync.snapshot_store import LocalSnapshotStore

from .errors import (
    APIAccessError,
    APIUnreachableError,
    ArticleNotFoundError,
)
from .retry_logic import send_with_backoff

logger = logging.getLogger(__name__)


class WriteResponse(NamedTuple):
    """Raw result of a create or update request."""
    status_code: int
    body: str


def is_success(status_code: int) -> bool:
    """Whether a status code belongs to the 2xx success class."""
    return 200 <= status_code < 300


class ArticleRepository:
    """Remote CRUD for articles plus local snapshot I/O.

    Read failures are translated into the typed exceptions from
    ``src.inventory_client.errors``. Writes return the raw status code and
    body; transport failures during writes raise APIUnreachableError.

    Example:
        >>> repo = ArticleRepository(AppConfig(api_url="https://inv.local/api/article"))
        >>> if repo.check_connection():
        ...     articles = repo.fetch_all()
    """

    def __init__(
        self,
        config: AppConfig,
        snapshot_store: Optional[LocalSnapshotStore] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the repository.

        Args:
            config: Application configuration (API URL, timeouts, TLS)
            snapshot_store: Local snapshot store (defaults to config.snapshot_path)
            session: requests Session to use (created lazily if omitted)
        """
        self.config = config
        self.base_url = config.api_url.rstrip("/")
        self.snapshot_store = snapshot_store or LocalSnapshotStore(config.snapshot_path)
        self._session = session

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            session = requests.Session()
            session.headers.update({"Accept": "application/json"})
            session.verify = self.config.verify_tls
            if not self.config.verify_tls:
                logger.warning(
                    "TLS certificate verification is disabled. Do not use this in production."
                )
            self._session = session
        return self._session

    def _article_url(self, article_id: int) -> str:
        return f"{self.base_url}/{int(article_id)}"

    def _sanitize_credentials(self, text: str) -> str:
        """Mask credentials that may appear in server error bodies or URLs.

        Args:
            text: The error message or log text to sanitize

        Returns:
            Sanitized text with credentials masked
        """
        if not text:
            return text

        sanitized = re.sub(r'://([\w.-]+):([\w.-]+)@', r'://***:***@', text)
        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'password["\']?\s*[:=]\s*["\']?([^"\'\s&]+)',
            r'password=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        return sanitized

    def _translate_error(self, exception: Exception, operation: str) -> Exception:
        """Translate requests exceptions to typed inventory exceptions.

        Args:
            exception: The original exception from requests
            operation: Description of the operation that failed

        Returns:
            Exception: One of the typed inventory exceptions
        """
        if isinstance(exception, (Timeout, ConnectTimeout, ReadTimeout, ConnectionError)):
            return APIUnreachableError(endpoint=self.base_url)

        if isinstance(exception, HTTPError) and exception.response is not None:
            status_code = exception.response.status_code
            if status_code == 404:
                match = re.search(r'\((-?\d+)\)', operation)
                article_id = int(match.group(1)) if match else 0
                return ArticleNotFoundError(article_id=article_id)

        safe_error_msg = self._sanitize_credentials(str(exception))
        logger.error(f"API operation failed: {operation} - {safe_error_msg}")
        return APIAccessError(f"Inventory API failure during {operation}")

    def _get_json(self, url: str, operation: str) -> Any:
        """GET a URL and decode the JSON body, backing off while rate limited."""
        try:
            response = send_with_backoff(
                lambda: self._get_session().get(url, timeout=self.config.request_timeout),
                url,
            )
            logger.debug(f"GET {url} -> {response.status_code}")
            response.raise_for_status()
        except RequestException as e:
            raise self._translate_error(e, operation) from e

        logger.debug(f"Received {len(response.text)} characters from {url}")
        try:
            return response.json()
        except ValueError as e:
            raise APIAccessError(
                f"Invalid JSON in response to {operation}: {e}"
            ) from e

    def fetch_all(self) -> List[Article]:
        """Fetch every article.

        Returns:
            List of articles; empty on any failure (the error is logged)
        """
        logger.info("Fetching all articles")
        try:
            payload = self._get_json(self.base_url, "fetch_all()")
            if not isinstance(payload, list):
                raise APIAccessError(
                    f"Expected a JSON array of articles, got {type(payload).__name__}"
                )
            articles = [Article.from_dict(item) for item in payload]
        except Exception as e:
            logger.error(f"Failed to fetch articles: {e}")
            return []

        logger.info(f"Fetched {len(articles)} article(s)")
        return articles

    def fetch_one(self, article_id: int) -> Article:
        """Fetch a single article by id.

        Args:
            article_id: Server-assigned article id

        Returns:
            The current server version of the article

        Raises:
            ArticleNotFoundError: If the article does not exist
            APIUnreachableError: If the API is unreachable
            APIAccessError: If the API fails or returns invalid data
        """
        logger.debug(f"Fetching article {article_id}")
        payload = self._get_json(
            self._article_url(article_id), f"fetch_one({article_id})"
        )
        if not isinstance(payload, dict):
            raise APIAccessError(
                f"Expected a JSON object for article {article_id}, "
                f"got {type(payload).__name__}"
            )
        try:
            return Article.from_dict(payload)
        except (TypeError, ValueError) as e:
            raise APIAccessError(f"Malformed article {article_id}: {e}") from e

    def check_connection(self) -> bool:
        """Probe the API with a short timeout.

        Returns:
            True if the API answered with a non-5xx status, False otherwise.
            Never raises.
        """
        timeout = self.config.probe_timeout
        try:
            response = self._get_session().head(
                self.base_url, timeout=(timeout, timeout)
            )
            reachable = response.status_code < 500
        except RequestException as e:
            logger.info(f"Connectivity check failed: {e}")
            return False

        logger.debug(f"Connectivity check: HTTP {response.status_code}")
        return reachable

    def create(self, article: Article) -> WriteResponse:
        """POST a new article; the server assigns its id.

        Raises:
            APIUnreachableError: If the request could not be sent
        """
        payload = article.to_dict(include_id=False)
        logger.debug(f"POST new article '{article.name}'")
        return self._write("post", self.base_url, payload, "create()")

    def update(self, article_id: int, article: Article) -> WriteResponse:
        """PUT the full record of an existing article.

        Raises:
            APIUnreachableError: If the request could not be sent
        """
        logger.debug(f"PUT article {article_id}")
        return self._write(
            "put", self._article_url(article_id), article.to_dict(), f"update({article_id})"
        )

    def delete(self, article_id: int) -> int:
        """DELETE an article.

        Returns:
            The HTTP status code

        Raises:
            APIUnreachableError: If the request could not be sent
        """
        logger.debug(f"DELETE article {article_id}")
        try:
            response = self._get_session().delete(
                self._article_url(article_id), timeout=self.config.request_timeout
            )
        except RequestException as e:
            raise self._translate_error(e, f"delete({article_id})") from e
        logger.debug(f"DELETE article {article_id} -> {response.status_code}")
        return response.status_code

    def _write(self, method: str, url: str, payload: dict, operation: str) -> WriteResponse:
        try:
            response = self._get_session().request(
                method.upper(), url, json=payload, timeout=self.config.request_timeout
            )
        except RequestException as e:
            raise self._translate_error(e, operation) from e

        logger.debug(f"{method.upper()} {url} -> {response.status_code}")
        body = response.text or ""
        if not is_success(response.status_code):
            logger.error(
                f"Server rejected {operation} with HTTP {response.status_code}: "
                f"{self._sanitize_credentials(body)}"
            )
        return WriteResponse(status_code=response.status_code, body=body)

    def save_local_snapshot(self, articles: List[Article]) -> bool:
        """Persist the collection to the local snapshot."""
        return self.snapshot_store.save(articles)

    def load_local_snapshot(self) -> List[Article]:
        """Load the collection from the local snapshot (empty if untrusted)."""
        return self.snapshot_store.load()
