"""Lattice API client covering the review export endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
import requests_cache

from .config import Config
from .constants import API_DEFAULTS, API_PATHS, AUTH_SCHEMES, ERROR_MESSAGES, HTTP_STATUS
from .exceptions import ApiError, AuthenticationError, ConfigurationError
from .models import Question, Review, ReviewCycle, Reviewee, User

logger = logging.getLogger(__name__)


def authorization_header(api_key: str) -> str:
    """Return the Authorization header value for ``api_key``.

    Keys that already name a scheme (``Bearer``, ``Basic``, ``Token``,
    ``Lattice``) are sent verbatim; bare keys get a ``Bearer`` prefix.
    """
    value = api_key.strip()
    if not value:
        return ""
    if value.lower().startswith(AUTH_SCHEMES):
        return value
    return f"Bearer {value}"


class LatticeApiClient:
    """Thin wrapper around the Lattice REST API.

    This class handles:
    - Authentication headers
    - URL resolution for paths and the absolute URLs embedded in responses
    - Error translation into :mod:`tess.exceptions`

    Every request is a single attempt with the configured timeout; list
    endpoints return only the first page of ``data``.
    """

    def __init__(
        self,
        config: Config,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the API client.

        Args:
            config: Configuration object with the API base URL and timeout
            api_key: API key; read from the environment or keyring when omitted
            session: Optional requests session for connection pooling

        Raises:
            ConfigurationError: If no API key is configured
        """
        self.config = config
        self.session = session

        if api_key is None:
            try:
                api_key = config.get_api_key()
            except RuntimeError as exc:
                raise ConfigurationError(str(exc)) from exc
        if not api_key or not api_key.strip():
            raise ConfigurationError(ERROR_MESSAGES['api_key_missing'])

        self._headers: Dict[str, str] = {
            "Accept": "application/json",
            "Authorization": authorization_header(api_key),
        }

    def _get_session(self) -> requests.Session:
        if self.session is None:
            # Per-run memory cache: repeated question/user lookups hit the API once
            self.session = requests_cache.CachedSession(
                backend="memory",
                allowable_codes=[200],
                allowable_methods=["GET"],
            )
            logger.debug("Initialized in-memory cached session")
        self.session.headers.update(self._headers)
        return self.session

    def resolve_url(self, path_or_url: str) -> str:
        """Build a full URL from an API path or pass an absolute URL through.

        Raises:
            ApiError: If the path is empty, e.g. a list reference without a URL
        """
        if not path_or_url or not path_or_url.strip():
            raise ApiError("API path cannot be empty")
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url

        base = self.config.api.base_url
        if path_or_url.startswith("/"):
            return f"{base.rstrip('/')}{path_or_url}"
        return urljoin(base if base.endswith("/") else f"{base}/", path_or_url)

    def request_json(self, path_or_url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request expecting a JSON object.

        Raises:
            AuthenticationError: If the API rejects the key
            ApiError: On network failure, non-2xx status or invalid JSON
        """
        url = self.resolve_url(path_or_url)
        logger.debug("GET %s params=%s", url, params)

        try:
            response = self._get_session().get(url, params=params, timeout=self.config.api.timeout)
        except requests.RequestException as exc:
            raise ApiError(f"Network error for {url}: {exc}") from exc

        if response.status_code == HTTP_STATUS['unauthorized']:
            raise AuthenticationError(ERROR_MESSAGES['api_key_rejected'])

        if not 200 <= response.status_code < 300:
            body = response.content[:API_DEFAULTS['error_body_limit']].decode("utf-8", errors="replace").strip()
            raise ApiError(f"http {response.status_code}: {body}", response.status_code)

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error(
                "Failed to decode JSON from %s. Status: %s, Content-Type: %s, Content preview: %s",
                url,
                response.status_code,
                response.headers.get("content-type", "unknown"),
                response.text[:200],
            )
            raise ApiError(f"Invalid JSON response from {url}: {exc}") from exc

        if not isinstance(payload, dict):
            raise ApiError(f"Expected object response from {url}, got {type(payload).__name__}")
        return payload

    def request_list(self, path_or_url: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Execute a GET request against a list endpoint and return its ``data`` items."""
        payload = self.request_json(path_or_url, params)
        data = payload.get("data") or []
        if not isinstance(data, list):
            raise ApiError(f"Expected list data from {path_or_url}, got {type(data).__name__}")
        if payload.get("hasMore"):
            logger.debug("Ignoring further pages for %s", path_or_url)
        return [item for item in data if isinstance(item, dict)]

    def close(self) -> None:
        """Close the requests session and release resources."""
        if self.session is not None:
            self.session.close()
            self.session = None

    def __enter__(self) -> "LatticeApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def get_me(self) -> User:
        """Return the user the API key belongs to."""
        return User.from_dict(self.request_json(API_PATHS['me']))

    def list_users_by_url(self, url: str) -> List[User]:
        return [User.from_dict(item) for item in self.request_list(url)]

    def list_direct_reports(self, manager: User) -> List[User]:
        """List the users reporting to ``manager``."""
        if not manager.direct_reports_url:
            return []
        return self.list_users_by_url(manager.direct_reports_url)

    def list_review_cycles(self) -> List[ReviewCycle]:
        return [ReviewCycle.from_dict(item) for item in self.request_list(API_PATHS['review_cycles'])]

    def list_reviewees_by_url(self, url: str) -> List[Reviewee]:
        return [Reviewee.from_dict(item) for item in self.request_list(url)]

    def list_reviews_by_url(self, url: str, limit: int) -> List[Review]:
        """List review records for a reviewee, capped at ``limit`` results."""
        return [Review.from_dict(item) for item in self.request_list(url, {"limit": limit})]

    def get_question(self, question_id: str) -> Question:
        return Question.from_dict(self.request_json(API_PATHS['question'].format(id=question_id)))

    def get_user(self, user_id: str) -> User:
        return User.from_dict(self.request_json(API_PATHS['user'].format(id=user_id)))
