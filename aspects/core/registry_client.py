"""Registry client — typed access to the aspects registry API.

Endpoints (relative to the registry base URL):

==========================  =======  ==========  ==================
Path                        Method   Auth        Cache
==========================  =======  ==========  ==================
``/registry``               GET      no          index TTL (5 min)
``/aspects/{name}``         GET      no          -
``/aspects/{name}/{ver}``   GET      no          -
``/aspects/blob/{digest}``  GET      no          -
``/search``                 GET      no          -
``/categories``             GET      no          reference TTL (24 h)
``/stats``                  GET      no          index TTL
``/aspects``                POST     yes         -
``/aspects/blob``           POST     no          -
``/aspects/{name}/{ver}``   DELETE   yes         -
==========================  =======  ==========  ==================

Requests failing with a 5xx, a 429, or a transport error (connection
failure, timeout) are retried with exponential backoff.  Any other 4xx is
converted to a typed :class:`~aspects.core.errors.ApiError` immediately.
When the API is unreachable, the full index is served from a static
fallback document instead.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel, ValidationError

from aspects import __version__
from aspects.config import AspectsSettings
from aspects.core.cache import TTLCache
from aspects.core.credentials import CredentialStore
from aspects.core.errors import (
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    api_error_from_response,
)
from aspects.models.aspect import Aspect
from aspects.models.registry import (
    AspectDetail,
    BlobResult,
    Category,
    PublishResult,
    RegistryIndex,
    RegistryIndexEntry,
    RegistryStats,
    SearchResponse,
    VersionContent,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"aspects-cli/{__version__}"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def _decode_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def parse_response(model: type[_ModelT], body: Any, url: str) -> _ModelT:
    """Validate a decoded response body against *model*.

    Raises
    ------
    ApiError
        With ``error_code="invalid_response"`` if the body is not an object
        of the expected shape.
    """
    if not isinstance(body, dict):
        raise ApiError(
            f"Unexpected response from {url}: expected an object, got {type(body).__name__}",
            error_code="invalid_response",
        )
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise ApiError(
            f"Unexpected response from {url}: "
            f"{exc.error_count()} invalid field(s) for {model.__name__}",
            error_code="invalid_response",
        ) from exc


class HttpTransport:
    """``requests`` wrapper implementing the retry and error policy.

    Parameters
    ----------
    session:
        The HTTP session; tests pass a fake with a ``request`` method.
    timeout:
        Per-request upper bound in seconds.
    max_retries:
        Total attempts for retryable failures.
    backoff:
        Base delay; attempt *n* waits ``backoff * 2 ** (n - 1)`` before retrying.
    sleep:
        Injectable for tests.
    """

    def __init__(
        self,
        session: requests.Session,
        timeout: float,
        max_retries: int,
        backoff: float,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.max_retries = max(int(max_retries), 1)
        self.backoff = max(float(backoff), 0.0)
        self._sleep = sleep or time.sleep

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """Send a request, retrying transient failures.

        Raises
        ------
        NetworkError
            After the retry budget is spent on retryable failures.
        ApiError
            (or a subclass) on the first non-retryable 4xx.
        """
        merged = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            merged.update(headers)

        last_status = 0
        last_message = ""
        for attempt in range(1, self.max_retries + 1):
            logger.debug("%s %s attempt=%d/%d", method, url, attempt, self.max_retries)
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=merged,
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as exc:
                last_status = 0
                last_message = str(exc) or type(exc).__name__
            else:
                status = response.status_code
                if status < 400:
                    return response
                body = _decode_body(response)
                if not _is_retryable_status(status):
                    reason = getattr(response, "reason", "") or ""
                    raise api_error_from_response(status, body, fallback=reason)
                last_status = status
                last_message = (
                    body.get("message") if isinstance(body, dict) and body.get("message")
                    else f"HTTP {status}"
                )

            if attempt < self.max_retries:
                delay = self.backoff * 2 ** (attempt - 1)
                logger.debug("Retrying %s in %.2fs (%s)", url, delay, last_message)
                self._sleep(delay)

        error_code = "rate_limit" if last_status == 429 else "network_error"
        raise NetworkError(
            f"{method} {url} failed after {self.max_retries} attempts: {last_message}",
            status_code=last_status,
            error_code=error_code,
        )

    def get_json(self, url: str, **kwargs: Any) -> Any:
        response = self.request("GET", url, **kwargs)
        body = _decode_body(response)
        if body is None:
            raise ApiError(f"Invalid JSON from {url}", response.status_code, "invalid_response")
        return body

    def get_model(self, url: str, model: type[_ModelT], **kwargs: Any) -> _ModelT:
        return parse_response(model, self.get_json(url, **kwargs), url)

    def get_text(self, url: str) -> str:
        return self.request("GET", url, headers={"Accept": "*/*"}).text


class StaticIndexSource:
    """The fallback index: one static document with the API's index shape."""

    def __init__(
        self,
        url: str,
        transport: HttpTransport,
        ttl: float,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.url = url
        self._transport = transport
        self._ttl = ttl
        self._cache = TTLCache(clock)

    def fetch(self) -> RegistryIndex:
        key = f"fallback:{self.url}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        index = self._transport.get_model(self.url, RegistryIndex)
        self._cache.set(key, index, self._ttl)
        return index

    def clear_cache(self) -> None:
        self._cache.clear()


class RegistryClient:
    """Client for the aspects registry.

    Parameters
    ----------
    settings:
        Timeouts, retry budget, TTLs and URLs.
    base_url:
        Registry API base; defaults to ``settings.effective_registry_url()``.
    session:
        HTTP session (a fresh :class:`requests.Session` if omitted).
    credentials:
        Token store for authenticated endpoints.
    clock, sleep:
        Injectable time sources for the caches and the backoff.

    Examples
    --------
    >>> client = RegistryClient(AspectsSettings())          # doctest: +SKIP
    >>> entry = client.lookup("alaric")                     # doctest: +SKIP
    >>> entry.latest                                        # doctest: +SKIP
    '1.0.0'
    """

    def __init__(
        self,
        settings: AspectsSettings,
        base_url: str | None = None,
        session: requests.Session | None = None,
        credentials: CredentialStore | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.settings = settings
        self.base_url = (base_url or settings.effective_registry_url()).rstrip("/")
        self.credentials = credentials or CredentialStore(settings.home)
        self.transport = HttpTransport(
            session or requests.Session(),
            timeout=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
            backoff=settings.backoff_seconds,
            sleep=sleep,
        )
        self.fallback = StaticIndexSource(
            settings.fallback_index_url,
            self.transport,
            ttl=settings.index_ttl_seconds,
            clock=clock,
        )
        self._cache = TTLCache(clock)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _auth_headers(self) -> dict[str, str]:
        token = self.credentials.access_token()
        if not token:
            raise AuthError(
                'Not logged in. Run "aspects login" first.',
                status_code=401,
                error_code="unauthorized",
            )
        return {"Authorization": f"Bearer {token}"}

    def clear_cache(self) -> None:
        """Drop cached index, categories and stats, including the fallback's."""
        self._cache.clear()
        self.fallback.clear_cache()

    # -- Index and lookup -------------------------------------------------

    def fetch_index(self) -> RegistryIndex:
        """The full registry index, from the API or the static fallback."""
        key = f"registry:{self.base_url}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        try:
            index = self.transport.get_model(self._url("/registry"), RegistryIndex)
        except NetworkError as exc:
            logger.warning("Registry unreachable (%s); using fallback index", exc.message)
            return self.fallback.fetch()
        self._cache.set(key, index, self.settings.index_ttl_seconds)
        return index

    def get_detail(self, name: str) -> AspectDetail:
        url = self._url(f"/aspects/{quote(name, safe='')}")
        return self.transport.get_model(url, AspectDetail)

    def lookup(self, name: str) -> RegistryIndexEntry | None:
        """Resolve *name* to its registry entry.

        A 404 from the API is definitive and returns ``None``.  When the API
        is unreachable the name is resolved from the index instead; if that
        fails too, the original error is raised.
        """
        try:
            return self.get_detail(name).to_index_entry()
        except NotFoundError:
            return None
        except NetworkError as exc:
            logger.warning("Direct lookup of %s failed (%s); resolving from index", name, exc.message)
            try:
                index = self.fetch_index()
            except ApiError as index_exc:
                logger.debug("Index fallback failed: %s", index_exc)
                raise exc from index_exc
            return find_in_index(index, name)

    def get_version(self, name: str, version: str) -> VersionContent:
        path = f"/aspects/{quote(name, safe='')}/{quote(version, safe='')}"
        return self.transport.get_model(self._url(path), VersionContent)

    def get_by_digest(self, digest: str) -> VersionContent:
        path = f"/aspects/blob/{quote(digest, safe='')}"
        return self.transport.get_model(self._url(path), VersionContent)

    def fetch_text(self, url: str) -> str:
        """Raw content from an absolute URL (static index or source repo)."""
        return self.transport.get_text(url)

    # -- Discovery --------------------------------------------------------

    def search(
        self,
        query: str | None = None,
        category: str | None = None,
        trust: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> SearchResponse:
        params = {
            key: value
            for key, value in {
                "q": query,
                "category": category,
                "trust": trust,
                "limit": limit,
                "offset": offset,
            }.items()
            if value is not None
        }
        return self.transport.get_model(self._url("/search"), SearchResponse, params=params)

    def categories(self) -> list[Category]:
        key = f"categories:{self.base_url}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        url = self._url("/categories")
        data = self.transport.get_json(url)
        items = data.get("categories", []) if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ApiError(
                f"Unexpected response from {url}: no category list",
                error_code="invalid_response",
            )
        categories = [parse_response(Category, item, url) for item in items]
        self._cache.set(key, categories, self.settings.reference_ttl_seconds)
        return categories

    def stats(self) -> RegistryStats:
        key = f"stats:{self.base_url}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        stats = self.transport.get_model(self._url("/stats"), RegistryStats)
        self._cache.set(key, stats, self.settings.index_ttl_seconds)
        return stats

    # -- Publishing -------------------------------------------------------

    def publish(self, aspect: Aspect) -> PublishResult:
        """Publish under the logged-in account."""
        headers = self._auth_headers()
        url = self._url("/aspects")
        response = self.transport.request(
            "POST", url, json={"aspect": aspect.to_document()}, headers=headers
        )
        self.clear_cache()
        return parse_response(PublishResult, _decode_body(response), url)

    def publish_anonymous(self, aspect: Aspect) -> BlobResult:
        """Store content-addressed, without an account; idempotent per content."""
        url = self._url("/aspects/blob")
        response = self.transport.request("POST", url, json=aspect.to_document())
        return parse_response(BlobResult, _decode_body(response), url)

    def unpublish(self, name: str, version: str) -> str:
        headers = self._auth_headers()
        path = f"/aspects/{quote(name, safe='')}/{quote(version, safe='')}"
        response = self.transport.request("DELETE", self._url(path), headers=headers)
        self.clear_cache()
        body = _decode_body(response)
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"Unpublished {name}@{version}"


def find_in_index(index: RegistryIndex, name: str) -> RegistryIndexEntry | None:
    """Find *name* (bare or ``publisher/name``) in an index."""
    entry = index.aspects.get(name)
    if entry is not None:
        return entry
    publisher, sep, bare = name.partition("/")
    if not sep:
        return None
    entry = index.aspects.get(bare)
    if entry is not None and entry.metadata.publisher in (None, publisher):
        return entry
    return None
