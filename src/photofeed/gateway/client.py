"""CompanyCam REST gateway: credentials, envelopes, pagination and caching."""

from __future__ import annotations

import logging
import time
from threading import Event
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import httpx

from photofeed.errors import (
    REASON_CANCELLED,
    REASON_TIMEOUT,
    ErrorCode,
    PhotoServiceConfigError,
    PhotoServiceError,
    RequestInterrupted,
)
from photofeed.gateway.cache import ResponseCache
from photofeed.models import Photo, Project, Tag

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.companycam.com/v2"


def unwrap_envelope(payload: Any) -> List[Any]:
    """Return the record list of a response.

    List endpoints answer with ``{"data": [...]}``, but the per-photo tags
    endpoint has been seen returning a bare array.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
    return []


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "errors"):
            value = body.get(key)
            if value:
                return str(value)
    return response.reason_phrase or response.text or "request failed"


class CompanyCamGateway:
    """Read-only client for the CompanyCam v2 API."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        cache: Optional[ResponseCache] = None,
        page_size: int = 100,
        max_pages: int = 50,
        tag_list_max_pages: int = 10,
        client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._api_key = (api_key or "").strip()
        if not self._api_key:
            raise PhotoServiceConfigError("CompanyCam API key is required")
        self._base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else ResponseCache()
        self.page_size = page_size
        self.max_pages = max_pages
        self.tag_list_max_pages = tag_list_max_pages
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, transport=transport)

    # -- lifecycle -----------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CompanyCamGateway":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- primitives ----------------------------------------------------
    #
    # ``deadline`` is a ``time.monotonic()`` value that bounds every request
    # made for the call; ``stop`` is checked before each request.

    def list_projects(
        self,
        *,
        use_cache: bool = True,
        deadline: Optional[float] = None,
        stop: Optional[Event] = None,
    ) -> List[Project]:
        records = self._list_all("/projects", use_cache=use_cache, deadline=deadline, stop=stop)
        return self._parse(records, Project.from_payload, "project")

    def list_project_photos(
        self,
        project_id: str,
        *,
        use_cache: bool = True,
        deadline: Optional[float] = None,
        stop: Optional[Event] = None,
    ) -> List[Photo]:
        """Photos of one project; a missing project yields an empty list."""
        records = self._list_all(
            f"/projects/{project_id}/photos",
            missing_ok=True,
            use_cache=use_cache,
            deadline=deadline,
            stop=stop,
        )
        photos = self._parse(records, Photo.from_payload, "photo")
        for photo in photos:
            if photo.project_id is None:
                photo.project_id = str(project_id)
        return photos

    def list_photo_tags(
        self,
        photo_id: str,
        *,
        use_cache: bool = True,
        deadline: Optional[float] = None,
        stop: Optional[Event] = None,
    ) -> List[Tag]:
        """Tags attached to one photo; a missing photo yields an empty list."""
        try:
            payload = self._get(f"/photos/{photo_id}/tags", use_cache=use_cache, deadline=deadline, stop=stop)
        except PhotoServiceError as exc:
            if exc.status == 404:
                logger.debug("No tags endpoint for photo %s (404); treating as untagged", photo_id)
                return []
            raise
        return self._parse(unwrap_envelope(payload), Tag.from_payload, "tag")

    def list_tags(self, *, use_cache: bool = True) -> List[Tag]:
        """The account-wide tag vocabulary."""
        records = self._list_all("/tags", max_pages=self.tag_list_max_pages, use_cache=use_cache)
        return self._parse(records, Tag.from_payload, "tag")

    # -- internals -----------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    def _request_timeout(self, path: str, deadline: Optional[float]) -> Tuple[float, bool]:
        """Per-request timeout, and whether the deadline (not the setting) bounds it."""
        if deadline is None:
            return self.timeout, False
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RequestInterrupted(REASON_TIMEOUT, f"Deadline reached before requesting {path}")
        if remaining < self.timeout:
            return remaining, True
        return self.timeout, False

    def _get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        use_cache: bool = True,
        deadline: Optional[float] = None,
        stop: Optional[Event] = None,
    ) -> Any:
        key = ResponseCache.make_key(path, params)
        if use_cache:
            hit, cached = self.cache.lookup(key)
            if hit:
                logger.debug("Cache hit for %s %s", path, params or "")
                return cached

        if stop is not None and stop.is_set():
            raise RequestInterrupted(REASON_CANCELLED, f"Cancelled before requesting {path}")
        timeout, deadline_bound = self._request_timeout(path, deadline)

        try:
            response = self._client.get(
                f"{self._base_url}{path}",
                headers=self._headers(),
                params=params,
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            if deadline_bound:
                raise RequestInterrupted(REASON_TIMEOUT, f"Deadline reached while requesting {path}") from exc
            raise PhotoServiceError(504, f"CompanyCam request timed out for {path}: {exc}", ErrorCode.UNKNOWN_ERROR) from exc
        except httpx.HTTPError as exc:
            raise PhotoServiceError(502, f"CompanyCam request failed for {path}: {exc}", ErrorCode.UNKNOWN_ERROR) from exc

        if response.status_code >= 400:
            raise PhotoServiceError.from_status(
                response.status_code,
                f"CompanyCam API error {response.status_code} for {path}: {_error_message(response)}",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise PhotoServiceError(502, f"CompanyCam returned invalid JSON for {path}", ErrorCode.UNKNOWN_ERROR) from exc

        self.cache.set(key, payload)
        return payload

    def _list_all(
        self,
        path: str,
        *,
        missing_ok: bool = False,
        max_pages: Optional[int] = None,
        use_cache: bool = True,
        deadline: Optional[float] = None,
        stop: Optional[Event] = None,
    ) -> List[Any]:
        """Walk upstream pages until a short page, so nothing is under-fetched."""
        limit_pages = max_pages or self.max_pages
        records: List[Any] = []
        for page in range(1, limit_pages + 1):
            params = {"page": page, "per_page": self.page_size}
            try:
                payload = self._get(path, params=params, use_cache=use_cache, deadline=deadline, stop=stop)
            except PhotoServiceError as exc:
                if missing_ok and exc.status == 404:
                    logger.debug("%s not found (404); treating as empty", path)
                    return records
                raise
            batch = unwrap_envelope(payload)
            records.extend(batch)
            if len(batch) < self.page_size:
                return records
        logger.warning("Stopped paging %s after %s pages; listing may be truncated", path, limit_pages)
        return records

    @staticmethod
    def _parse(records: List[Any], factory: Callable[[Dict[str, Any]], T], kind: str) -> List[T]:
        parsed: List[T] = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning("Ignoring non-object %s record: %r", kind, record)
                continue
            try:
                parsed.append(factory(record))
            except ValueError as exc:
                logger.warning("Ignoring malformed %s record: %s", kind, exc)
        return parsed


def create_gateway(settings: Any, *, transport: Optional[httpx.BaseTransport] = None) -> CompanyCamGateway:
    """Build a gateway from application settings."""
    return CompanyCamGateway(
        settings.companycam_api_key,
        base_url=settings.companycam_api_base_url,
        timeout=settings.request_timeout_seconds,
        cache=ResponseCache(ttl_seconds=settings.response_cache_ttl_seconds),
        page_size=settings.upstream_page_size,
        max_pages=settings.max_upstream_pages,
        tag_list_max_pages=settings.tag_list_max_pages,
        transport=transport,
    )
