"""Test configuration and fixtures."""

import re
import time
from threading import Lock

import httpx
import pytest

from photofeed.gateway import CompanyCamGateway, ResponseCache
from photofeed.settings import Settings

API_KEY = "test-key"
BASE_URL = "https://api.companycam.test/v2"

_PHOTOS_PATH = re.compile(r"/projects/([^/]+)/photos")
_PHOTO_TAGS_PATH = re.compile(r"/photos/([^/]+)/tags")


def photo_payload(photo_id: str, project_id: str, **extra) -> dict:
    payload = {
        "id": photo_id,
        "project_id": project_id,
        "captured_at": 1700000000,
        "created_at": 1699999000,
        "processing_status": "processed",
        "coordinates": {"lat": 39.95, "lon": -75.16},
        "uris": [
            {"type": "original", "uri": f"https://img.test/{photo_id}/original.jpg"},
            {"type": "web", "uri": f"https://img.test/{photo_id}/web.jpg"},
            {"type": "thumbnail", "uri": f"https://img.test/{photo_id}/thumb.jpg"},
        ],
    }
    payload.update(extra)
    return payload


class FakeCompanyCam:
    """In-memory stand-in for the CompanyCam v2 API, served via httpx.MockTransport."""

    def __init__(self):
        self.projects = []
        self.photos = {}
        self.tags = {}
        self.account_tags = []
        self.failures = {}
        self.delays = {}
        self.requests = []
        self.completed = []
        self.bare_tag_lists = False
        self._lock = Lock()

    def add_project(self, project_id: str, name: str = "") -> None:
        self.projects.append({"id": project_id, "name": name or f"Project {project_id}", "created_at": 1690000000})
        self.photos.setdefault(project_id, [])

    def add_photo(self, project_id: str, photo_id: str, tag_names, **extra) -> None:
        if project_id not in self.photos:
            self.add_project(project_id)
        self.photos[project_id].append(photo_payload(photo_id, project_id, **extra))
        self.tags[photo_id] = [
            {"id": f"{photo_id}-tag-{index}", "display_value": name, "tag_type": "label"}
            for index, name in enumerate(tag_names)
        ]

    def fail(self, path: str, status: int) -> None:
        self.failures[path] = status

    def request_count(self, path: str) -> int:
        with self._lock:
            return sum(1 for item in self.requests if item == path)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v2"):
            path = path[len("/v2"):]
        with self._lock:
            self.requests.append(path)
        try:
            return self._respond(path, request)
        finally:
            with self._lock:
                self.completed.append((path, time.monotonic()))

    def _respond(self, path: str, request: httpx.Request) -> httpx.Response:
        delay = self.delays.get(path)
        if delay:
            # Behave like a real transport: give up once the read timeout passes.
            read_timeout = (request.extensions.get("timeout") or {}).get("read")
            if read_timeout is not None and read_timeout < delay:
                time.sleep(read_timeout)
                raise httpx.ReadTimeout("timed out", request=request)
            time.sleep(delay)

        if request.headers.get("Authorization") != f"Bearer {API_KEY}":
            return httpx.Response(401, json={"message": "Invalid token"})
        if path in self.failures:
            return httpx.Response(self.failures[path], json={"message": "upstream failure"})

        if path == "/projects":
            return self._paged(self.projects, request)
        if path == "/tags":
            return self._paged(self.account_tags, request)

        match = _PHOTOS_PATH.fullmatch(path)
        if match:
            project_id = match.group(1)
            if project_id not in self.photos:
                return httpx.Response(404, json={"message": "Not found"})
            return self._paged(self.photos[project_id], request)

        match = _PHOTO_TAGS_PATH.fullmatch(path)
        if match:
            photo_id = match.group(1)
            if photo_id not in self.tags:
                return httpx.Response(404, json={"message": "Not found"})
            tags = self.tags[photo_id]
            return httpx.Response(200, json=tags if self.bare_tag_lists else {"data": tags})

        return httpx.Response(404, json={"message": "Not found"})

    @staticmethod
    def _paged(items, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", 1))
        per_page = int(request.url.params.get("per_page", 50))
        start = (page - 1) * per_page
        return httpx.Response(200, json={"data": items[start:start + per_page]})


@pytest.fixture
def fake_companycam():
    """Empty fake upstream."""
    return FakeCompanyCam()


@pytest.fixture
def gateway(fake_companycam):
    """Gateway wired to the fake upstream."""
    gw = CompanyCamGateway(
        API_KEY,
        base_url=BASE_URL,
        cache=ResponseCache(ttl_seconds=3600),
        transport=fake_companycam.transport(),
    )
    yield gw
    gw.close()


@pytest.fixture
def test_settings():
    """Settings isolated from the process environment."""
    return Settings(
        _env_file=None,
        companycam_api_key=API_KEY,
        companycam_api_base_url=BASE_URL,
        tag_fetch_workers=4,
        pipeline_timeout_seconds=10,
        default_page_size=50,
    )


@pytest.fixture
def gallery_upstream(fake_companycam):
    """Two projects with a mix of eligible and ineligible photos.

    Eligible, in feed order: a1 (roofing, before), a3 (Siding + roofing,
    after), b1 (Siding), b2 (Windows, before + after).
    """
    fake_companycam.add_photo("A", "a1", ["RRWebsite", "Roofing", "Before"])
    fake_companycam.add_photo("A", "a2", ["Roofing"])
    fake_companycam.add_photo("A", "a3", ["rrwebsite", "Siding", "ROOFING", "After"])
    fake_companycam.add_photo("B", "b1", ["RRWebsite", "Siding"])
    fake_companycam.add_photo("B", "b2", ["RRWebsite", "windows", "Before", "After"])
    fake_companycam.add_photo("B", "b3", ["RRWebsite"])
    return fake_companycam
