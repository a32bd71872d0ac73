"""API tests for the tag vocabulary endpoints."""

import pytest
from fastapi.testclient import TestClient

from photofeed.api import create_app
from photofeed.tags import MASTER_TAG, SERVICE_TAGS


@pytest.fixture
def client(fake_companycam, gateway, test_settings):
    fake_companycam.account_tags = [
        {"id": "1", "display_value": "siding"},
        {"id": "2", "display_value": "RRWebsite"},
        {"id": "3", "value": "Before"},
        {"id": "4", "name": "Roofing"},
    ]
    app = create_app(test_settings, gateway=gateway)
    with TestClient(app) as test_client:
        yield test_client


def test_simple_tag_listing(client):
    payload = client.get("/api/v1/tags", params={"simple": "true"}).json()

    assert payload == {"total_tags": 4, "tag_names": ["Before", "Roofing", "RRWebsite", "siding"]}


def test_full_tag_listing(client):
    payload = client.get("/api/v1/tags").json()

    assert payload["total_tags"] == 4
    assert [tag["id"] for tag in payload["tags"]] == ["3", "4", "2", "1"]
    assert payload["tags"][0]["label"] == "Before"


def test_tag_analysis(client):
    report = client.get("/api/v1/tags/analysis").json()

    assert report["total_tags"] == 4
    assert report["master_tag"]["found"] is True
    assert report["before_after_tags"]["before"]["found"] is True
    assert report["before_after_tags"]["after"]["found"] is False
    assert set(report["found_tags"]) == {MASTER_TAG, "roofing", "Siding"}
    assert "Windows" in report["missing_tags"]
    assert report["required_tags"] == [MASTER_TAG, *SERVICE_TAGS]
    assert report["ready_for_filtering"] is True


def test_tag_listing_failure(client, fake_companycam):
    fake_companycam.fail("/tags", 403)

    response = client.get("/api/v1/tags")

    assert response.status_code == 403
    assert response.json()["code"] == "INVALID_TOKEN"
