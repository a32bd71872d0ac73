"""Test settings loading."""

from photofeed.settings import Settings


def test_settings_read_environment(monkeypatch):
    """Values come from environment variables, case-insensitively."""
    monkeypatch.setenv("COMPANYCAM_API_KEY", "env-key-abcdef")
    monkeypatch.setenv("TAG_FETCH_WORKERS", "3")
    monkeypatch.setenv("ENVIRONMENT", "prod")

    loaded = Settings(_env_file=None)

    assert loaded.companycam_api_key == "env-key-abcdef"
    assert loaded.tag_fetch_workers == 3
    assert loaded.is_production
    assert not loaded.is_development
    assert loaded.has_photo_service_credentials


def test_defaults(monkeypatch):
    monkeypatch.delenv("COMPANYCAM_API_KEY", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    loaded = Settings(_env_file=None)

    assert loaded.companycam_api_base_url == "https://api.companycam.com/v2"
    assert loaded.response_cache_ttl_seconds == 3600
    assert loaded.default_page_size == 50
    assert loaded.is_development
    assert not loaded.has_photo_service_credentials


def test_config_audit_masks_credential():
    audit = Settings(_env_file=None, companycam_api_key="abcdefghijkl").config_audit()
    assert audit["companycam_api_key"] == "abcd...kl"

    short = Settings(_env_file=None, companycam_api_key="abc").config_audit()
    assert short["companycam_api_key"] == "***"
