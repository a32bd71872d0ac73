"""Tests for the photofeed CLI."""

import json

import pytest
from click.testing import CliRunner

from photofeed.cli import cli
from photofeed.errors import PhotoServiceConfigError
from photofeed.gateway import CompanyCamGateway

from conftest import API_KEY, BASE_URL


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_gateway(monkeypatch, gallery_upstream):
    def build(settings):
        return CompanyCamGateway(API_KEY, base_url=BASE_URL, transport=gallery_upstream.transport())

    monkeypatch.setattr("photofeed.cli.base.create_gateway", build)
    return gallery_upstream


def test_commands_are_registered(runner):
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for name in ("photos", "before-after", "explain", "tags", "show-config"):
        assert name in result.output


def test_photos_command_prints_feed(runner, fake_gateway):
    result = runner.invoke(cli, ["--log-level", "WARNING", "photos", "--per-page", "2"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [photo["id"] for photo in payload["photos"]] == ["a1", "a3"]
    assert payload["total"] == 4
    assert payload["pageSize"] == 2
    assert payload["partial"] is False


def test_photos_command_filters(runner, fake_gateway):
    result = runner.invoke(cli, ["--log-level", "WARNING", "photos", "--before-after", "both"])

    assert result.exit_code == 0, result.output
    assert [photo["id"] for photo in json.loads(result.stdout)["photos"]] == ["b2"]


def test_photos_command_reports_upstream_errors(runner, fake_gateway):
    fake_gateway.fail("/projects", 401)

    result = runner.invoke(cli, ["--log-level", "CRITICAL", "photos"])

    assert result.exit_code != 0
    assert "UNAUTHORIZED" in result.output


def test_before_after_command(runner, fake_gateway):
    result = runner.invoke(cli, ["--log-level", "WARNING", "before-after"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "before: 2"
    assert "  a1 [roofing]" in lines
    assert "after: 2" in lines
    assert "  b2 [Windows]" in lines


def test_tags_command(runner, fake_gateway):
    fake_gateway.account_tags = [
        {"id": "1", "display_value": "RRWebsite"},
        {"id": "2", "display_value": "Website Old"},
        {"id": "3", "display_value": "Roofing"},
        {"id": "4", "display_value": "Before"},
    ]

    result = runner.invoke(cli, ["--log-level", "WARNING", "tags"])

    assert result.exit_code == 0, result.output
    assert "Account tags: 4" in result.output
    assert "Master tag 'RRWebsite': found" in result.output
    assert "similar: Website Old" in result.output
    assert "Service tag 'roofing': found" in result.output
    assert "Service tag 'Windows': MISSING" in result.output
    assert "After marker 'After': missing" in result.output
    assert "Ready for filtering: yes" in result.output


def test_missing_credential(runner, monkeypatch):
    def build(settings):
        raise PhotoServiceConfigError("CompanyCam API key is required")

    monkeypatch.setattr("photofeed.cli.base.create_gateway", build)

    result = runner.invoke(cli, ["photos"])

    assert result.exit_code == 1
    assert "COMPANYCAM_API_KEY" in result.output


def test_show_config_masks_key(runner, monkeypatch):
    monkeypatch.setattr("photofeed.settings.settings.companycam_api_key", "secret-value-1234")

    result = runner.invoke(cli, ["show-config"])

    assert result.exit_code == 0
    assert "secret-value-1234" not in result.output
    assert "companycam_api_base_url" in result.output


def test_explain_command_lists_rejected_photos(runner, fake_gateway):
    result = runner.invoke(cli, ["--log-level", "WARNING", "explain"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "Checked 6 photo(s) in 2 project(s): 4 passed, 2 failed, 0 skipped"
    assert "  a2: Missing master tag [Roofing]" in lines
    assert "  b3: Missing service tag [RRWebsite]" in lines
    assert not any(line.startswith("  a1:") for line in lines)


def test_explain_command_with_narrowing(runner, fake_gateway):
    result = runner.invoke(cli, ["--log-level", "WARNING", "explain", "--before-after", "after", "--show-passed"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "Checked 6 photo(s) in 2 project(s): 2 passed, 4 failed, 0 skipped"
    assert "  a1: Not an after photo [RRWebsite, Roofing, Before]" in lines
    assert "  a3: ok [rrwebsite, Siding, ROOFING, After]" in lines
