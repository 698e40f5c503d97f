"""Tests for panelmanager/panel/detect.py — local installation detection."""

import pytest

from panelmanager.panel.detect import (
    check_auto_detection,
    detect_panel_url,
    parse_env,
    read_panel_env,
)
from panelmanager.panel.errors import DetectionError
from tests.conftest import FakeSettingsStore

ENV_TEXT = """\
# Pterodactyl environment
APP_ENV=production
APP_URL="https://panel.example.com"
DB_HOST=127.0.0.1
DB_DATABASE='panel'
DB_USERNAME = pterodactyl
DB_PASSWORD=s3cr=t

NOT_A_PAIR
"""


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text(ENV_TEXT, encoding="utf-8")
    return str(path)


class TestParseEnv:

    def test_skips_comments_and_blank_lines(self):
        values = parse_env(ENV_TEXT)
        assert "# Pterodactyl environment" not in values
        assert "NOT_A_PAIR" not in values

    def test_strips_quotes_and_whitespace(self):
        values = parse_env(ENV_TEXT)
        assert values["APP_URL"] == "https://panel.example.com"
        assert values["DB_DATABASE"] == "panel"
        assert values["DB_USERNAME"] == "pterodactyl"

    def test_splits_on_first_equals(self):
        assert parse_env(ENV_TEXT)["DB_PASSWORD"] == "s3cr=t"


class TestReadPanelEnv:

    def test_reads_fields(self, env_file):
        config = read_panel_env(env_file)
        assert config.app_url == "https://panel.example.com"
        assert config.db_host == "127.0.0.1"
        assert config.db_port == "3306"  # default

    def test_latin1_bytes_are_tolerated(self, tmp_path):
        path = tmp_path / ".env"
        path.write_bytes(b"APP_NAME=Caf\xe9\nAPP_URL=https://panel.example.com\n")
        assert read_panel_env(str(path)).app_url == "https://panel.example.com"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DetectionError):
            read_panel_env(str(tmp_path / "missing.env"))

    def test_missing_app_url(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("DB_HOST=localhost\n", encoding="utf-8")
        with pytest.raises(DetectionError, match="APP_URL"):
            detect_panel_url(str(path))


class TestCheckAutoDetection:

    async def test_stores_url_only(self, env_file):
        store = FakeSettingsStore()
        url = await check_auto_detection(store, env_file)
        assert url == "https://panel.example.com"
        assert store.values == {"panel_url": "https://panel.example.com"}

    async def test_keeps_existing_url(self, env_file):
        store = FakeSettingsStore({"panel_url": "https://other.example.com"})
        assert await check_auto_detection(store, env_file) is None
        assert store.values["panel_url"] == "https://other.example.com"

    async def test_absent_file_does_not_raise(self, tmp_path):
        store = FakeSettingsStore()
        assert await check_auto_detection(store, str(tmp_path / "none.env")) is None
        assert store.values == {}

    async def test_non_utf8_env_does_not_raise(self, tmp_path):
        path = tmp_path / ".env"
        path.write_bytes(b'APP_NAME="Caf\xe9 Panel"\nAPP_URL=https://panel.example.com\n')
        store = FakeSettingsStore()
        assert await check_auto_detection(store, str(path)) == "https://panel.example.com"
        assert store.values == {"panel_url": "https://panel.example.com"}
