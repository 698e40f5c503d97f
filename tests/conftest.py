"""Shared fixtures for the PanelManager test suite."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

import panelmanager.panel.http as http_mod
import panelmanager.store.factory as factory_mod
from panelmanager.config.settings import get_settings
from panelmanager.logging.audit import LOGGER_NAME
from panelmanager.panel.client import PanelClient
from panelmanager.store.sqlite import SQLiteStore
from panelmanager.store.store import SettingsStore

PANEL_URL = "https://panel.example.com"


class FakeSettingsStore(SettingsStore):
    """In-memory settings provider."""

    def __init__(self, values: dict | None = None):
        self.values = dict(values or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Reset the store and shared HTTP client singletons between tests.

    Also keeps the audit logger propagating so caplog sees its records.
    """
    monkeypatch.setattr(logging.getLogger(LOGGER_NAME), "propagate", True)
    monkeypatch.setattr(factory_mod, "_store", None)
    monkeypatch.setattr(http_mod, "_client", None)
    yield
    monkeypatch.setattr(factory_mod, "_store", None)
    monkeypatch.setattr(http_mod, "_client", None)


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings cache.

    Usage:
        override_settings(DATABASE_PATH="/tmp/x.db", SESSION_TTL_HOURS="1")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        get_settings.cache_clear()

    yield _override

    get_settings.cache_clear()


@pytest.fixture
def store(tmp_path) -> SQLiteStore:
    return SQLiteStore(str(tmp_path / "panelmanager.db"))


@pytest.fixture
def fake_settings() -> FakeSettingsStore:
    return FakeSettingsStore({
        "panel_url": PANEL_URL,
        "application_key": "ptla_app",
        "client_key": "ptlc_client",
    })


def panel_response(status_code: int = 200, body=None) -> MagicMock:
    """Build a mock httpx.Response. `body` may be bytes, str or JSON-able."""
    if body is None:
        content = b""
    elif isinstance(body, bytes):
        content = body
    elif isinstance(body, str):
        content = body.encode()
    else:
        content = json.dumps(body).encode()
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    return response


@pytest.fixture
def mock_http():
    """AsyncMock standing in for the shared httpx.AsyncClient."""
    client = AsyncMock()
    client.request.return_value = panel_response(200, {"data": []})
    client.is_closed = False
    return client


@pytest.fixture
def panel(mock_http) -> PanelClient:
    return PanelClient(
        base_url=PANEL_URL,
        application_key="ptla_app",
        client_key="ptlc_client",
        http_client=mock_http,
    )


def allocation_list(*entries) -> dict:
    """Panel allocation list body from (id, port, assigned) tuples."""
    return {
        "object": "list",
        "data": [
            {"object": "allocation", "attributes": {"id": i, "ip": "0.0.0.0", "port": p, "assigned": a}}
            for i, p, a in entries
        ],
    }
