"""Tests for panelmanager/panel/integrate.py — artisan key provisioning."""

from unittest.mock import AsyncMock, patch

import pytest

from panelmanager.panel.integrate import (
    CLIENT_KEY_SCRIPT,
    IntegrationError,
    auto_integrate,
)
from tests.conftest import FakeSettingsStore


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text("APP_URL=https://panel.local\n", encoding="utf-8")
    return str(path)


class TestAutoIntegrate:

    async def test_stores_prefixed_keys(self, env_file, tmp_path):
        store = FakeSettingsStore()
        tinker = AsyncMock(side_effect=["appid.apptoken", "clientid.clienttoken"])
        with patch("panelmanager.panel.integrate.run_tinker", tinker):
            result = await auto_integrate(store, env_file, str(tmp_path))

        assert result.application_key == "ptla_appid.apptoken"
        assert result.client_key == "ptlc_clientid.clienttoken"
        assert store.values == {
            "panel_url": "https://panel.local",
            "application_key": "ptla_appid.apptoken",
            "client_key": "ptlc_clientid.clienttoken",
            "auto_integrated": "true",
        }
        assert tinker.call_args_list[1].args[0] == CLIENT_KEY_SCRIPT

    async def test_no_admin_user(self, env_file, tmp_path):
        store = FakeSettingsStore()
        with patch("panelmanager.panel.integrate.run_tinker", AsyncMock(return_value="NO_ADMIN")):
            with pytest.raises(IntegrationError, match="no admin"):
                await auto_integrate(store, env_file, str(tmp_path))
        assert store.values == {}

    def test_client_script_creates_account_key(self):
        assert "TYPE_ACCOUNT" in CLIENT_KEY_SCRIPT
        assert "TYPE_APPLICATION" not in CLIENT_KEY_SCRIPT
