"""Tests for panelmanager/store — SQLite store and factory."""

from datetime import datetime, timedelta, timezone

import pytest

import panelmanager.store.factory as factory_mod
from panelmanager.store.models import InstalledPlugin, Session
from panelmanager.store.sqlite import SQLiteStore, UsernameTakenError


class TestSettings:

    async def test_absent_key(self, store):
        assert await store.get("panel_url") is None

    async def test_set_and_overwrite(self, store):
        await store.set("panel_url", "https://a.example.com")
        await store.set("panel_url", "https://b.example.com")
        assert await store.get("panel_url") == "https://b.example.com"

    async def test_legacy_fallback(self, store):
        await store.set("ptero_key", "ptla_old")
        assert await store.get_with_legacy("application_key") == "ptla_old"

    async def test_new_name_wins_over_legacy(self, store):
        await store.set("ptero_key", "ptla_old")
        await store.set("application_key", "ptla_new")
        assert await store.get_with_legacy("application_key") == "ptla_new"

    async def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "shared.db")
        await SQLiteStore(path).set("debug", "true")
        assert await SQLiteStore(path).get("debug") == "true"


class TestUsers:

    async def test_has_admin(self, store):
        assert not await store.has_admin()
        await store.create_admin("admin", "hash")
        assert await store.has_admin()

    async def test_get_user(self, store):
        created = await store.create_admin("admin", "hash")
        user = await store.get_user("admin")
        assert user.id == created.id
        assert user.password_hash == "hash"
        assert await store.get_user("nobody") is None

    async def test_duplicate_username(self, store):
        await store.create_admin("admin", "hash")
        with pytest.raises(UsernameTakenError):
            await store.create_admin("admin", "other")


class TestSessions:

    async def test_round_trip(self, store):
        user = await store.create_admin("admin", "hash")
        expires = datetime.now(timezone.utc) + timedelta(hours=1)
        await store.create_session(Session(token="tok", user_id=user.id, expires_at=expires))

        session = await store.get_session("tok")
        assert session.user_id == user.id
        assert session.expires_at == expires
        assert await store.get_session("other") is None

    async def test_delete_expired(self, store):
        user = await store.create_admin("admin", "hash")
        now = datetime.now(timezone.utc)
        await store.create_session(Session("old", user.id, now - timedelta(hours=1)))
        await store.create_session(Session("new", user.id, now + timedelta(hours=1)))

        assert await store.delete_expired_sessions(now) == 1
        assert await store.get_session("old") is None
        assert await store.get_session("new") is not None


class TestInstalledPlugins:

    async def test_add_list_remove(self, store):
        await store.add_plugin(InstalledPlugin("abc", "essentialsx", "2.20", "hangar"))
        await store.add_plugin(InstalledPlugin("abc", "luckperms", "5.4", "modrinth"))
        await store.add_plugin(InstalledPlugin("other", "worldedit", "7.3", "spigot"))

        plugins = await store.list_plugins("abc")
        assert [p.name for p in plugins] == ["essentialsx", "luckperms"]
        assert plugins[0].installed_at

        assert await store.remove_plugin("abc", "essentialsx")
        assert not await store.remove_plugin("abc", "essentialsx")
        assert [p.name for p in await store.list_plugins("abc")] == ["luckperms"]


class TestGetStore:

    def test_uses_configured_path(self, override_settings, tmp_path):
        override_settings(DATABASE_PATH=str(tmp_path / "configured.db"))
        store = factory_mod.get_store()
        assert isinstance(store, SQLiteStore)
        assert (tmp_path / "configured.db").exists()

    def test_singleton_returns_same_instance(self, override_settings, tmp_path):
        override_settings(DATABASE_PATH=str(tmp_path / "configured.db"))
        assert factory_mod.get_store() is factory_mod.get_store()
