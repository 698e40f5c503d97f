"""Plugin marketplace search and per-server plugin management."""

from fastapi import APIRouter, Depends, Query

from panelmanager.api.deps import get_panel_client
from panelmanager.api.schemas import InstallPlugin
from panelmanager.panel.client import PanelClient
from panelmanager.plugins.installer import install_plugin
from panelmanager.plugins.marketplace import search_plugins
from panelmanager.security.auth import require_session
from panelmanager.store.factory import get_store
from panelmanager.store.sqlite import SQLiteStore

router = APIRouter(prefix="/api", tags=["plugins"], dependencies=[Depends(require_session)])


@router.get("/plugins/search")
async def search(
    q: str = Query(""),
    source: str = Query("hangar"),
    version: str = Query("1.21.4"),
):
    results = await search_plugins(q, source=source, mc_version=version)
    return {"results": [r.to_dict() for r in results]}


@router.post("/servers/{server_id}/plugins/install")
async def install(
    server_id: str,
    body: InstallPlugin,
    panel: PanelClient = Depends(get_panel_client),
    store: SQLiteStore = Depends(get_store),
):
    plugin = await install_plugin(panel, store, server_id, body.source, body.slug, body.version)
    return {"message": "Plugin installed", "plugin": plugin.name, "version": plugin.version}


@router.get("/servers/{server_id}/plugins")
async def list_installed(server_id: str, store: SQLiteStore = Depends(get_store)):
    plugins = await store.list_plugins(server_id)
    return {
        "plugins": [
            {
                "name": p.name,
                "version": p.version,
                "source": p.source,
                "installed_at": p.installed_at,
            }
            for p in plugins
        ]
    }


@router.delete("/servers/{server_id}/plugins/{plugin}")
async def remove(server_id: str, plugin: str, store: SQLiteStore = Depends(get_store)):
    removed = await store.remove_plugin(server_id, plugin)
    return {"message": "Plugin removed" if removed else "Plugin not installed"}
