"""Install a marketplace plugin onto a panel server."""

import json

import httpx

from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.client import PanelClient
from panelmanager.panel.http import get_http_client
from panelmanager.plugins.marketplace import (
    SOURCES,
    PluginSourceError,
    download_plugin,
    resolve_download_url,
)
from panelmanager.store.models import InstalledPlugin
from panelmanager.store.sqlite import SQLiteStore

PLUGIN_DIRECTORY = "/plugins"


async def get_upload_url(panel: PanelClient, server_id: str) -> str:
    """Ask the panel for a signed upload URL for the server's file system."""
    data = await panel.perform("GET", f"/api/client/servers/{server_id}/files/upload")
    try:
        return json.loads(data)["attributes"]["url"]
    except (ValueError, KeyError, TypeError) as e:
        raise PluginSourceError(f"unexpected upload URL response: {e}") from e


async def upload_file(upload_url: str, filename: str, content: bytes, directory: str) -> None:
    client = get_http_client()
    try:
        response = await client.post(
            upload_url,
            params={"directory": directory},
            files={"files": (filename, content, "application/java-archive")},
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise PluginSourceError(f"plugin upload failed: {e}") from e


async def install_plugin(
    panel: PanelClient,
    store: SQLiteStore,
    server_id: str,
    source: str,
    slug: str,
    version: str = "",
) -> InstalledPlugin:
    if source not in SOURCES:
        raise PluginSourceError(f"unknown plugin source: {source}")
    if not slug:
        raise PluginSourceError("plugin slug is required")

    download_url = await resolve_download_url(source, slug, version)
    content = await download_plugin(download_url)

    upload_url = await get_upload_url(panel, server_id)
    await upload_file(upload_url, f"{slug}.jar", content, PLUGIN_DIRECTORY)

    plugin = InstalledPlugin(server_id=server_id, name=slug, version=version or "latest", source=source)
    await store.add_plugin(plugin)

    get_audit_logger().info(
        "Plugin installed",
        extra={"audit_data": {
            "server_id": server_id,
            "plugin": slug,
            "source": source,
            "version": plugin.version,
            "size_bytes": len(content),
        }},
    )
    return plugin
