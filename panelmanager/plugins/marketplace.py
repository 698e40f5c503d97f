"""Plugin search and download across Hangar, Modrinth and Spiget.

Catalog outages are not fatal: a failed search returns no results and is
logged, so one unreachable catalog does not break the plugin browser.
"""

import json
from dataclasses import asdict, dataclass
from urllib.parse import quote

import httpx

from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.errors import PanelError
from panelmanager.panel.http import get_http_client

HANGAR_API = "https://hangar.papermc.io/api/v1"
MODRINTH_API = "https://api.modrinth.com/v2"
SPIGET_API = "https://api.spiget.org/v2"

SOURCES = ("hangar", "modrinth", "spigot")
SEARCH_LIMIT = 20


class PluginSourceError(PanelError):
    """A plugin could not be located, downloaded or uploaded."""

    status_code = 502


@dataclass
class PluginResult:
    name: str
    description: str
    downloads: int
    source: str
    slug: str
    icon_url: str = ""
    version: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


async def _get_json(url: str, params: dict | None = None):
    client = get_http_client()
    response = await client.get(url, params=params)
    response.raise_for_status()
    return response.json()


async def search_hangar(query: str, mc_version: str) -> list[PluginResult]:
    data = await _get_json(
        f"{HANGAR_API}/projects",
        params={"q": query, "limit": SEARCH_LIMIT, "platform": "PAPER", "version": mc_version},
    )
    return [
        PluginResult(
            name=p.get("name", ""),
            description=p.get("description", "") or "",
            downloads=int((p.get("stats") or {}).get("downloads", 0)),
            source="hangar",
            slug=(p.get("namespace") or {}).get("slug", ""),
            icon_url=p.get("avatarUrl", "") or "",
        )
        for p in data.get("result", [])
    ]


async def search_modrinth(query: str, mc_version: str, project_type: str = "plugin") -> list[PluginResult]:
    facets = json.dumps([[f"project_type:{project_type}"], [f"versions:{mc_version}"]])
    data = await _get_json(
        f"{MODRINTH_API}/search",
        params={"query": query, "facets": facets, "limit": SEARCH_LIMIT},
    )
    return [
        PluginResult(
            name=p.get("title", ""),
            description=p.get("description", "") or "",
            downloads=int(p.get("downloads", 0)),
            source="modrinth",
            slug=p.get("slug", ""),
            icon_url=p.get("icon_url", "") or "",
        )
        for p in data.get("hits", [])
    ]


async def search_spigot(query: str) -> list[PluginResult]:
    data = await _get_json(
        f"{SPIGET_API}/search/resources/{quote(query, safe='')}",
        params={"size": SEARCH_LIMIT},
    )
    results = []
    for p in data:
        icon = (p.get("icon") or {}).get("url", "")
        results.append(PluginResult(
            name=p.get("name", ""),
            description=p.get("tag", "") or "",
            downloads=int(p.get("downloads", 0)),
            source="spigot",
            slug=str(p.get("id", "")),
            icon_url=f"https://www.spigotmc.org/{icon}" if icon else "",
        ))
    return results


async def search_plugins(query: str, source: str = "hangar", mc_version: str = "1.21.4") -> list[PluginResult]:
    """Search one catalog. Unknown sources and catalog failures yield []."""
    try:
        if source == "hangar":
            return await search_hangar(query, mc_version)
        if source == "modrinth":
            return await search_modrinth(query, mc_version)
        if source == "spigot":
            return await search_spigot(query)
    except (httpx.HTTPError, ValueError, TypeError, AttributeError, KeyError) as e:
        get_audit_logger().warning(
            "Plugin search failed",
            extra={"audit_data": {"source": source, "query": query, "error": str(e)}},
        )
    return []


async def resolve_download_url(source: str, slug: str, version: str = "") -> str:
    """Work out where to download a plugin jar from."""
    if source == "hangar":
        return f"{HANGAR_API}/projects/{slug}/versions/{version or 'latest'}/PAPER/download"
    if source == "spigot":
        return f"{SPIGET_API}/resources/{slug}/download"
    if source == "modrinth":
        try:
            versions = await _get_json(f"{MODRINTH_API}/project/{slug}/version")
        except (httpx.HTTPError, ValueError) as e:
            raise PluginSourceError(f"cannot list modrinth versions for {slug}: {e}") from e
        if not isinstance(versions, list):
            raise PluginSourceError(f"unexpected modrinth version list for {slug}")
        for entry in versions:
            if not isinstance(entry, dict) or (version and entry.get("version_number") != version):
                continue
            files = entry.get("files") or []
            if files and isinstance(files[0], dict) and files[0].get("url"):
                return files[0]["url"]
        raise PluginSourceError(f"no downloadable modrinth file for {slug}")
    raise PluginSourceError(f"unknown plugin source: {source}")


async def download_plugin(url: str) -> bytes:
    client = get_http_client()
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise PluginSourceError(f"plugin download failed: {e}") from e
    return response.content
