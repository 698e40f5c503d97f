"""Game server routes, forwarded to the panel API.

Server ids are the panel's numeric ids for application routes and its short
identifiers for client routes; both are passed through untouched.
"""

import json
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from panelmanager.api.deps import decode_body, get_panel_client
from panelmanager.api.schemas import CreateServer, DeleteFiles, PowerAction
from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.allocations import resolve_allocation
from panelmanager.panel.client import PanelClient
from panelmanager.panel.errors import PanelError
from panelmanager.security.auth import require_session

router = APIRouter(prefix="/api", tags=["servers"], dependencies=[Depends(require_session)])

DEFAULT_DOCKER_IMAGE = "ghcr.io/pterodactyl/yolks:java_21"
DEFAULT_STARTUP = "java -Xms128M -Xmx{{SERVER_MEMORY}}M -jar server.jar"


def _client_server_path(server_id: str, suffix: str = "") -> str:
    return f"/api/client/servers/{server_id}{suffix}"


# --- panel metadata ---


@router.get("/nodes")
async def list_nodes(panel: PanelClient = Depends(get_panel_client)):
    return decode_body(await panel.perform("GET", "/api/application/nodes"))


@router.get("/eggs")
async def list_eggs(panel: PanelClient = Depends(get_panel_client)):
    return decode_body(await panel.perform("GET", "/api/application/nests?include=eggs"))


@router.post("/eggs/sync")
async def sync_eggs(panel: PanelClient = Depends(get_panel_client)):
    data = await panel.perform("GET", "/api/application/nests?include=eggs")
    return {"message": "Eggs synced", "data": decode_body(data)}


# --- servers ---


@router.get("/servers")
async def list_servers(panel: PanelClient = Depends(get_panel_client)):
    return decode_body(await panel.perform("GET", "/api/application/servers?include=allocations,egg"))


@router.get("/servers/{server_id}")
async def get_server(server_id: str, panel: PanelClient = Depends(get_panel_client)):
    data = await panel.perform("GET", f"/api/application/servers/{server_id}?include=allocations,egg")
    return decode_body(data)


async def _egg_launch_config(panel: PanelClient, nest_id: int, egg_id: int) -> tuple[str, str]:
    """Docker image and startup command from the egg, or defaults if unavailable."""
    try:
        data = await panel.perform("GET", f"/api/application/nests/{nest_id}/eggs/{egg_id}?include=variables")
        attributes = json.loads(data).get("attributes", {})
    except (PanelError, ValueError, AttributeError) as e:
        get_audit_logger().warning(
            "Egg lookup failed, using defaults",
            extra={"audit_data": {"nest_id": nest_id, "egg_id": egg_id, "error": str(e)}},
        )
        return DEFAULT_DOCKER_IMAGE, DEFAULT_STARTUP

    return (
        attributes.get("docker_image") or DEFAULT_DOCKER_IMAGE,
        attributes.get("startup") or DEFAULT_STARTUP,
    )


@router.post("/servers")
async def create_server(body: CreateServer, panel: PanelClient = Depends(get_panel_client)):
    allocation_id = await resolve_allocation(panel, body.node_id)
    docker_image, startup = await _egg_launch_config(panel, body.nest_id, body.egg_id)

    payload = {
        "name": body.name,
        "user": body.user_id,
        "egg": body.egg_id,
        "docker_image": docker_image,
        "startup": startup,
        "environment": {
            "SERVER_JARFILE": "server.jar",
            "BUILD_NUMBER": "latest",
        },
        "limits": {
            "memory": body.memory,
            "swap": 0,
            "disk": body.disk,
            "io": 500,
            "cpu": body.cpu,
        },
        "feature_limits": {
            "databases": body.databases,
            "allocations": body.allocations,
            "backups": body.backups,
        },
        "allocation": {"default": allocation_id},
    }
    data = await panel.perform("POST", "/api/application/servers", payload)

    get_audit_logger().info(
        "Server created",
        extra={"audit_data": {"name": body.name, "node_id": body.node_id, "allocation_id": allocation_id}},
    )
    return JSONResponse(status_code=201, content=decode_body(data))


@router.delete("/servers/{server_id}")
async def delete_server(server_id: str, panel: PanelClient = Depends(get_panel_client)):
    await panel.perform("DELETE", f"/api/application/servers/{server_id}")
    get_audit_logger().info("Server deleted", extra={"audit_data": {"server_id": server_id}})
    return {"message": "Server deleted"}


@router.post("/servers/{server_id}/power")
async def power_action(server_id: str, body: PowerAction, panel: PanelClient = Depends(get_panel_client)):
    await panel.perform("POST", _client_server_path(server_id, "/power"), {"signal": body.signal})
    return {"message": "Power action sent"}


@router.get("/servers/{server_id}/console")
async def console_credentials(server_id: str, panel: PanelClient = Depends(get_panel_client)):
    """Websocket URL and token for the server console."""
    data = decode_body(await panel.perform("GET", _client_server_path(server_id, "/websocket")))
    ws = data.get("data", {}) if isinstance(data, dict) else {}
    return {"socket": ws.get("socket", ""), "token": ws.get("token", "")}


# --- files ---


@router.get("/servers/{server_id}/files")
async def list_files(
    server_id: str,
    directory: str = Query("/"),
    panel: PanelClient = Depends(get_panel_client),
):
    path = _client_server_path(server_id, f"/files/list?directory={quote(directory)}")
    return decode_body(await panel.perform("GET", path))


@router.post("/servers/{server_id}/files/upload")
async def file_upload_url(server_id: str, panel: PanelClient = Depends(get_panel_client)):
    return decode_body(await panel.perform("GET", _client_server_path(server_id, "/files/upload")))


@router.delete("/servers/{server_id}/files")
async def delete_files(server_id: str, body: DeleteFiles, panel: PanelClient = Depends(get_panel_client)):
    await panel.perform("POST", _client_server_path(server_id, "/files/delete"), body.model_dump())
    return {"message": "Files deleted"}


@router.get("/servers/{server_id}/files/download")
async def file_download_url(
    server_id: str,
    file: str = Query(..., min_length=1),
    panel: PanelClient = Depends(get_panel_client),
):
    path = _client_server_path(server_id, f"/files/download?file={quote(file)}")
    return decode_body(await panel.perform("GET", path))


# --- allocations ---


@router.get("/servers/{server_id}/allocations")
async def list_allocations(server_id: str, panel: PanelClient = Depends(get_panel_client)):
    return decode_body(await panel.perform("GET", _client_server_path(server_id, "/network/allocations")))


@router.post("/servers/{server_id}/allocations")
async def add_allocation(server_id: str, panel: PanelClient = Depends(get_panel_client)):
    data = await panel.perform("POST", _client_server_path(server_id, "/network/allocations"))
    return {"message": "Allocation added", "data": decode_body(data)}


@router.delete("/servers/{server_id}/allocations/{allocation_id}")
async def remove_allocation(server_id: str, allocation_id: int, panel: PanelClient = Depends(get_panel_client)):
    await panel.perform("DELETE", _client_server_path(server_id, f"/network/allocations/{allocation_id}"))
    return {"message": "Allocation removed"}
