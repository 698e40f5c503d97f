"""Finding a network allocation for a new server."""

import json
from dataclasses import dataclass

from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.client import PanelClient
from panelmanager.panel.errors import AllocationResolutionError

DEFAULT_GAME_PORT = 25565
DEFAULT_ALLOCATION_IP = "0.0.0.0"


@dataclass
class Allocation:
    id: int
    port: int
    assigned: bool
    ip: str = ""


def node_allocations_path(node_id) -> str:
    return f"/api/application/nodes/{node_id}/allocations"


def parse_allocations(data: bytes) -> list[Allocation]:
    """Parse a panel allocation list (`{"data": [{"attributes": {...}}]}`)."""
    try:
        payload = json.loads(data)
        return [
            Allocation(
                id=int(item["attributes"]["id"]),
                port=int(item["attributes"]["port"]),
                assigned=bool(item["attributes"].get("assigned", False)),
                ip=str(item["attributes"].get("ip", "")),
            )
            for item in payload.get("data", [])
        ]
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        raise AllocationResolutionError(f"failed to parse allocations: {e}") from e


def next_free_port(allocations: list[Allocation]) -> int:
    """One past the highest port seen on the node, never below the default game port."""
    highest = max((a.port for a in allocations), default=DEFAULT_GAME_PORT - 1)
    return max(DEFAULT_GAME_PORT, highest + 1)


async def list_node_allocations(panel: PanelClient, node_id) -> list[Allocation]:
    return parse_allocations(await panel.perform("GET", node_allocations_path(node_id)))


async def resolve_allocation(panel: PanelClient, node_id) -> int:
    """Return the id of an unassigned allocation on `node_id`, creating one if needed.

    Takes the first unassigned allocation in panel order. Otherwise creates
    one on 0.0.0.0 at the next free port and looks it up again. This is a
    single pass with no retry.

    Nothing serializes concurrent callers: two server creations on the same
    node can compute the same port. Callers that need that guarantee should
    hold a per-node lock around this call.
    """
    logger = get_audit_logger()

    allocations = await list_node_allocations(panel, node_id)
    for allocation in allocations:
        if not allocation.assigned:
            logger.info(
                "Using free allocation",
                extra={"audit_data": {
                    "node_id": node_id,
                    "allocation_id": allocation.id,
                    "port": allocation.port,
                }},
            )
            return allocation.id

    port = next_free_port(allocations)
    logger.info(
        "No free allocation, creating one",
        extra={"audit_data": {"node_id": node_id, "port": port}},
    )
    await panel.perform(
        "POST",
        node_allocations_path(node_id),
        {"ip": DEFAULT_ALLOCATION_IP, "ports": [str(port)]},
    )

    for allocation in await list_node_allocations(panel, node_id):
        if allocation.port == port and not allocation.assigned:
            logger.info(
                "Created allocation",
                extra={"audit_data": {
                    "node_id": node_id,
                    "allocation_id": allocation.id,
                    "port": port,
                }},
            )
            return allocation.id

    raise AllocationResolutionError(
        f"failed to find newly created allocation on node {node_id} (port {port})"
    )
