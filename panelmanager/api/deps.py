"""Dependencies and helpers shared by the API routers."""

import json

from fastapi import Depends

from panelmanager.panel.client import PanelClient
from panelmanager.store.factory import get_store
from panelmanager.store.sqlite import SQLiteStore


async def get_panel_client(store: SQLiteStore = Depends(get_store)) -> PanelClient:
    """Fresh panel client per request, built from the stored settings."""
    return await PanelClient.from_store(store)


def decode_body(data: bytes):
    """Decode a panel response body for re-encoding to the operator."""
    if not data:
        return {}
    try:
        return json.loads(data)
    except ValueError:
        return {"raw": data.decode(errors="replace")}
