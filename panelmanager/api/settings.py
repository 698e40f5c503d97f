"""Panel connection settings, local detection and connection testing."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from panelmanager.api.deps import decode_body
from panelmanager.api.schemas import ConnectionTest, SettingsUpdate
from panelmanager.config.settings import get_settings
from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.client import TRUTHY, PanelClient
from panelmanager.panel.detect import detect_panel_url
from panelmanager.panel.errors import DetectionError, PanelError
from panelmanager.panel.integrate import auto_integrate
from panelmanager.security.auth import require_session
from panelmanager.store import store as keys
from panelmanager.store.factory import get_store
from panelmanager.store.sqlite import SQLiteStore

router = APIRouter(prefix="/api/settings", tags=["settings"], dependencies=[Depends(require_session)])

CONNECTION_TEST_PATH = "/api/application/users"


@router.get("")
async def get_panel_settings(store: SQLiteStore = Depends(get_store)):
    debug = await store.get_with_legacy(keys.DEBUG)
    return {
        "panel_url": await store.get_with_legacy(keys.PANEL_URL),
        "has_application_key": bool(await store.get_with_legacy(keys.APPLICATION_KEY)),
        "has_client_key": bool(await store.get_with_legacy(keys.CLIENT_KEY)),
        "debug": debug.strip().lower() in TRUTHY,
        "auto_integrated": (await store.get(keys.AUTO_INTEGRATED)) == "true",
        "registration": not await store.has_admin(),
    }


@router.post("")
async def save_panel_settings(body: SettingsUpdate, store: SQLiteStore = Depends(get_store)):
    """Save non-empty fields; omitted or empty fields keep their stored value."""
    if body.panel_url:
        await store.set(keys.PANEL_URL, body.panel_url.strip())
    if body.application_key:
        await store.set(keys.APPLICATION_KEY, body.application_key.strip())
    if body.client_key:
        await store.set(keys.CLIENT_KEY, body.client_key.strip())
    if body.debug is not None:
        await store.set(keys.DEBUG, "true" if body.debug else "false")

    get_audit_logger().info(
        "Settings saved",
        extra={"audit_data": {
            "panel_url_changed": bool(body.panel_url),
            "application_key_changed": bool(body.application_key),
            "client_key_changed": bool(body.client_key),
            "debug": body.debug,
        }},
    )
    return {"message": "Settings saved"}


@router.post("/detect")
async def detect_local_panel(store: SQLiteStore = Depends(get_store)):
    settings = get_settings()
    try:
        url = detect_panel_url(settings.panel_env_path)
    except DetectionError as e:
        return JSONResponse(
            status_code=404,
            content={"error": str(e), "detected": False, "env_path": settings.panel_env_path},
        )

    await store.set(keys.PANEL_URL, url)
    return {
        "detected": True,
        "url": url,
        "env_path": settings.panel_env_path,
        "message": "Panel detected, URL saved.",
    }


@router.post("/test")
async def check_connection(body: ConnectionTest, store: SQLiteStore = Depends(get_store)):
    """Try an application API call with the given (or stored) URL and key."""
    url = body.url or await store.get_with_legacy(keys.PANEL_URL)
    key = body.key or await store.get_with_legacy(keys.APPLICATION_KEY)
    if not url or not key:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "URL and API key are required"},
        )

    try:
        panel = PanelClient(base_url=url, application_key=key, debug=True)
        data = await panel.perform("GET", CONNECTION_TEST_PATH)
    except PanelError as e:
        return {"success": False, "error": e.message}

    return {"success": True, "message": "Connection successful", "response": decode_body(data)}


@router.post("/auto-integrate")
async def integrate_local_panel(store: SQLiteStore = Depends(get_store)):
    """Provision both API keys on a panel installed on this host."""
    settings = get_settings()
    result = await auto_integrate(store, settings.panel_env_path, settings.panel_install_dir)
    return {
        "message": "Auto-integration complete",
        "panel_url": result.panel_url,
        "has_application_key": True,
        "has_client_key": True,
    }
