"""Self-update routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from panelmanager.config.settings import get_settings
from panelmanager.security.auth import require_session
from panelmanager.updates.updater import check_for_update, install_update

router = APIRouter(prefix="/api/updates", tags=["updates"], dependencies=[Depends(require_session)])


@router.get("/check")
async def check():
    settings = get_settings()
    status = await check_for_update(settings.update_repo, settings.current_version)
    return {
        "current": status.current,
        "latest": status.latest,
        "update_available": status.update_available,
    }


@router.post("/install")
async def install():
    result = await install_update(get_settings().update_command)
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={"error": f"update command exited with {result.returncode}", "output": result.output},
        )
    return {"message": "Update installed", "output": result.output}
