"""PanelManager: FastAPI application entry point.

An administrative service for a game-server panel. It authenticates one
operator, keeps the panel URL and API keys in a local database, and forwards
operator actions to the panel API with the right credential for each route.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from panelmanager.api import auth, plugins, servers, settings, updates
from panelmanager.config.settings import get_settings
from panelmanager.logging.audit import (
    generate_request_id,
    get_audit_logger,
    request_id_var,
    setup_logging,
)
from panelmanager.panel.detect import check_auto_detection
from panelmanager.panel.errors import CredentialMissingError, PanelError, RemoteError
from panelmanager.panel.http import close_http_client
from panelmanager.store.factory import get_store

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging()
    config = get_settings()
    if config.auto_detect_panel:
        await check_auto_detection(get_store(), config.panel_env_path)
    get_audit_logger().info("PanelManager started", extra={"audit_data": {"version": VERSION}})
    yield
    await close_http_client()
    get_audit_logger().info("PanelManager stopped")


app = FastAPI(
    title="PanelManager",
    description="Administrative proxy for a game-server panel API",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    rid = generate_request_id()
    token = request_id_var.set(rid)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(PanelError)
async def panel_error_handler(request: Request, exc: PanelError):
    content = {"error": exc.message}
    if isinstance(exc, CredentialMissingError):
        content["scope"] = exc.scope.value
    if isinstance(exc, RemoteError):
        content["upstream_status"] = exc.upstream_status

    get_audit_logger().warning(
        "Request failed",
        extra={"audit_data": {
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error": exc.message,
        }},
    )
    return JSONResponse(status_code=exc.status_code, content=content)


# Registered on Starlette's base class so routing 404/405 share the shape
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}


app.include_router(auth.router)
app.include_router(settings.router)
app.include_router(servers.router)
app.include_router(plugins.router)
app.include_router(updates.router)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    config = get_settings()
    uvicorn.run(app, host=config.host, port=config.port)
