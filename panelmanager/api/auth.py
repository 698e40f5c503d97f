"""Operator registration and login. These routes are public."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from panelmanager.api.schemas import Credentials
from panelmanager.logging.audit import get_audit_logger
from panelmanager.security.auth import hash_password, issue_session, verify_password
from panelmanager.store.factory import get_store
from panelmanager.store.sqlite import SQLiteStore, UsernameTakenError

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register")
async def register(body: Credentials, store: SQLiteStore = Depends(get_store)):
    """Create the admin account. Closed once an admin exists."""
    if await store.has_admin():
        return JSONResponse(status_code=403, content={"error": "Registration disabled"})

    try:
        await store.create_admin(body.username, hash_password(body.password))
    except UsernameTakenError:
        return JSONResponse(status_code=409, content={"error": "Username already exists"})

    get_audit_logger().info("Admin account created", extra={"audit_data": {"username": body.username}})
    return JSONResponse(status_code=201, content={"message": "Admin account created"})


@router.post("/login")
async def login(body: Credentials, store: SQLiteStore = Depends(get_store)):
    logger = get_audit_logger()
    user = await store.get_user(body.username)
    if user is None or not verify_password(body.password, user.password_hash):
        logger.warning("Login failed", extra={"audit_data": {"username": body.username}})
        return JSONResponse(status_code=401, content={"error": "Invalid credentials"})

    session = await issue_session(store, user.id)
    logger.info("Login", extra={"audit_data": {"username": user.username}})
    return {"token": session.token, "expires": session.expires_at.isoformat()}
