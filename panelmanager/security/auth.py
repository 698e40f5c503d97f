"""Operator authentication.

A single admin account is created on first run; after that registration is
closed. Logging in issues an opaque session token which every protected
route validates via the Authorization: Bearer header.
"""

import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from panelmanager.config.settings import get_settings
from panelmanager.store.factory import get_store
from panelmanager.store.models import Session
from panelmanager.store.sqlite import SQLiteStore

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def generate_token() -> str:
    return secrets.token_hex(32)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def issue_session(store: SQLiteStore, user_id: int) -> Session:
    settings = get_settings()
    now = utcnow()
    # Prune on login; there is no background cleanup task.
    await store.delete_expired_sessions(now)
    session = Session(
        token=generate_token(),
        user_id=user_id,
        expires_at=now + timedelta(hours=settings.session_ttl_hours),
    )
    await store.create_session(session)
    return session


async def require_session(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    store: SQLiteStore = Depends(get_store),
) -> Session:
    """FastAPI dependency that validates the operator's session token."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing token")

    session = await store.get_session(credentials.credentials)
    if session is None or session.is_expired(utcnow()):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return session
