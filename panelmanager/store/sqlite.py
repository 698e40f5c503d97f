"""SQLite-backed store for settings, the operator account, sessions and plugins."""

import sqlite3
from contextlib import closing
from datetime import datetime

from panelmanager.store.models import InstalledPlugin, Session, User
from panelmanager.store.store import SettingsStore

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    password TEXT NOT NULL,
    is_admin BOOLEAN DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    token TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    expires_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS installed_plugins (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    server_id TEXT NOT NULL,
    plugin_name TEXT NOT NULL,
    plugin_version TEXT NOT NULL,
    source TEXT NOT NULL,
    installed_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class UsernameTakenError(Exception):
    pass


class SQLiteStore(SettingsStore):
    """Single-file embedded database. Opens a short-lived connection per call."""

    def __init__(self, path: str):
        self._path = path
        with closing(self._connect()) as conn:
            conn.executescript(SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, timeout=5)
        conn.row_factory = sqlite3.Row
        return conn

    # --- settings ---

    async def get(self, key: str) -> str | None:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value)
            )

    # --- operator account ---

    async def has_admin(self) -> bool:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM users WHERE is_admin = 1").fetchone()
        return row["n"] > 0

    async def create_admin(self, username: str, password_hash: str) -> User:
        try:
            with closing(self._connect()) as conn, conn:
                cur = conn.execute(
                    "INSERT INTO users (username, password, is_admin) VALUES (?, ?, 1)",
                    (username, password_hash),
                )
        except sqlite3.IntegrityError as e:
            raise UsernameTakenError(username) from e
        return User(id=cur.lastrowid, username=username, password_hash=password_hash)

    async def get_user(self, username: str) -> User | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT id, username, password, is_admin FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        if row is None:
            return None
        return User(
            id=row["id"],
            username=row["username"],
            password_hash=row["password"],
            is_admin=bool(row["is_admin"]),
        )

    # --- sessions ---

    async def create_session(self, session: Session) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
                (session.token, session.user_id, session.expires_at.isoformat()),
            )

    async def get_session(self, token: str) -> Session | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT token, user_id, expires_at FROM sessions WHERE token = ?", (token,)
            ).fetchone()
        if row is None:
            return None
        return Session(
            token=row["token"],
            user_id=row["user_id"],
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    async def delete_expired_sessions(self, now: datetime) -> int:
        with closing(self._connect()) as conn, conn:
            cur = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (now.isoformat(),))
        return cur.rowcount

    # --- installed plugins ---

    async def add_plugin(self, plugin: InstalledPlugin) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO installed_plugins (server_id, plugin_name, plugin_version, source)"
                " VALUES (?, ?, ?, ?)",
                (plugin.server_id, plugin.name, plugin.version, plugin.source),
            )

    async def list_plugins(self, server_id: str) -> list[InstalledPlugin]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT server_id, plugin_name, plugin_version, source, installed_at"
                " FROM installed_plugins WHERE server_id = ? ORDER BY id",
                (server_id,),
            ).fetchall()
        return [
            InstalledPlugin(
                server_id=row["server_id"],
                name=row["plugin_name"],
                version=row["plugin_version"],
                source=row["source"],
                installed_at=str(row["installed_at"]),
            )
            for row in rows
        ]

    async def remove_plugin(self, server_id: str, name: str) -> bool:
        with closing(self._connect()) as conn, conn:
            cur = conn.execute(
                "DELETE FROM installed_plugins WHERE server_id = ? AND plugin_name = ?",
                (server_id, name),
            )
        return cur.rowcount > 0
