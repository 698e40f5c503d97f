"""Records persisted in the local database."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    id: int
    username: str
    password_hash: str
    is_admin: bool = True


@dataclass
class Session:
    token: str
    user_id: int
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass
class InstalledPlugin:
    server_id: str
    name: str
    version: str
    source: str  # "hangar" | "modrinth" | "spigot"
    installed_at: str = ""
