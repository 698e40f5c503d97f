"""Settings store abstraction.

The panel client only needs a key/value view of the database, so that is
all this interface exposes. Tests pass small in-memory fakes.
"""

from abc import ABC, abstractmethod

# Keys read by the panel client
PANEL_URL = "panel_url"
APPLICATION_KEY = "application_key"
CLIENT_KEY = "client_key"
DEBUG = "debug"
AUTO_INTEGRATED = "auto_integrated"

# Names written by older releases, still honoured on read
LEGACY_KEYS = {
    PANEL_URL: "ptero_url",
    APPLICATION_KEY: "ptero_key",
    CLIENT_KEY: "ptero_client_key",
    DEBUG: "debug_mode",
}


class SettingsStore(ABC):
    """Abstract key/value settings lookup."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    async def get_with_legacy(self, key: str) -> str:
        """Read `key`, falling back to its legacy name. Absent reads as ""."""
        value = await self.get(key)
        if not value and key in LEGACY_KEYS:
            value = await self.get(LEGACY_KEYS[key])
        return value or ""
