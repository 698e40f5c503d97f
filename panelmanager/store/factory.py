"""Factory for the process-wide store."""

from panelmanager.config.settings import get_settings
from panelmanager.store.sqlite import SQLiteStore

_store: SQLiteStore | None = None


def get_store() -> SQLiteStore:
    """Get the store singleton, creating the database file on first use.

    Also used as a FastAPI dependency.
    """
    global _store
    if _store is not None:
        return _store

    settings = get_settings()
    _store = SQLiteStore(settings.database_path)
    return _store
