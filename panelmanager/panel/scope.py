"""Which panel credential an endpoint needs."""

from enum import Enum

CLIENT_API_MARKER = "/api/client"


class CredentialScope(str, Enum):
    APPLICATION = "application"
    CLIENT = "client"


def classify_path(path: str) -> CredentialScope:
    """Client API routes live under /api/client; everything else is application-scoped."""
    route = path.split("?", 1)[0]
    if route.endswith(CLIENT_API_MARKER) or f"{CLIENT_API_MARKER}/" in route:
        return CredentialScope.CLIENT
    return CredentialScope.APPLICATION
