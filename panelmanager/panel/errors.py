"""Errors raised while talking to the panel API.

Every error reaches the route that triggered it; the handlers registered in
panelmanager.main turn them into JSON responses.
"""

import json
from dataclasses import dataclass

from panelmanager.panel.scope import CredentialScope


class PanelError(Exception):
    """Base class for panel client errors."""

    status_code = 500

    @property
    def message(self) -> str:
        return str(self)


class ConfigurationError(PanelError):
    """Panel URL or both API keys are not configured."""

    status_code = 400


class CredentialMissingError(PanelError):
    """The key for this endpoint's scope is not configured."""

    status_code = 400

    def __init__(self, scope: CredentialScope):
        self.scope = scope
        super().__init__(f"{scope.value} API key not configured")


class TransportError(PanelError):
    """The panel could not be reached."""

    status_code = 502


class RemoteError(PanelError):
    """The panel answered with an error status."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int, body: str = "", detail: str = ""):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body
        self.detail = detail


class AllocationResolutionError(PanelError):
    status_code = 400


class DetectionError(PanelError):
    """No local panel installation was found."""

    status_code = 404


@dataclass
class ErrorEntry:
    code: str
    status: str
    detail: str


def decode_error_envelope(body: bytes) -> list[ErrorEntry] | None:
    """Decode a panel `{"errors": [...]}` body.

    Returns None when the body is not a well-formed envelope or carries no
    entries; the caller then falls back to reporting the raw body.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if not isinstance(errors, list) or not errors:
        return None

    entries = []
    for item in errors:
        if not isinstance(item, dict):
            return None
        entries.append(ErrorEntry(
            code=str(item.get("code", "")),
            status=str(item.get("status", "")),
            detail=str(item.get("detail", "")),
        ))
    return entries


def remote_error_from_response(status_code: int, body: bytes) -> RemoteError:
    """Normalize a >= 400 panel response into a single RemoteError."""
    text = body.decode(errors="replace")
    entries = decode_error_envelope(body)
    if entries:
        detail = entries[0].detail
        return RemoteError(detail, upstream_status=status_code, body=text, detail=detail)
    return RemoteError(
        f"panel API error (status {status_code}): {text}",
        upstream_status=status_code,
        body=text,
    )
