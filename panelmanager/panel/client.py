"""Panel API client.

Holds the two panel credentials and forwards requests with whichever one the
endpoint needs:

- application key: administrative routes (/api/application/...)
- client key: per-server routes (/api/client/...)

A client is built per inbound request from the settings store, so new keys
take effect immediately. Successful responses are returned as raw bytes;
each caller decodes the shape it expects.
"""

import json

import httpx

from panelmanager.logging.audit import RequestTimer, get_audit_logger
from panelmanager.panel.errors import (
    ConfigurationError,
    CredentialMissingError,
    TransportError,
    remote_error_from_response,
)
from panelmanager.panel.http import get_http_client
from panelmanager.panel.scope import CredentialScope, classify_path
from panelmanager.store import store as keys
from panelmanager.store.store import SettingsStore

TRUTHY = {"1", "true", "yes", "on"}


class PanelClient:
    """Forwards requests to the panel API with scope-appropriate credentials."""

    def __init__(
        self,
        base_url: str,
        application_key: str = "",
        client_key: str = "",
        debug: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not base_url:
            raise ConfigurationError("panel URL not configured")
        if not application_key and not client_key:
            raise ConfigurationError("panel API key not configured")

        self.base_url = base_url.rstrip("/")
        self.application_key = application_key
        # Known weakness: without a client key, per-server calls reuse the
        # application key, so both trust scopes share one secret.
        self.client_key_is_fallback = not client_key
        self.client_key = client_key or application_key
        self.debug = debug
        self._client = http_client

    @classmethod
    async def from_store(cls, store: SettingsStore, **kwargs) -> "PanelClient":
        """Build a client from the current stored settings."""
        debug = await store.get_with_legacy(keys.DEBUG)
        return cls(
            base_url=await store.get_with_legacy(keys.PANEL_URL),
            application_key=await store.get_with_legacy(keys.APPLICATION_KEY),
            client_key=await store.get_with_legacy(keys.CLIENT_KEY),
            debug=debug.strip().lower() in TRUTHY,
            **kwargs,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = get_http_client()
        return self._client

    def key_for(self, scope: CredentialScope) -> str:
        if scope is CredentialScope.CLIENT:
            return self.client_key
        return self.application_key

    def _build_headers(self, api_key: str) -> dict:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def perform(self, method: str, path: str, body=None) -> bytes:
        """Send one request to the panel and return the raw response body.

        Raises:
            CredentialMissingError: the key for the path's scope is empty.
            TransportError: the panel could not be reached.
            RemoteError: the panel answered with status >= 400.
        """
        logger = get_audit_logger()
        scope = classify_path(path)
        api_key = self.key_for(scope)
        if not api_key:
            raise CredentialMissingError(scope)

        content = json.dumps(body).encode() if body is not None else None
        url = f"{self.base_url}{path}"

        if self.debug:
            logger.info(
                "Panel request",
                extra={"audit_data": {
                    "method": method,
                    "url": url,
                    "scope": scope.value,
                    "client_key_fallback": scope is CredentialScope.CLIENT and self.client_key_is_fallback,
                    "request_body": content.decode() if content else None,
                }},
            )

        client = self._get_client()
        try:
            with RequestTimer() as timer:
                response = await client.request(
                    method, url, content=content, headers=self._build_headers(api_key)
                )
        except httpx.HTTPError as e:
            logger.warning(
                "Panel unreachable",
                extra={"audit_data": {"method": method, "url": url, "error": str(e)}},
            )
            raise TransportError(f"request failed: {e}") from e

        data = response.content

        if self.debug:
            logger.info(
                "Panel response",
                extra={"audit_data": {
                    "method": method,
                    "url": url,
                    "status": response.status_code,
                    "latency_ms": timer.elapsed_ms,
                    "response_body": data.decode(errors="replace"),
                }},
            )

        if response.status_code >= 400:
            error = remote_error_from_response(response.status_code, data)
            logger.warning(
                "Panel error response",
                extra={"audit_data": {
                    "method": method,
                    "url": url,
                    "status": response.status_code,
                    "error": error.message,
                }},
            )
            raise error

        return data
