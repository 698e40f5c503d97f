"""Shared outbound HTTP client.

One httpx.AsyncClient serves the panel client and the plugin marketplace,
created lazily and closed on application shutdown.
"""

import httpx

from panelmanager.config.settings import get_settings

_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        settings = get_settings()
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                settings.panel_timeout_seconds,
                connect=settings.panel_connect_timeout_seconds,
            ),
            follow_redirects=True,
        )
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
    _client = None
