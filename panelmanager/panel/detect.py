"""Detection of a panel installed on the same host.

The panel's Laravel `.env` file gives us its public URL. Only the URL is
stored automatically; API keys are either entered by the operator or
provisioned explicitly through auto-integration.
"""

import os
from dataclasses import dataclass

from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.errors import DetectionError
from panelmanager.store import store as keys
from panelmanager.store.store import SettingsStore


@dataclass
class PanelEnvConfig:
    app_url: str = ""
    db_host: str = ""
    db_port: str = "3306"
    db_database: str = ""
    db_username: str = ""
    db_password: str = ""


ENV_FIELDS = {
    "APP_URL": "app_url",
    "DB_HOST": "db_host",
    "DB_PORT": "db_port",
    "DB_DATABASE": "db_database",
    "DB_USERNAME": "db_username",
    "DB_PASSWORD": "db_password",
}


def parse_env(text: str) -> dict[str, str]:
    """Parse KEY=value lines, skipping comments and stripping quotes."""
    values = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip().strip("\"'")
    return values


def read_panel_env(path: str) -> PanelEnvConfig:
    if not os.path.isfile(path):
        raise DetectionError(f"panel not found at {os.path.dirname(path)}")

    try:
        # Bytes outside UTF-8 (e.g. a Latin-1 APP_NAME) must not abort detection
        with open(path, encoding="utf-8", errors="replace") as f:
            values = parse_env(f.read())
    except OSError as e:
        raise DetectionError(f"cannot read panel .env: {e}") from e

    config = PanelEnvConfig()
    for env_key, attr in ENV_FIELDS.items():
        if values.get(env_key):
            setattr(config, attr, values[env_key])

    if not config.app_url:
        raise DetectionError(f"APP_URL not found in {path}")
    return config


def detect_panel_url(path: str) -> str:
    return read_panel_env(path).app_url


async def check_auto_detection(store: SettingsStore, path: str) -> str | None:
    """Store the local panel URL if none is configured yet.

    Best effort: never raises. Returns the detected URL, or None.
    """
    logger = get_audit_logger()
    if await store.get_with_legacy(keys.PANEL_URL):
        return None

    logger.info("No panel URL configured, checking for a local panel")
    try:
        url = detect_panel_url(path)
    except DetectionError as e:
        logger.info("Local panel not detected", extra={"audit_data": {"reason": str(e)}})
        return None

    await store.set(keys.PANEL_URL, url)
    logger.info(
        "Detected local panel, API key still required",
        extra={"audit_data": {"panel_url": url}},
    )
    return url
