"""Provision panel API keys on a local installation via `php artisan tinker`.

Tokens are encrypted with the panel's APP_KEY, so they have to be created
through the panel's own models rather than inserted into its database.
"""

import asyncio
from dataclasses import dataclass

from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.detect import read_panel_env
from panelmanager.panel.errors import PanelError
from panelmanager.store import store as keys
from panelmanager.store.store import SettingsStore

KEY_MEMO = "PanelManager Auto-Generated"

APPLICATION_KEY_SCRIPT = f"""
$user = \\Pterodactyl\\Models\\User::where('root_admin', true)->first();
if (!$user) {{ echo 'NO_ADMIN'; exit; }}
$key = \\Pterodactyl\\Models\\ApiKey::create([
    'user_id' => $user->id,
    'key_type' => \\Pterodactyl\\Models\\ApiKey::TYPE_APPLICATION,
    'identifier' => \\Illuminate\\Support\\Str::random(16),
    'token' => $token = \\Illuminate\\Support\\Str::random(32),
    'memo' => '{KEY_MEMO}',
    'allowed_ips' => [],
]);
echo $key->identifier . '.' . $token;
"""

CLIENT_KEY_SCRIPT = APPLICATION_KEY_SCRIPT.replace("TYPE_APPLICATION", "TYPE_ACCOUNT")


class IntegrationError(PanelError):
    status_code = 500


@dataclass
class IntegrationResult:
    panel_url: str
    application_key: str
    client_key: str


async def run_tinker(script: str, cwd: str) -> str:
    """Run a tinker script in the panel directory and return its stdout."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "php", "artisan", "tinker", "--execute", script,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise IntegrationError(f"cannot run artisan: {e}") from e

    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise IntegrationError(
            f"artisan exited with {proc.returncode}: {stderr.decode(errors='replace').strip()}"
        )
    return stdout.decode(errors="replace").strip()


async def auto_integrate(store: SettingsStore, env_path: str, install_dir: str) -> IntegrationResult:
    """Create an application and a client key on the local panel and store them."""
    logger = get_audit_logger()
    config = read_panel_env(env_path)

    app_token = await run_tinker(APPLICATION_KEY_SCRIPT, install_dir)
    if not app_token or app_token == "NO_ADMIN":
        raise IntegrationError("no admin user found in panel")
    client_token = await run_tinker(CLIENT_KEY_SCRIPT, install_dir)
    if not client_token:
        raise IntegrationError("failed to create client API key")

    result = IntegrationResult(
        panel_url=config.app_url,
        application_key=f"ptla_{app_token}",
        client_key=f"ptlc_{client_token}",
    )

    await store.set(keys.PANEL_URL, result.panel_url)
    await store.set(keys.APPLICATION_KEY, result.application_key)
    await store.set(keys.CLIENT_KEY, result.client_key)
    await store.set(keys.AUTO_INTEGRATED, "true")

    logger.info("Auto-integrated with local panel", extra={"audit_data": {"panel_url": config.app_url}})
    return result
