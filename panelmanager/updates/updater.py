"""Self-update: release check against GitHub and a shell-out installer."""

import asyncio
from dataclasses import dataclass

import httpx

from panelmanager.logging.audit import get_audit_logger
from panelmanager.panel.http import get_http_client

GITHUB_API = "https://api.github.com"


@dataclass
class UpdateStatus:
    current: str
    latest: str
    update_available: bool


@dataclass
class UpdateResult:
    success: bool
    returncode: int
    output: str


async def check_for_update(repo: str, current: str) -> UpdateStatus:
    """Compare the running version with the latest GitHub release.

    An unreachable GitHub reports the current version as latest.
    """
    client = get_http_client()
    try:
        response = await client.get(
            f"{GITHUB_API}/repos/{repo}/releases/latest",
            headers={"Accept": "application/vnd.github+json"},
        )
        response.raise_for_status()
        latest = response.json().get("tag_name", "") or ""
    except (httpx.HTTPError, ValueError) as e:
        get_audit_logger().warning(
            "Update check failed", extra={"audit_data": {"repo": repo, "error": str(e)}}
        )
        return UpdateStatus(current=current, latest=current, update_available=False)

    return UpdateStatus(
        current=current,
        latest=latest,
        update_available=bool(latest) and latest.lstrip("v") != current.lstrip("v"),
    )


async def install_update(command: str) -> UpdateResult:
    """Run the configured update command, capturing combined output."""
    logger = get_audit_logger()
    logger.info("Installing update", extra={"audit_data": {"command": command}})

    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    stdout, _ = await proc.communicate()
    output = stdout.decode(errors="replace")

    if proc.returncode != 0:
        logger.error(
            "Update failed", extra={"audit_data": {"returncode": proc.returncode}}
        )
    return UpdateResult(success=proc.returncode == 0, returncode=proc.returncode, output=output)
