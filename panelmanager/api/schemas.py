"""Request bodies accepted by the API."""

from typing import Literal

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SettingsUpdate(BaseModel):
    panel_url: str = ""
    application_key: str = ""
    client_key: str = ""
    debug: bool | None = None


class ConnectionTest(BaseModel):
    url: str = ""
    key: str = ""


class CreateServer(BaseModel):
    name: str = Field(min_length=1)
    egg_id: int
    node_id: int
    nest_id: int = 1
    user_id: int = 1
    memory: int = 1024
    disk: int = 5120
    cpu: int = 100
    databases: int = 0
    allocations: int = 1
    backups: int = 3


class PowerAction(BaseModel):
    signal: Literal["start", "stop", "restart", "kill"]


class DeleteFiles(BaseModel):
    root: str = "/"
    files: list[str] = Field(min_length=1)


class InstallPlugin(BaseModel):
    source: Literal["hangar", "modrinth", "spigot"]
    slug: str = Field(min_length=1)
    version: str = ""
