"""Application settings loaded from environment variables.

Panel URL, API keys and the debug flag are runtime settings stored in the
database (see panelmanager.store); this module only covers process config.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Local database
    database_path: str = "panelmanager.db"

    # Local panel installation
    panel_env_path: str = "/var/www/pterodactyl/.env"
    panel_install_dir: str = "/var/www/pterodactyl"
    auto_detect_panel: bool = True

    # Outbound panel requests
    panel_timeout_seconds: float = 60.0
    panel_connect_timeout_seconds: float = 10.0

    # Operator sessions
    session_ttl_hours: int = 24

    # Inbound HTTP
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: str = "*"  # comma-separated

    # Self-update
    current_version: str = "1.0.0"
    update_repo: str = "senzore/panelmanager"
    update_command: str = (
        "cd /var/www/senzdev/panelmanager && git pull "
        "&& pip install -e . && systemctl restart panelmanager"
    )

    # Logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
