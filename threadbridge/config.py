"""Application configuration"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

from threadbridge.errors import CredentialError


class Settings(BaseSettings):
    """Application settings"""

    # GitHub App
    github_owner: str = ""
    github_repository: str = ""
    github_app_id: str = ""
    github_installation_id: str = ""
    github_private_key_path: str = "key.pem"
    github_api_url: str = "https://api.github.com"
    github_graphql_url: str = "https://api.github.com/graphql"

    # Discord
    discord_token: str = ""
    # Forum channel whose threads are mirrored.
    discord_channel_id: str = ""
    discord_api_url: str = "https://discord.com/api/v10"

    # Sync
    # Comma-separated labels always applied to issues created from Discord.
    provenance_labels: str = "triage,discord"
    # Treat the installation token as expired this many seconds early.
    token_expiry_leeway_seconds: int = 60
    request_timeout_seconds: float = 30.0

    # Webhooks (optional)
    # When set, POST /api/webhooks/* must carry a valid X-Hub-Signature-256.
    webhook_secret: str | None = None

    # Server
    host: str = "0.0.0.0"
    port: int = 5001

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def provenance_label_list(self) -> List[str]:
        return [label.strip() for label in self.provenance_labels.split(",") if label.strip()]

    def missing_required(self) -> List[str]:
        """Names of required settings that are still empty."""
        required = (
            "github_owner",
            "github_repository",
            "github_app_id",
            "github_installation_id",
            "discord_token",
            "discord_channel_id",
        )
        return [name for name in required if not getattr(self, name)]


def load_private_key(path: str) -> str:
    """Read the GitHub App private key (PEM)."""
    try:
        key = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialError(f"Cannot read private key {path}: {e}") from e
    if not key.strip():
        raise CredentialError(f"Private key {path} is empty")
    return key


settings = Settings()
