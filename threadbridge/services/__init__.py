"""Services"""

from threadbridge.services.client_provider import ClientProvider
from threadbridge.services.credentials import CredentialManager, InstallationTokenIssuer
from threadbridge.services.discord_client import DiscordClient
from threadbridge.services.github_client import GitHubClient, GitHubGraphQLClient, TrackerClients
from threadbridge.services.retry import RetryEnvelope
from threadbridge.services.store import CorrelationStore
from threadbridge.services.sync_service import SyncService
from threadbridge.services.webhook_handlers import WebhookHandlers

__all__ = [
    "ClientProvider",
    "CredentialManager",
    "InstallationTokenIssuer",
    "DiscordClient",
    "GitHubClient",
    "GitHubGraphQLClient",
    "TrackerClients",
    "RetryEnvelope",
    "CorrelationStore",
    "SyncService",
    "WebhookHandlers",
]
