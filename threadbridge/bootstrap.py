"""Wiring of the sync core from settings"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import httpx

from threadbridge.config import Settings, load_private_key
from threadbridge.errors import ThreadBridgeError
from threadbridge.services.client_provider import ClientProvider
from threadbridge.services.credentials import (
    Credential,
    CredentialManager,
    InstallationTokenIssuer,
)
from threadbridge.services.discord_client import DiscordClient
from threadbridge.services.github_client import GitHubClient, GitHubGraphQLClient, TrackerClients
from threadbridge.services.retry import RetryEnvelope
from threadbridge.services.store import CorrelationStore
from threadbridge.services.sync_service import SyncService
from threadbridge.services.webhook_handlers import WebhookHandlers

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything the web app and the Discord gateway share."""

    store: CorrelationStore
    credentials: CredentialManager
    sync: SyncService
    webhooks: WebhookHandlers
    discord: DiscordClient
    github_http: httpx.AsyncClient
    discord_http: httpx.AsyncClient

    async def start(self) -> None:
        """Load the tag catalog and rebuild thread correlations."""
        try:
            self.store.replace_tags(await self.discord.fetch_tags())
            logger.info(f"Loaded {len(self.store.tags)} forum tags from Discord")
        except ThreadBridgeError as e:
            logger.error(f"Failed to load forum tags: {e}")
        await self.sync.load_threads()

    async def aclose(self) -> None:
        await self.github_http.aclose()
        await self.discord_http.aclose()


def build_runtime(settings: Settings) -> Runtime:
    missing = settings.missing_required()
    if missing:
        raise RuntimeError(f"Missing settings: {', '.join(missing)}")

    timeout = httpx.Timeout(settings.request_timeout_seconds)
    github_http = httpx.AsyncClient(base_url=settings.github_api_url, timeout=timeout)
    discord_http = httpx.AsyncClient(base_url=settings.discord_api_url, timeout=timeout)

    issuer = InstallationTokenIssuer(
        github_http,
        app_id=settings.github_app_id,
        private_key=load_private_key(settings.github_private_key_path),
        installation_id=settings.github_installation_id,
    )

    def client_factory(credential: Credential) -> TrackerClients:
        return TrackerClients(
            rest=GitHubClient(
                github_http,
                credential.token,
                settings.github_owner,
                settings.github_repository,
            ),
            graphql=GitHubGraphQLClient(github_http, credential.token, settings.github_graphql_url),
        )

    credentials = CredentialManager(
        issuer.issue,
        client_factory,
        leeway=timedelta(seconds=settings.token_expiry_leeway_seconds),
    )
    store = CorrelationStore()
    envelope = RetryEnvelope(ClientProvider(credentials))
    discord = DiscordClient(discord_http, settings.discord_token, settings.discord_channel_id)

    return Runtime(
        store=store,
        credentials=credentials,
        sync=SyncService(store, envelope, provenance_labels=settings.provenance_label_list()),
        webhooks=WebhookHandlers(store, discord),
        discord=discord,
        github_http=github_http,
        discord_http=discord_http,
    )
