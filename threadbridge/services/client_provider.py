"""Accessor for GitHub clients bound to a currently valid credential"""

from __future__ import annotations

from threadbridge.services.credentials import CredentialManager
from threadbridge.services.github_client import GitHubClient, GitHubGraphQLClient, TrackerClients


class ClientProvider:
    """Hands out clients only after the credential manager vouched for expiry.

    The returned handles may still be rejected by GitHub (revoked token); the
    retry envelope deals with that.
    """

    def __init__(self, credentials: CredentialManager):
        self.credentials = credentials

    async def clients(self) -> TrackerClients:
        await self.credentials.ensure_valid()
        clients = self.credentials.clients
        if clients is None:
            # ensure_valid() either installs clients or raises.
            raise RuntimeError("credential manager returned without clients")
        return clients

    async def rest(self) -> GitHubClient:
        return (await self.clients()).rest

    async def graphql(self) -> GitHubGraphQLClient:
        return (await self.clients()).graphql
