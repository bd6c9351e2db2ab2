"""Single retry after credential refresh"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from threadbridge.errors import is_auth_failure
from threadbridge.services.client_provider import ClientProvider
from threadbridge.services.github_client import TrackerClients

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryEnvelope:
    """Run a GitHub operation, refreshing the token and retrying once on 401."""

    def __init__(self, provider: ClientProvider):
        self.provider = provider

    async def call(self, operation: Callable[[TrackerClients], Awaitable[T]], *, name: str = "") -> T:
        clients = await self.provider.clients()
        try:
            return await operation(clients)
        except Exception as e:
            if not is_auth_failure(e):
                raise
            logger.warning(f"GitHub rejected credential during {name or 'call'}; refreshing token")

        # Outside the except block so a second failure isn't chained to the first.
        await self.provider.credentials.refresh()
        clients = await self.provider.clients()
        return await operation(clients)
