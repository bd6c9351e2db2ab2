"""API routes"""

from threadbridge.api import webhooks

__all__ = ["webhooks"]
