"""Activity log lines: ``<origin> | <action> | <thread url>``"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from threadbridge.models.thread import Thread
from threadbridge.services.body_codec import DISCORD_DOMAIN

logger = logging.getLogger("threadbridge.activity")


class Triggerer(str, enum.Enum):
    DISCORD = "Discord"
    GITHUB = "GitHub"


class Action(str, enum.Enum):
    CREATED = "created"
    COMMENTED = "commented"
    CLOSED = "closed"
    REOPENED = "reopened"
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    DELETED = "deleted"
    DELETED_COMMENT = "deleted comment"


def thread_url(thread: Optional[Thread]) -> str:
    """Canonical Discord URL of the thread."""
    if thread is None:
        return ""
    if thread.guild_id:
        return f"https://{DISCORD_DOMAIN}/channels/{thread.guild_id}/{thread.id}"
    return f"thread {thread.id}"


def _line(origin: Triggerer, action: str, thread: Optional[Thread]) -> str:
    label = action.value if isinstance(action, Action) else action
    url = thread_url(thread)
    return f"{origin.value} | {label}" + (f" | {url}" if url else "")


def info(origin: Triggerer, action: Action, thread: Optional[Thread] = None) -> None:
    logger.info(_line(origin, action, thread))


def error(origin: Triggerer, action: str, thread: Optional[Thread] = None) -> None:
    logger.error(_line(origin, action, thread))
