"""Plain data exchanged with the Discord side"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ChatAttachment:
    url: str
    name: str
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ChatAuthor:
    id: str
    display_name: str
    avatar: Optional[str] = None
    # Bots and webhooks include ThreadBridge itself.
    bot: bool = False


@dataclass(frozen=True)
class ChatMessage:
    """A message posted in a forum thread (channel_id is the thread id)."""

    id: str
    guild_id: str
    channel_id: str
    author: ChatAuthor
    content: str = ""
    attachments: List[ChatAttachment] = field(default_factory=list)


@dataclass(frozen=True)
class ChatThread:
    """A forum thread as reported by the Discord gateway."""

    id: str
    guild_id: Optional[str]
    title: str
    applied_tags: List[str] = field(default_factory=list)
    archived: bool = False
    locked: bool = False


@dataclass(frozen=True)
class NewChatThread:
    """Forum thread to open for a GitHub issue."""

    login: str
    title: str
    body: str
    number: int
    node_id: str
    applied_tags: List[str] = field(default_factory=list)
    html_url: Optional[str] = None


@dataclass(frozen=True)
class NewChatComment:
    """Discord message to post for a GitHub issue comment."""

    git_id: int
    body: str
    login: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
