"""Discord identity footer embedded in GitHub issue/comment bodies.

Every body ThreadBridge writes to GitHub links back to the originating Discord
message. That link doubles as our only persistent mapping: on restart the
correlation store is rebuilt by decoding it, and on webhook delivery its
presence marks the content as our own echo.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from threadbridge.models.chat import ChatAttachment

DISCORD_DOMAIN = "discord.com"
DISCORD_CDN = "https://cdn.discordapp.com"

# Only these attachment types are rendered as images on GitHub.
IMAGE_CONTENT_TYPES = frozenset({"image/png", "image/jpeg"})

# Byte-compatible with bodies already stored on GitHub; the link is always
# followed by the closing parenthesis of a markdown link.
_MESSAGE_LINK_RE = re.compile(r"https://discord\.com/channels/(\d+)/(\d+)/(\d+)(?=\))")


@dataclass(frozen=True)
class MessageRef:
    """Discord message identity recovered from a GitHub body."""

    guild_id: str
    channel_id: str
    message_id: str


def message_link(guild_id: str, channel_id: str, message_id: str) -> str:
    return f"https://{DISCORD_DOMAIN}/channels/{guild_id}/{channel_id}/{message_id}"


def attachments_to_markdown(attachments: Iterable[ChatAttachment]) -> str:
    md = ""
    for attachment in attachments:
        if attachment.content_type in IMAGE_CONTENT_TYPES:
            md += f"![{attachment.name}]({attachment.url} '{attachment.name}')"
    return md


def encode(
    author_display_name: str,
    author_id: str,
    author_avatar: Optional[str],
    guild_id: str,
    channel_id: str,
    message_id: str,
    content: str,
    attachments: Iterable[ChatAttachment] = (),
) -> str:
    """Render a Discord message as a GitHub body carrying its identity footer.

    Ids must be Discord snowflakes (digits only); anything else would produce
    a footer ``decode`` cannot recover, so it raises ``ValueError``.
    """
    for name, value in (("guild", guild_id), ("channel", channel_id), ("message", message_id)):
        if not str(value).isdigit():
            raise ValueError(f"Discord {name} id must be a snowflake, got {value!r}")
    link = message_link(guild_id, channel_id, message_id)
    avatar = f"{DISCORD_CDN}/avatars/{author_id}/{author_avatar}.webp?size=40"
    return (
        f"<kbd>[![{author_display_name}]({avatar})]({link})</kbd> "
        f"[{author_display_name}]({link})  `BOT`\n\n"
        f"{content}\n"
        f"{attachments_to_markdown(attachments)}\n"
    )


def decode(body: Optional[str]) -> Optional[MessageRef]:
    """Return the embedded message identity, or None for human-authored bodies."""
    if not body:
        return None
    match = _MESSAGE_LINK_RE.search(body)
    if not match or len(match.groups()) != 3:
        return None
    guild_id, channel_id, message_id = match.groups()
    return MessageRef(guild_id=guild_id, channel_id=channel_id, message_id=message_id)


def is_echo(body: Optional[str]) -> bool:
    """True when ``body`` was written by ThreadBridge."""
    return decode(body) is not None
