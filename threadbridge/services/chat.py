"""Operations the sync core needs from the chat platform"""

from __future__ import annotations

from typing import List, Protocol

from threadbridge.models.chat import NewChatComment, NewChatThread
from threadbridge.models.thread import Tag


class ChatPlatform(Protocol):
    async def fetch_tags(self) -> List[Tag]:
        """Tag catalog of the mirrored forum channel."""

    async def create_thread(self, thread: NewChatThread) -> str:
        """Open a forum thread; returns its id."""

    async def create_comment(self, thread_id: str, comment: NewChatComment) -> str:
        """Post a message in a thread; returns the message id."""

    async def archive_thread(self, thread_id: str) -> None: ...

    async def unarchive_thread(self, thread_id: str) -> None: ...

    async def lock_thread(self, thread_id: str) -> None: ...

    async def unlock_thread(self, thread_id: str) -> None: ...

    async def delete_thread(self, thread_id: str) -> None: ...
