"""Discord REST client implementing the chat-platform operations"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from threadbridge.errors import ChatAPIError
from threadbridge.models.chat import NewChatComment, NewChatThread
from threadbridge.models.thread import Tag

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 2000
THREAD_NAME_LIMIT = 100


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def build_message_prefix(author_name: str, author_url: Optional[str] = None) -> str:
    if author_url:
        return f"**[{author_name}](<{author_url}>)**\n\n"
    return f"**{author_name}**\n\n"


class DiscordClient:
    """Forum-channel operations over the Discord HTTP API (bot token)."""

    def __init__(self, http: httpx.AsyncClient, token: str, forum_channel_id: str):
        self.http = http
        self.token = token
        self.forum_channel_id = str(forum_channel_id)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(
                method, path, headers={"Authorization": f"Bot {self.token}"}, **kwargs
            )
        except httpx.HTTPError as e:
            raise ChatAPIError(f"{method} {path} failed: {e}") from e
        if not response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None
            message = (data.get("message") if isinstance(data, dict) else None) or response.text
            raise ChatAPIError(message, status_code=response.status_code)
        return response

    @staticmethod
    def _json(response: httpx.Response, *required: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ChatAPIError(f"Malformed Discord response: {e}", status_code=response.status_code) from e
        if not isinstance(data, dict) or any(data.get(key) is None for key in required):
            raise ChatAPIError(
                f"Malformed Discord response: expected {', '.join(required) or 'an object'}",
                status_code=response.status_code,
            )
        return data

    async def _edit_thread(self, thread_id: str, **fields: Any) -> Dict[str, Any]:
        response = await self._request("PATCH", f"/channels/{thread_id}", json=fields)
        return self._json(response)

    async def fetch_tags(self) -> List[Tag]:
        response = await self._request("GET", f"/channels/{self.forum_channel_id}")
        channel = self._json(response)
        return [
            Tag(id=str(t["id"]), name=t["name"])
            for t in channel.get("available_tags") or []
            if isinstance(t, dict) and t.get("id") is not None and t.get("name")
        ]

    async def create_thread(self, thread: NewChatThread) -> str:
        content = build_message_prefix(thread.login, thread.html_url) + (thread.body or "")
        payload = {
            "name": _truncate(thread.title or f"Issue #{thread.number}", THREAD_NAME_LIMIT),
            "applied_tags": list(thread.applied_tags),
            "message": {"content": _truncate(content, MESSAGE_LIMIT)},
        }
        response = await self._request(
            "POST", f"/channels/{self.forum_channel_id}/threads", json=payload
        )
        created = self._json(response, "id")
        logger.info(f"Created Discord thread {created['id']} for issue #{thread.number}")
        return str(created["id"])

    async def create_comment(self, thread_id: str, comment: NewChatComment) -> str:
        content = build_message_prefix(comment.login, comment.html_url) + comment.body
        response = await self._request(
            "POST",
            f"/channels/{thread_id}/messages",
            json={"content": _truncate(content, MESSAGE_LIMIT)},
        )
        return str(self._json(response, "id")["id"])

    async def archive_thread(self, thread_id: str) -> None:
        await self._edit_thread(thread_id, archived=True)

    async def unarchive_thread(self, thread_id: str) -> None:
        await self._edit_thread(thread_id, archived=False)

    async def lock_thread(self, thread_id: str) -> None:
        await self._edit_thread(thread_id, locked=True)

    async def unlock_thread(self, thread_id: str) -> None:
        await self._edit_thread(thread_id, locked=False)

    async def delete_thread(self, thread_id: str) -> None:
        await self._request("DELETE", f"/channels/{thread_id}")
